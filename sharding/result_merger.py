"""
Fusión de resultados parciales de varios shards.

Los IDs de documento no son únicos entre shards: cada hit se etiqueta
con el shard de origen y nunca se deduplica por ID.
"""
import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Union

from search.results import PatternSearchResult, SearchResult
from sharding.shard_client import ShardFailure

logger = logging.getLogger(__name__)

SearchPartial = Union[SearchResult, ShardFailure]
PatternPartial = Union[PatternSearchResult, ShardFailure]


def _merge_ignored(terms: List[str], partials: Sequence[SearchResult]) -> List[str]:
    """
    Términos ignorados por TODOS los shards que respondieron.

    Un término que algún shard sí conoce no se reporta como ignorado.
    """
    if not partials:
        return []

    common = set(partials[0].ignored)
    for partial in partials[1:]:
        common &= set(partial.ignored)

    # Orden de la consulta original; los no presentes en ella al final
    ordered = [term for term in dict.fromkeys(terms) if term in common]
    extra = sorted(common - set(ordered))
    return ordered + extra


def merge_search_results(
    terms: List[str],
    partials: Sequence[SearchPartial],
    shard_ids: Sequence[str],
    time_used: float = 0.0,
    instance_id: Optional[str] = None
) -> SearchResult:
    """
    Fusiona resultados de búsqueda por términos.

    - Concatena los documentos de los shards que respondieron
    - Suma totales (los shards caídos aportan cero)
    - Reordena por noOfHits desc (estable en empates)

    Args:
        terms: Términos de la consulta original
        partials: Resultado o fallo de cada shard, en orden de shard_ids
        shard_ids: IDs de shard alineados con partials
        time_used: Tiempo total en milisegundos
        instance_id: ID del coordinador

    Returns:
        SearchResult combinado con failed_shards
    """
    successful: List[SearchResult] = []
    failed: List[str] = []
    hits = []

    for shard_id, partial in zip(shard_ids, partials):
        if isinstance(partial, ShardFailure):
            failed.append(shard_id)
            continue

        successful.append(partial)
        hits.extend(replace(hit, shard_id=shard_id) for hit in partial.returned_documents)

    hits.sort(key=lambda hit: hit.no_of_hits, reverse=True)

    merged = SearchResult(
        query=list(terms),
        total_documents=sum(p.total_documents for p in successful),
        returned_documents=hits,
        ignored=_merge_ignored(terms, successful),
        total_hits=sum(p.total_hits for p in successful),
        returned_hits=sum(p.returned_hits for p in successful),
        time_used=time_used,
        instance_id=instance_id,
        failed_shards=failed
    )

    logger.debug(
        f"Fusión búsqueda: {len(successful)} shards ok, {len(failed)} caídos, "
        f"{len(hits)} documentos"
    )
    return merged


def merge_pattern_results(
    pattern: str,
    partials: Sequence[PatternPartial],
    shard_ids: Sequence[str],
    time_used: float = 0.0,
    instance_id: Optional[str] = None
) -> PatternSearchResult:
    """
    Fusiona resultados de búsqueda por patrón.

    Igual que merge_search_results pero el ranking es el número de
    palabras coincidentes por documento, desc.
    """
    successful: List[PatternSearchResult] = []
    failed: List[str] = []
    hits = []

    for shard_id, partial in zip(shard_ids, partials):
        if isinstance(partial, ShardFailure):
            failed.append(shard_id)
            continue

        successful.append(partial)
        hits.extend(replace(hit, shard_id=shard_id) for hit in partial.hits)

    hits.sort(key=lambda hit: len(hit.matching_words), reverse=True)

    return PatternSearchResult(
        pattern=pattern,
        hits=hits,
        total_documents=sum(p.total_documents for p in successful),
        total_hits=sum(p.total_hits for p in successful),
        returned_hits=sum(p.returned_hits for p in successful),
        time_used=time_used,
        instance_id=instance_id,
        failed_shards=failed
    )
