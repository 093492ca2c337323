"""
Motor de consultas sobre el índice invertido de un shard.
Búsqueda por términos con ranking TF y búsqueda por patrones con comodines.
"""
import logging
import time
from typing import Dict, List, Optional

from search.options import SearchOptions
from search.results import (
    DocumentHit,
    PatternDocumentHit,
    PatternSearchResult,
    SearchResult,
)
from storage.document import filename_number
from storage.index_store import IndexStore
from storage.pattern import has_wildcards

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _distinct_sorted(words: List[str]) -> List[str]:
    """Quita duplicados y ordena, ambos sin distinguir mayúsculas."""
    seen = set()
    unique = []
    for word in words:
        key = word.lower()
        if key not in seen:
            seen.add(key)
            unique.append(word)
    return sorted(unique, key=str.lower)


class QueryEngine:
    """
    Motor de búsqueda de un shard.

    Depende solo de IndexStore. Es seguro llamarlo desde varias
    consultas concurrentes: no guarda estado entre llamadas.
    """

    def __init__(self, store: IndexStore, instance_id: str = None):
        """
        Args:
            store: Índice a consultar
            instance_id: Identificador de la instancia (viaja en los resultados)
        """
        self.store = store
        self.instance_id = instance_id

    def search(
        self,
        terms: List[str],
        options: Optional[SearchOptions] = None
    ) -> SearchResult:
        """
        Búsqueda por términos con ranking TF.

        Algoritmo:
        1. Traducir términos a IDs (los ausentes van a 'ignored')
        2. Documentos con al menos un término, ordenados por ocurrencias
           desc y doc_id asc
        3. Totales antes del límite
        4. Cortar el prefijo según el límite
        5. Detalles y términos ausentes por documento

        Args:
            terms: Términos de la consulta
            options: Opciones de la consulta

        Returns:
            SearchResult
        """
        options = options or SearchOptions()
        start = time.perf_counter()

        word_ids, ignored = self.store.resolve_words(terms, options.case_sensitive)
        ranked = self.store.documents_containing(word_ids) if word_ids else []

        total_documents = len(ranked)
        total_hits = sum(count for _, count in ranked)

        if options.limit is None:
            top = ranked
        else:
            top = ranked[:max(0, min(options.limit, total_documents))]

        details = {
            doc.id: doc
            for doc in self.store.document_details([doc_id for doc_id, _ in top])
        }

        hits = []
        for doc_id, count in top:
            document = details.get(doc_id)
            if document is None:
                logger.warning(f"Documento {doc_id} sin metadata, se omite")
                continue

            missing_ids = self.store.missing_words(doc_id, word_ids)
            missing = self.store.words_from_ids(missing_ids) if missing_ids else []
            hits.append(DocumentHit(document, count, missing))

        result = SearchResult(
            query=list(terms),
            total_documents=total_documents,
            returned_documents=hits,
            ignored=ignored,
            total_hits=total_hits,
            returned_hits=sum(hit.no_of_hits for hit in hits),
            time_used=_elapsed_ms(start),
            instance_id=self.instance_id
        )

        logger.debug(
            f"Búsqueda {terms}: {len(hits)}/{total_documents} docs, "
            f"{len(ignored)} ignorados ({result.time_used:.1f} ms)"
        )
        return result

    def pattern_search(
        self,
        pattern: str,
        options: Optional[SearchOptions] = None
    ) -> PatternSearchResult:
        """
        Búsqueda por patrón con comodines ('?' un carácter, '*' cero o más).

        Un patrón sin comodines se delega en search() para conservar el
        mismo ranking y los mismos totales. Con comodines el ranking es:
        palabras distintas coincidentes desc, luego número del nombre de
        archivo asc (no numéricos al final).

        Args:
            pattern: Patrón
            options: Opciones de la consulta (limit <= 0 equivale a sin límite)

        Returns:
            PatternSearchResult
        """
        options = options or SearchOptions()
        start = time.perf_counter()

        if not pattern or not pattern.strip():
            return self._empty_pattern(pattern, start)

        limit = options.limit if options.limit and options.limit > 0 else None

        if not has_wildcards(pattern):
            return self._literal_pattern(pattern, options, limit, start)

        words = self.store.words_matching_pattern(pattern, options.case_sensitive)
        if not words:
            return self._empty_pattern(pattern, start)

        docs_with_words = self.store.documents_for_words(words)
        if not docs_with_words:
            return self._empty_pattern(pattern, start)

        matches: Dict[int, List[str]] = {
            doc_id: _distinct_sorted(doc_words)
            for doc_id, doc_words in docs_with_words.items()
        }

        total_documents = len(matches)
        total_hits = sum(len(doc_words) for doc_words in matches.values())

        details = {
            doc.id: doc for doc in self.store.document_details(list(matches))
        }

        ordered = sorted(
            matches.items(),
            key=lambda item: (
                -len(item[1]),
                filename_number(details.get(item[0])),
                item[0]
            )
        )
        if limit is not None:
            ordered = ordered[:limit]

        hits = []
        for doc_id, doc_words in ordered:
            document = details.get(doc_id)
            if document is None:
                logger.warning(f"Documento {doc_id} sin metadata, se omite")
                continue
            hits.append(PatternDocumentHit(document, doc_words))

        result = PatternSearchResult(
            pattern=pattern,
            hits=hits,
            total_documents=total_documents,
            total_hits=total_hits,
            returned_hits=sum(len(hit.matching_words) for hit in hits),
            time_used=_elapsed_ms(start),
            instance_id=self.instance_id
        )

        logger.debug(
            f"Patrón '{pattern}': {len(words)} palabras, "
            f"{len(hits)}/{total_documents} docs ({result.time_used:.1f} ms)"
        )
        return result

    def _literal_pattern(
        self,
        pattern: str,
        options: SearchOptions,
        limit: Optional[int],
        start: float
    ) -> PatternSearchResult:
        """Patrón sin comodines: búsqueda completa y corte del prefijo."""
        full = self.search([pattern], options.unlimited())

        limited = full.returned_documents
        if limit is not None:
            limited = limited[:limit]

        return PatternSearchResult(
            pattern=pattern,
            hits=[PatternDocumentHit(hit.document, [pattern]) for hit in limited],
            total_documents=full.total_documents,
            total_hits=full.total_hits,
            returned_hits=sum(hit.no_of_hits for hit in limited),
            time_used=_elapsed_ms(start),
            instance_id=self.instance_id
        )

    def _empty_pattern(self, pattern: str, start: float) -> PatternSearchResult:
        result = PatternSearchResult.empty(pattern, self.instance_id)
        result.time_used = _elapsed_ms(start)
        return result
