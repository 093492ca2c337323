"""
Resultados de búsqueda y su formato en la API.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from storage.document import Document


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Claves en minúsculas para deserializar sin distinguir mayúsculas."""
    if not isinstance(data, dict):
        raise TypeError(f"Se esperaba un objeto JSON, llegó {type(data).__name__}")
    return {str(k).lower(): v for k, v in data.items()}


def _int_field(data: Dict[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Campo '{key}' no numérico: {value!r}")
    return int(value)


@dataclass
class DocumentHit:
    """Documento devuelto por una búsqueda de términos."""
    document: Document
    no_of_hits: int
    missing: List[str] = field(default_factory=list)
    shard_id: Optional[str] = None

    def to_dict(self, include_timestamps: bool = True) -> Dict:
        data = {
            "document": self.document.to_dict(include_timestamps),
            "noOfHits": self.no_of_hits,
            "missing": list(self.missing)
        }
        if self.shard_id is not None:
            data["shardId"] = self.shard_id
        return data

    @classmethod
    def from_dict(cls, data: Dict, shard_id: str = None) -> 'DocumentHit':
        data = _lower_keys(data)
        return cls(
            document=Document.from_dict(data["document"]),
            no_of_hits=_int_field(data, "noofhits"),
            missing=list(data.get("missing") or []),
            shard_id=shard_id or data.get("shardid")
        )


@dataclass
class SearchResult:
    """
    Resultado de una búsqueda de términos.

    total_documents y total_hits se calculan antes de aplicar el límite;
    returned_documents y returned_hits después.
    """
    query: List[str]
    total_documents: int
    returned_documents: List[DocumentHit]
    ignored: List[str]
    total_hits: int
    returned_hits: int
    time_used: float = 0.0  # milisegundos
    instance_id: Optional[str] = None
    failed_shards: Optional[List[str]] = None

    @property
    def is_truncated(self) -> bool:
        return len(self.returned_documents) < self.total_documents

    @classmethod
    def empty(cls, query: List[str] = None, instance_id: str = None) -> 'SearchResult':
        """Resultado vacío (shard caído o consulta sin coincidencias)."""
        return cls(
            query=list(query or []),
            total_documents=0,
            returned_documents=[],
            ignored=[],
            total_hits=0,
            returned_hits=0,
            instance_id=instance_id
        )

    def to_dict(self, include_timestamps: bool = True) -> Dict:
        """Serializa al formato de respuesta de la API."""
        data = {
            "instanceId": self.instance_id,
            "query": list(self.query),
            "totalDocuments": self.total_documents,
            "returnedDocuments": len(self.returned_documents),
            "isTruncated": self.is_truncated,
            "totalHits": self.total_hits,
            "returnedHits": self.returned_hits,
            "documentHits": [
                hit.to_dict(include_timestamps) for hit in self.returned_documents
            ],
            "ignored": list(self.ignored),
            "timeUsed": self.time_used
        }
        if self.failed_shards is not None:
            data["failedShards"] = list(self.failed_shards)
        return data

    @classmethod
    def from_dict(cls, data: Dict, shard_id: str = None) -> 'SearchResult':
        """
        Deserializa la respuesta de un shard.

        Raises:
            KeyError, TypeError, ValueError: Si la respuesta está malformada
        """
        data = _lower_keys(data)
        hits = [
            DocumentHit.from_dict(hit, shard_id)
            for hit in data.get("documenthits") or []
        ]
        return cls(
            query=list(data.get("query") or []),
            total_documents=_int_field(data, "totaldocuments"),
            returned_documents=hits,
            ignored=list(data.get("ignored") or []),
            total_hits=_int_field(data, "totalhits"),
            returned_hits=_int_field(data, "returnedhits"),
            time_used=float(data.get("timeused") or 0.0),
            instance_id=data.get("instanceid")
        )


@dataclass
class PatternDocumentHit:
    """Documento devuelto por una búsqueda por patrón."""
    document: Document
    matching_words: List[str]
    shard_id: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            "document": self.document.to_dict(),
            "matchingWords": list(self.matching_words)
        }
        if self.shard_id is not None:
            data["shardId"] = self.shard_id
        return data

    @classmethod
    def from_dict(cls, data: Dict, shard_id: str = None) -> 'PatternDocumentHit':
        data = _lower_keys(data)
        return cls(
            document=Document.from_dict(data["document"]),
            matching_words=list(data.get("matchingwords") or []),
            shard_id=shard_id or data.get("shardid")
        )


@dataclass
class PatternSearchResult:
    """
    Resultado de una búsqueda por patrón.

    Semántica de hits:
    - Patrón literal: ocurrencias del literal (igual que SearchResult)
    - Patrón con comodines: suma por documento de las palabras DISTINTAS
      que coinciden, no de sus ocurrencias
    """
    pattern: str
    hits: List[PatternDocumentHit]
    total_documents: int
    total_hits: int
    returned_hits: int
    time_used: float = 0.0  # milisegundos
    instance_id: Optional[str] = None
    failed_shards: Optional[List[str]] = None

    @property
    def returned_documents(self) -> int:
        return len(self.hits)

    @property
    def is_truncated(self) -> bool:
        return self.returned_documents < self.total_documents

    @classmethod
    def empty(cls, pattern: str = "", instance_id: str = None) -> 'PatternSearchResult':
        return cls(
            pattern=pattern or "",
            hits=[],
            total_documents=0,
            total_hits=0,
            returned_hits=0,
            instance_id=instance_id
        )

    def to_dict(self) -> Dict:
        """Serializa al formato de respuesta de la API."""
        data = {
            "instanceId": self.instance_id,
            "pattern": self.pattern,
            "totalDocuments": self.total_documents,
            "returnedDocuments": self.returned_documents,
            "isTruncated": self.is_truncated,
            "totalHits": self.total_hits,
            "returnedHits": self.returned_hits,
            "timeUsed": self.time_used,
            "hits": [hit.to_dict() for hit in self.hits]
        }
        if self.failed_shards is not None:
            data["failedShards"] = list(self.failed_shards)
        return data

    @classmethod
    def from_dict(cls, data: Dict, shard_id: str = None) -> 'PatternSearchResult':
        """
        Deserializa la respuesta de un shard.

        Raises:
            KeyError, TypeError, ValueError: Si la respuesta está malformada
        """
        data = _lower_keys(data)
        hits = [
            PatternDocumentHit.from_dict(hit, shard_id)
            for hit in data.get("hits") or []
        ]
        return cls(
            pattern=data.get("pattern") or "",
            hits=hits,
            total_documents=_int_field(data, "totaldocuments"),
            total_hits=_int_field(data, "totalhits"),
            returned_hits=_int_field(data, "returnedhits"),
            time_used=float(data.get("timeused") or 0.0),
            instance_id=data.get("instanceid")
        )
