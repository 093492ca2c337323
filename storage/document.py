"""
Modelos del índice: documentos y palabras del vocabulario.
"""
from dataclasses import dataclass, asdict
from typing import Optional, Dict
import json
import re


@dataclass(frozen=True)
class Document:
    """Representa un documento indexado (inmutable una vez indexado)."""
    id: int
    url: str
    index_time: str = ""
    creation_time: str = ""

    def to_dict(self, include_timestamps: bool = True) -> Dict:
        """
        Serializa al formato de la API.

        Args:
            include_timestamps: Si es False, las fechas van como None
        """
        return {
            "id": self.id,
            "url": self.url,
            "indexTime": self.index_time if include_timestamps else None,
            "creationTime": self.creation_time if include_timestamps else None,
        }

    def to_json(self) -> str:
        """Serializa a JSON."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict) -> 'Document':
        """Deserializa desde diccionario (acepta camelCase o snake_case)."""
        keys = {k.lower().replace("_", ""): v for k, v in data.items()}
        return cls(
            id=int(keys["id"]),
            url=keys.get("url") or "",
            index_time=keys.get("indextime") or "",
            creation_time=keys.get("creationtime") or "",
        )


@dataclass(frozen=True)
class Word:
    """Palabra del vocabulario de un shard."""
    id: int
    name: str

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Word':
        return cls(id=int(data["id"]), name=data["name"])


def filename_number(document: Optional[Document]) -> float:
    """
    Número contenido en el nombre de archivo del documento.

    '.../medium/126.txt' -> 126. Los nombres no numéricos devuelven
    infinito para que queden al final al ordenar.
    """
    if document is None or not document.url:
        return float("inf")

    name = document.url.replace("\\", "/").rsplit("/", 1)[-1]
    stem = name.rsplit(".", 1)[0] if "." in name[1:] else name

    # int() aceptaría "1_000", " 7" o "+7"
    if not re.fullmatch(r"-?[0-9]+", stem):
        return float("inf")
    return int(stem)
