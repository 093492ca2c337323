"""
Opciones por consulta.
"""
from dataclasses import dataclass, replace
from typing import Optional

import config


@dataclass(frozen=True)
class SearchOptions:
    """
    Opciones de una consulta concreta.

    Viajan con cada petición; dos consultas simultáneas nunca comparten
    estado de configuración.
    """
    case_sensitive: bool = config.DEFAULT_CASE_SENSITIVE
    limit: Optional[int] = config.DEFAULT_LIMIT
    include_timestamps: bool = config.DEFAULT_INCLUDE_TIMESTAMPS

    def unlimited(self) -> 'SearchOptions':
        """Copia sin límite de resultados."""
        return replace(self, limit=None)

    def to_query_params(self) -> dict:
        """Parámetros de query string para reenviar la consulta a un shard."""
        return {
            "caseSensitive": "true" if self.case_sensitive else "false",
            "limit": "" if self.limit is None else str(self.limit),
            "includeTimestamps": "true" if self.include_timestamps else "false",
        }
