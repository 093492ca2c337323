"""
Excepciones del buscador.

Taxonomía:
- ValidationError: parámetros ausentes o inválidos (nunca llega al motor)
- IndexStoreError: fallo de lectura del índice
- ShardUnavailable: shard caído, lento o con respuesta malformada
"""
from typing import Dict, Any


class SearchError(Exception):
    """Base de todos los errores del buscador."""

    code = "search_error"
    status = 500

    def __init__(self, message: str, code: str = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializa el error para una respuesta JSON."""
        return {
            "error": self.code,
            "message": self.message
        }


class ValidationError(SearchError):
    """Parámetro requerido ausente o con formato inválido."""

    code = "invalid_parameter"
    status = 400

    def __init__(self, message: str, parameter: str = None, code: str = None):
        super().__init__(message, code)
        self.parameter = parameter

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.parameter:
            data["parameter"] = self.parameter
        return data


class IndexStoreError(SearchError):
    """Fallo al consultar el índice invertido."""

    code = "index_store_error"
    status = 500


class ShardUnavailable(SearchError):
    """Un shard no respondió a tiempo o respondió algo inutilizable."""

    code = "shard_unavailable"
    status = 503

    def __init__(self, shard_id: str, reason: str):
        super().__init__(f"Shard {shard_id} no disponible: {reason}")
        self.shard_id = shard_id
        self.reason = reason
