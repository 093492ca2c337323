"""
Utilidades compartidas por las APIs HTTP de shard y coordinador:
parseo de parámetros y respuestas de error.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from aiohttp import web

import config
from errors import SearchError, ValidationError
from search.options import SearchOptions

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}
NULL_VALUES = {"", "null", "none"}


def parse_bool(request: web.Request, name: str, default: bool) -> bool:
    """Lee un parámetro booleano de la query string."""
    raw = request.query.get(name)
    if raw is None:
        return default

    value = raw.strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValidationError(f"Parámetro {name} debe ser booleano: '{raw}'", name)


def parse_limit(request: web.Request) -> Optional[int]:
    """
    Lee 'limit'.

    Ausente -> límite por defecto; vacío o 'null' -> sin límite.
    """
    raw = request.query.get("limit")
    if raw is None:
        return config.DEFAULT_LIMIT
    if raw.strip().lower() in NULL_VALUES:
        return None

    try:
        limit = int(raw)
    except ValueError:
        raise ValidationError(f"Parámetro limit debe ser entero: '{raw}'", "limit")

    if limit < 0:
        raise ValidationError("Parámetro limit no puede ser negativo", "limit")
    return limit


def parse_options(request: web.Request, with_timestamps: bool = True) -> SearchOptions:
    """Construye las opciones de la consulta a partir de la query string."""
    return SearchOptions(
        case_sensitive=parse_bool(
            request, "caseSensitive", config.DEFAULT_CASE_SENSITIVE
        ),
        limit=parse_limit(request),
        include_timestamps=(
            parse_bool(request, "includeTimestamps", config.DEFAULT_INCLUDE_TIMESTAMPS)
            if with_timestamps else config.DEFAULT_INCLUDE_TIMESTAMPS
        )
    )


def require_param(request: web.Request, name: str) -> str:
    """Parámetro obligatorio y no vacío."""
    value = request.query.get(name)
    if not value:
        raise ValidationError(
            f"Parámetro {name} es requerido", name, code="missing_parameter"
        )
    return value


def parse_terms(request: web.Request) -> List[str]:
    """Términos de 'query' separados por espacios."""
    terms = require_param(request, "query").split()
    if not terms:
        raise ValidationError(
            "Parámetro query no contiene términos", "query", code="missing_parameter"
        )
    return terms


def health_payload(instance_id: str, status: str = "healthy") -> dict:
    return {
        "instanceId": instance_id,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


def error_response(error: Exception, context: str) -> web.Response:
    """
    Traduce una excepción a respuesta HTTP.

    Los errores de validación se devuelven tal cual (400). Cualquier otro
    fallo se registra completo en el log y al cliente solo le llega un
    código opaco con un incidentId para correlacionar.
    """
    if isinstance(error, ValidationError):
        logger.info(f"{context}: petición inválida ({error.message})")
        return web.json_response(error.to_dict(), status=error.status)

    incident_id = uuid.uuid4().hex
    logger.error(f"{context}: incidente {incident_id}", exc_info=error)

    if isinstance(error, SearchError):
        code, status = error.code, error.status
    else:
        code, status = "internal_error", 500

    return web.json_response(
        {
            "error": code,
            "message": "Error interno del servidor",
            "incidentId": incident_id
        },
        status=status
    )
