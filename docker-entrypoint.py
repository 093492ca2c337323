"""
Script de entrada para contenedor Docker.

ROLE=shard        -> API de búsqueda sobre un índice local
ROLE=coordinator  -> coordinador sobre SHARDS_FILE / SHARD_INSTANCES
"""
import asyncio
import sys
import logging

from config import setup_logging
from service.bootstrap import load_settings, build_server

logger = logging.getLogger(__name__)


async def main():
    # Leer configuración desde variables de entorno
    settings = load_settings()
    setup_logging(settings.log_level)

    logger.info(
        f"Iniciando {settings.role} {settings.instance_id} "
        f"en {settings.host}:{settings.port}"
    )
    if settings.role == "coordinator":
        logger.info(f"Shards: {[s.url for s in settings.shards]}")

    server = build_server(settings)
    await server.start_http_server()

    logger.info(f"{settings.instance_id} listo y escuchando en {settings.host}:{settings.port}")

    # Mantener activo
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop_http_server()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nApagado limpio")
        sys.exit(0)
