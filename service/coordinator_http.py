"""
API HTTP del coordinador.
Misma forma de consulta que un shard, agregada sobre todas las particiones.
"""
import logging
from typing import Optional

from aiohttp import web

import config
from metrics import export_metrics
from service.http_utils import (
    error_response,
    health_payload,
    parse_options,
    parse_terms,
    require_param,
)
from sharding.shard_coordinator import PartitionCoordinator

logger = logging.getLogger(__name__)


class CoordinatorHTTP:
    """
    Servidor HTTP del coordinador.

    Rutas:
    - GET /api/coordinator
    - GET /api/coordinator/pattern
    - GET /api/coordinator/ping
    - GET /api/coordinator/health
    - GET /metrics
    """

    def __init__(
        self,
        coordinator: PartitionCoordinator,
        host: str = config.HTTP_HOST,
        port: int = config.COORDINATOR_PORT
    ):
        self.coordinator = coordinator
        self.instance_id = coordinator.instance_id
        self.host = host
        self.port = port

        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None

    def create_http_app(self) -> web.Application:
        """
        Crea aplicación aiohttp con todas las rutas.

        Los clientes de shard se abren y cierran con la aplicación.
        """
        app = web.Application()

        app.router.add_get('/api/coordinator', self._http_search)
        app.router.add_get('/api/coordinator/pattern', self._http_pattern_search)
        app.router.add_get('/api/coordinator/ping', self._http_ping)
        app.router.add_get('/api/coordinator/health', self._http_health)
        app.router.add_get('/metrics', self._http_metrics)

        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)

        logger.info(f"Coordinador {self.instance_id}: HTTP app creada")

        return app

    async def _on_startup(self, app: web.Application):
        await self.coordinator.start()

    async def _on_cleanup(self, app: web.Application):
        await self.coordinator.stop()

    async def start_http_server(self):
        """Inicia servidor HTTP en host:port configurado."""
        self.app = self.create_http_app()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()

        logger.info(
            f"Coordinador {self.instance_id}: servidor HTTP en "
            f"http://{self.host}:{self.port}"
        )

    async def stop_http_server(self):
        """Detiene servidor HTTP limpiamente."""
        if self.runner:
            await self.runner.cleanup()
            logger.info(f"Coordinador {self.instance_id}: servidor HTTP detenido")

    # ══════════════════════════════════════════════════════════
    # Handlers
    # ══════════════════════════════════════════════════════════

    async def _http_search(self, request: web.Request) -> web.Response:
        """
        GET /api/coordinator?query={términos}&caseSensitive=&limit=&includeTimestamps=

        Igual que /api/search de un shard, más:
            "failedShards": ["shard-2"],
            "documentHits": [{..., "shardId": "shard-1"}]
        """
        try:
            terms = parse_terms(request)
            options = parse_options(request)

            result = await self.coordinator.search(terms, options)
            return web.json_response(result.to_dict(options.include_timestamps))
        except Exception as e:
            return error_response(e, f"Coordinador {self.instance_id}: búsqueda")

    async def _http_pattern_search(self, request: web.Request) -> web.Response:
        """
        GET /api/coordinator/pattern?pattern={patrón}&caseSensitive=&limit=

        Igual que /api/search/pattern de un shard, más failedShards y shardId.
        """
        try:
            pattern = require_param(request, "pattern")
            options = parse_options(request, with_timestamps=False)

            result = await self.coordinator.pattern_search(pattern, options)
            return web.json_response(result.to_dict())
        except Exception as e:
            return error_response(
                e, f"Coordinador {self.instance_id}: búsqueda por patrón"
            )

    async def _http_ping(self, request: web.Request) -> web.Response:
        """
        GET /api/coordinator/ping

        Returns: {"instanceId", "status", "timestamp", "shards": [...]}
        """
        payload = health_payload(self.instance_id)
        payload["shards"] = self.coordinator.shard_ids
        return web.json_response(payload)

    async def _http_health(self, request: web.Request) -> web.Response:
        """
        GET /api/coordinator/health

        Consulta el health de cada shard. status es 'degraded' si alguno
        no responde; la respuesta es 200 igualmente.
        """
        try:
            shards = await self.coordinator.health()
            status = "healthy" if all(shards.values()) else "degraded"

            payload = health_payload(self.instance_id, status)
            payload["shards"] = {
                shard_id: (info or {}).get("status", "unreachable")
                for shard_id, info in shards.items()
            }
            return web.json_response(payload)
        except Exception as e:
            return error_response(e, f"Coordinador {self.instance_id}: health")

    async def _http_metrics(self, request: web.Request) -> web.Response:
        """GET /metrics en formato Prometheus."""
        return web.Response(
            body=export_metrics(),
            content_type='text/plain',
            charset='utf-8'
        )
