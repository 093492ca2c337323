"""
API HTTP de un shard.
Expone el QueryEngine local a coordinadores y clientes.
"""
import asyncio
import logging
from typing import Optional

from aiohttp import web

import config
from metrics import export_metrics, track_search_metrics, update_index_size
from search.query_engine import QueryEngine
from service.http_utils import (
    error_response,
    health_payload,
    parse_options,
    parse_terms,
    require_param,
)

logger = logging.getLogger(__name__)


class ShardHTTP:
    """
    Servidor HTTP de un shard.

    Rutas:
    - GET /api/search
    - GET /api/search/pattern
    - GET /api/health
    - GET /api/status
    - GET /metrics
    """

    def __init__(
        self,
        engine: QueryEngine,
        host: str = config.HTTP_HOST,
        port: int = config.SHARD_PORT
    ):
        self.engine = engine
        self.instance_id = engine.instance_id or config.INSTANCE_ID
        self.host = host
        self.port = port

        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None

    def create_http_app(self) -> web.Application:
        """
        Crea aplicación aiohttp con todas las rutas.

        Returns:
            Aplicación web configurada
        """
        app = web.Application()

        app.router.add_get('/api/search', self._http_search)
        app.router.add_get('/api/search/pattern', self._http_pattern_search)
        app.router.add_get('/api/health', self._http_health)
        app.router.add_get('/api/status', self._http_status)
        app.router.add_get('/metrics', self._http_metrics)

        logger.info(f"Shard {self.instance_id}: HTTP app creada")

        return app

    async def start_http_server(self):
        """Inicia servidor HTTP en host:port configurado."""
        self.app = self.create_http_app()
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()

        logger.info(
            f"Shard {self.instance_id}: servidor HTTP en "
            f"http://{self.host}:{self.port}"
        )

    async def stop_http_server(self):
        """Detiene servidor HTTP limpiamente."""
        if self.runner:
            await self.runner.cleanup()
            logger.info(f"Shard {self.instance_id}: servidor HTTP detenido")

    # ══════════════════════════════════════════════════════════
    # Handlers
    # ══════════════════════════════════════════════════════════

    @track_search_metrics("search")
    async def _http_search(self, request: web.Request) -> web.Response:
        """
        GET /api/search?query={términos}&caseSensitive=&limit=&includeTimestamps=

        Returns: {
            "instanceId": "searchapi-1",
            "query": ["apple", "banana"],
            "totalDocuments": 2,
            "returnedDocuments": 2,
            "isTruncated": false,
            "totalHits": 6,
            "returnedHits": 6,
            "documentHits": [
                {
                    "document": {"id": 10, "url": "...", "indexTime": "...", "creationTime": "..."},
                    "noOfHits": 3,
                    "missing": ["banana"]
                },
                ...
            ],
            "ignored": [],
            "timeUsed": 1.7
        }
        """
        try:
            terms = parse_terms(request)
            options = parse_options(request)

            result = await asyncio.to_thread(self.engine.search, terms, options)
            return web.json_response(result.to_dict(options.include_timestamps))
        except Exception as e:
            return error_response(e, f"Shard {self.instance_id}: búsqueda")

    @track_search_metrics("pattern")
    async def _http_pattern_search(self, request: web.Request) -> web.Response:
        """
        GET /api/search/pattern?pattern={patrón}&caseSensitive=&limit=

        Returns: {
            "instanceId": "searchapi-1",
            "pattern": "te*",
            "totalDocuments": 5,
            "returnedDocuments": 5,
            "isTruncated": false,
            "totalHits": 8,
            "returnedHits": 8,
            "timeUsed": 2.3,
            "hits": [
                {"document": {...}, "matchingWords": ["te", "test"]},
                ...
            ]
        }
        """
        try:
            pattern = require_param(request, "pattern")
            options = parse_options(request, with_timestamps=False)

            logger.debug(
                f"Shard {self.instance_id}: patrón '{pattern}' "
                f"(caseSensitive={options.case_sensitive}, limit={options.limit})"
            )

            result = await asyncio.to_thread(self.engine.pattern_search, pattern, options)
            return web.json_response(result.to_dict())
        except Exception as e:
            return error_response(e, f"Shard {self.instance_id}: búsqueda por patrón")

    async def _http_health(self, request: web.Request) -> web.Response:
        """
        GET /api/health

        Returns: {"instanceId": "...", "status": "healthy", "timestamp": "..."}
        """
        return web.json_response(health_payload(self.instance_id))

    async def _http_status(self, request: web.Request) -> web.Response:
        """
        GET /api/status

        Returns: health + {"index": {"documents", "words", "occurrences"}}
        """
        try:
            stats = await asyncio.to_thread(self.engine.store.get_stats)
            update_index_size(self.instance_id, stats)

            payload = health_payload(self.instance_id)
            payload["index"] = stats
            return web.json_response(payload)
        except Exception as e:
            return error_response(e, f"Shard {self.instance_id}: status")

    async def _http_metrics(self, request: web.Request) -> web.Response:
        """
        GET /metrics

        Returns: Métricas en formato Prometheus
        """
        return web.Response(
            body=export_metrics(),
            content_type='text/plain',
            charset='utf-8'
        )
