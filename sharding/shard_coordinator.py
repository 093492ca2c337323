"""
Coordinador de particiones.

Reparte cada consulta entre todos los shards (scatter), espera a que
todos terminen o fallen (gather) y fusiona los resultados parciales.
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional

import config
from metrics import shard_failures, track_search_metrics
from search.options import SearchOptions
from search.results import PatternSearchResult, SearchResult
from sharding.result_merger import merge_pattern_results, merge_search_results
from sharding.shard_client import ShardClient, ShardFailure, ShardRequest, ShardResponse

logger = logging.getLogger(__name__)


class PartitionCoordinator:
    """
    Coordinador scatter-gather sobre un conjunto fijo de shards.

    Por consulta: DISPATCHED -> AWAITING (todos los shards) -> MERGED.
    Sin reintentos ni respuestas parciales anticipadas. Cada llamada a
    shard tiene su propio timeout; un plazo global opcional acota la
    espera total y convierte a los rezagados en fallos.
    """

    def __init__(
        self,
        clients: List[ShardClient],
        instance_id: str = "coordinator",
        deadline: Optional[float] = config.COORDINATOR_DEADLINE
    ):
        """
        Args:
            clients: Clientes de shard (configuración de solo lectura)
            instance_id: ID del coordinador
            deadline: Plazo total por consulta en segundos (None = sin plazo)
        """
        self.clients = tuple(clients)
        self.instance_id = instance_id
        self.deadline = deadline

        logger.info(
            f"PartitionCoordinator {instance_id}: {len(self.clients)} shards "
            f"({', '.join(self.shard_ids)})"
        )

    @property
    def shard_ids(self) -> List[str]:
        return [client.shard_id for client in self.clients]

    async def start(self):
        for client in self.clients:
            await client.start()

    async def stop(self):
        for client in self.clients:
            await client.stop()

    @track_search_metrics("search")
    async def search(
        self,
        terms: List[str],
        options: Optional[SearchOptions] = None
    ) -> SearchResult:
        """
        Búsqueda por términos en todos los shards.

        Args:
            terms: Términos de la consulta
            options: Opciones (se reenvían tal cual a cada shard)

        Returns:
            SearchResult fusionado
        """
        options = options or SearchOptions()
        start = time.perf_counter()

        partials = await self._scatter(ShardRequest.search(terms, options))

        return merge_search_results(
            terms,
            partials,
            self.shard_ids,
            time_used=(time.perf_counter() - start) * 1000.0,
            instance_id=self.instance_id
        )

    @track_search_metrics("pattern")
    async def pattern_search(
        self,
        pattern: str,
        options: Optional[SearchOptions] = None
    ) -> PatternSearchResult:
        """
        Búsqueda por patrón en todos los shards.

        Returns:
            PatternSearchResult fusionado
        """
        options = options or SearchOptions()
        start = time.perf_counter()

        partials = await self._scatter(ShardRequest.pattern(pattern, options))

        return merge_pattern_results(
            pattern,
            partials,
            self.shard_ids,
            time_used=(time.perf_counter() - start) * 1000.0,
            instance_id=self.instance_id
        )

    async def _scatter(self, request: ShardRequest) -> List[ShardResponse]:
        """
        Envía la consulta a todos los shards en paralelo y espera a todos.

        Returns:
            Resultado o ShardFailure por shard, en el orden de self.clients
        """
        tasks = [
            asyncio.ensure_future(client.query(request))
            for client in self.clients
        ]
        logger.debug(
            f"Consulta {request.kind} '{request.query}' despachada a {len(tasks)} shards"
        )

        if not tasks:
            return []

        _, pending = await asyncio.wait(tasks, timeout=self.deadline)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        responses: List[ShardResponse] = []
        for client, task in zip(self.clients, tasks):
            if task in pending:
                response = ShardFailure(
                    client.shard_id, "deadline",
                    f"plazo global de {self.deadline}s agotado"
                )
                logger.warning(f"Shard {client.shard_id} cancelado por plazo global")
            elif task.exception() is not None:
                error = task.exception()
                logger.error(
                    f"Error inesperado en shard {client.shard_id}: {error!r}",
                    exc_info=error
                )
                response = ShardFailure(client.shard_id, "error", type(error).__name__)
            else:
                response = task.result()

            if isinstance(response, ShardFailure):
                shard_failures.labels(
                    shard_id=response.shard_id, kind=response.kind
                ).inc()
            responses.append(response)

        failed = sum(1 for r in responses if isinstance(r, ShardFailure))
        logger.info(
            f"Consulta {request.kind} '{request.query}': "
            f"{len(responses) - failed}/{len(responses)} shards respondieron"
        )
        return responses

    async def health(self) -> Dict[str, Optional[Dict]]:
        """Health check de todos los shards en paralelo."""
        results = await asyncio.gather(
            *(client.health() for client in self.clients)
        )
        return dict(zip(self.shard_ids, results))
