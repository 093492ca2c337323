"""
Clientes de shard.

Interfaz uniforme para "preguntarle a un shard", sea local o remoto.
Nunca elevan excepciones por fallos de red, timeouts o respuestas
malformadas: devuelven un ShardFailure que consume el coordinador.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import aiohttp

import config
from errors import IndexStoreError, ShardUnavailable
from search.options import SearchOptions
from search.query_engine import QueryEngine
from search.results import PatternSearchResult, SearchResult

logger = logging.getLogger(__name__)

SEARCH = "search"
PATTERN = "pattern"


@dataclass(frozen=True)
class ShardRequest:
    """Consulta que se envía a cada shard."""
    kind: str
    query: str
    options: SearchOptions

    @classmethod
    def search(cls, terms: List[str], options: SearchOptions) -> 'ShardRequest':
        return cls(SEARCH, " ".join(terms), options)

    @classmethod
    def pattern(cls, pattern: str, options: SearchOptions) -> 'ShardRequest':
        return cls(PATTERN, pattern, options)

    @property
    def terms(self) -> List[str]:
        return self.query.split()


@dataclass(frozen=True)
class ShardFailure:
    """
    Fallo de un shard para una consulta concreta.

    kind: 'timeout', 'unavailable', 'index_error', 'deadline' o 'error'
    """
    shard_id: str
    kind: str
    reason: str


ShardResponse = Union[SearchResult, PatternSearchResult, ShardFailure]


class ShardClient(ABC):
    """
    Cliente abstracto de un shard.

    query() acota cada llamada con un timeout y convierte los fallos
    ordinarios en ShardFailure.
    """

    def __init__(self, shard_id: str, timeout: float = config.SHARD_TIMEOUT):
        """
        Args:
            shard_id: Identificador del shard
            timeout: Timeout por llamada en segundos
        """
        self.shard_id = shard_id
        self.timeout = timeout

    async def query(self, request: ShardRequest) -> ShardResponse:
        """
        Ejecuta la consulta en el shard.

        Returns:
            SearchResult / PatternSearchResult, o ShardFailure si falla
        """
        try:
            return await asyncio.wait_for(self._execute(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Timeout consultando shard {self.shard_id} ({self.timeout}s)")
            return ShardFailure(self.shard_id, "timeout", f"sin respuesta en {self.timeout}s")
        except ShardUnavailable as e:
            logger.warning(f"Shard {self.shard_id} no disponible: {e.reason}")
            return ShardFailure(self.shard_id, "unavailable", e.reason)
        except IndexStoreError as e:
            logger.error(f"Error de índice en shard {self.shard_id}: {e.message}")
            return ShardFailure(self.shard_id, "index_error", e.message)

    @abstractmethod
    async def _execute(self, request: ShardRequest) -> Union[SearchResult, PatternSearchResult]:
        """Ejecuta la consulta sin protección de timeout."""
        pass

    @abstractmethod
    async def health(self) -> Optional[Dict]:
        """Estado del shard o None si no responde."""
        pass

    async def start(self):
        """Prepara recursos (sesiones HTTP, etc.)."""
        pass

    async def stop(self):
        """Libera recursos."""
        pass


class LocalShardClient(ShardClient):
    """Shard en el mismo proceso: envuelve un QueryEngine."""

    def __init__(
        self,
        shard_id: str,
        engine: QueryEngine,
        timeout: float = config.SHARD_TIMEOUT
    ):
        super().__init__(shard_id, timeout)
        self.engine = engine

    async def _execute(self, request: ShardRequest) -> Union[SearchResult, PatternSearchResult]:
        # El motor es síncrono; corre en un hilo para no bloquear el loop
        if request.kind == SEARCH:
            result = await asyncio.to_thread(
                self.engine.search, request.terms, request.options
            )
        else:
            result = await asyncio.to_thread(
                self.engine.pattern_search, request.query, request.options
            )
        return result

    async def health(self) -> Optional[Dict]:
        return {
            "instanceId": self.engine.instance_id or self.shard_id,
            "status": "healthy"
        }


class HTTPShardClient(ShardClient):
    """
    Shard remoto accedido por HTTP/REST.
    Usa aiohttp para requests asíncronos.
    """

    def __init__(
        self,
        shard_id: str,
        base_url: str,
        timeout: float = config.SHARD_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Args:
            shard_id: Identificador del shard
            base_url: URL base (ej: "http://localhost:5137")
            timeout: Timeout por llamada en segundos
            session: Sesión compartida (opcional)
        """
        super().__init__(shard_id, timeout)
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None

    async def start(self):
        """Crea la sesión HTTP si no se inyectó una."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
            logger.info(f"Cliente HTTP del shard {self.shard_id} -> {self.base_url}")

    async def stop(self):
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    def _endpoint(self, request: ShardRequest) -> str:
        if request.kind == SEARCH:
            return f"{self.base_url}/api/search"
        return f"{self.base_url}/api/search/pattern"

    def _params(self, request: ShardRequest) -> Dict[str, str]:
        params = request.options.to_query_params()
        if request.kind == SEARCH:
            params["query"] = request.query
        else:
            params["pattern"] = request.query
            params.pop("includeTimestamps", None)
        return params

    async def _get_json(self, url: str, params: Dict[str, str] = None) -> Dict:
        if self._session is None:
            await self.start()

        try:
            async with self._session.get(url, params=params) as response:
                if response.status != 200:
                    raise ShardUnavailable(
                        self.shard_id, f"status {response.status} en {url}"
                    )
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise ShardUnavailable(self.shard_id, f"error HTTP: {e}") from e
        except ValueError as e:
            raise ShardUnavailable(self.shard_id, f"JSON inválido: {e}") from e

    async def _execute(self, request: ShardRequest) -> Union[SearchResult, PatternSearchResult]:
        url = self._endpoint(request)
        logger.debug(f"Consultando shard {self.shard_id}: {url}")

        data = await self._get_json(url, self._params(request))

        try:
            if request.kind == SEARCH:
                return SearchResult.from_dict(data, shard_id=self.shard_id)
            return PatternSearchResult.from_dict(data, shard_id=self.shard_id)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ShardUnavailable(self.shard_id, f"respuesta malformada: {e}") from e

    async def health(self) -> Optional[Dict]:
        try:
            return await asyncio.wait_for(
                self._get_json(f"{self.base_url}/api/health"),
                timeout=self.timeout
            )
        except (asyncio.TimeoutError, ShardUnavailable) as e:
            logger.warning(f"Health check fallido en shard {self.shard_id}: {e}")
            return None
