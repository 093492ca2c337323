"""
Arranque de procesos: lee el entorno una sola vez y construye el shard
o el coordinador correspondiente.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

import config
from errors import ValidationError
from search.query_engine import QueryEngine
from service.coordinator_http import CoordinatorHTTP
from service.shard_http import ShardHTTP
from sharding.shard_config import (
    ShardConfig,
    build_http_clients,
    default_shards,
    load_shard_config,
    parse_shard_instances,
)
from sharding.shard_coordinator import PartitionCoordinator
from storage.index_store import IndexStore
from storage.persistence import IndexPersistence
from storage.sqlite_store import SqliteIndexStore

logger = logging.getLogger(__name__)

ROLES = ("shard", "coordinator")


@dataclass(frozen=True)
class Settings:
    """Configuración del proceso (inmutable tras el arranque)."""
    role: str
    instance_id: str
    host: str
    port: int
    database_path: str
    snapshot_path: str
    shards: List[ShardConfig]
    shard_timeout: float
    deadline: Optional[float]
    log_level: str


def _float_env(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValidationError(f"{name} debe ser numérico: '{raw}'", name)


def load_settings(env: Mapping[str, str] = None) -> Settings:
    """
    Lee la configuración desde variables de entorno.

    Variables: ROLE, INSTANCE_ID, HOST, PORT, DATABASE_PATH, SNAPSHOT_PATH,
    SHARDS_FILE, SHARD_INSTANCES, SHARD_TIMEOUT, COORDINATOR_DEADLINE,
    LOG_LEVEL.
    """
    env = os.environ if env is None else env

    role = env.get("ROLE", "shard").lower()
    if role not in ROLES:
        raise ValidationError(f"ROLE debe ser uno de {ROLES}: '{role}'", "ROLE")

    default_port = config.SHARD_PORT if role == "shard" else config.COORDINATOR_PORT
    try:
        port = int(env.get("PORT", default_port))
    except ValueError:
        raise ValidationError(f"PORT debe ser entero: '{env.get('PORT')}'", "PORT")

    if env.get("SHARDS_FILE"):
        shards = load_shard_config(Path(env["SHARDS_FILE"]))
    elif env.get("SHARD_INSTANCES"):
        shards = parse_shard_instances(env["SHARD_INSTANCES"])
    else:
        shards = default_shards()

    deadline = _float_env(env, "COORDINATOR_DEADLINE", config.COORDINATOR_DEADLINE)

    return Settings(
        role=role,
        instance_id=env.get("INSTANCE_ID", config.INSTANCE_ID),
        host=env.get("HOST", config.HTTP_HOST),
        port=port,
        database_path=env.get("DATABASE_PATH", config.DATABASE_PATH),
        snapshot_path=env.get("SNAPSHOT_PATH", config.SNAPSHOT_PATH),
        shards=shards,
        shard_timeout=_float_env(env, "SHARD_TIMEOUT", config.SHARD_TIMEOUT),
        deadline=deadline if deadline and deadline > 0 else None,
        log_level=env.get("LOG_LEVEL", config.LOG_LEVEL)
    )


def build_store(settings: Settings) -> IndexStore:
    """Snapshot JSON si está configurado; si no, la base SQLite."""
    if settings.snapshot_path:
        logger.info(f"Usando snapshot: {settings.snapshot_path}")
        return IndexPersistence.load(Path(settings.snapshot_path), settings.instance_id)

    logger.info(f"Usando base de datos: {settings.database_path}")
    return SqliteIndexStore(settings.database_path)


def build_shard(settings: Settings) -> ShardHTTP:
    engine = QueryEngine(build_store(settings), instance_id=settings.instance_id)
    return ShardHTTP(engine, host=settings.host, port=settings.port)


def build_coordinator(settings: Settings) -> CoordinatorHTTP:
    clients = build_http_clients(settings.shards, timeout=settings.shard_timeout)
    coordinator = PartitionCoordinator(
        clients,
        instance_id=settings.instance_id,
        deadline=settings.deadline
    )
    return CoordinatorHTTP(coordinator, host=settings.host, port=settings.port)


def build_server(settings: Settings):
    """Servidor HTTP según el rol."""
    if settings.role == "coordinator":
        return build_coordinator(settings)
    return build_shard(settings)
