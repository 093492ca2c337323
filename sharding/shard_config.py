"""
Lista de shards del coordinador.

Se carga una vez al arrancar el proceso, desde un YAML:

    shards:
      - id: shard-1
        url: http://searchapi-1:5137
      - id: shard-2
        url: http://searchapi-2:5137

o desde una lista separada por comas (SHARD_INSTANCES).
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import yaml

import config
from errors import ValidationError
from sharding.shard_client import HTTPShardClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShardConfig:
    """Dirección de un shard."""
    id: str
    url: str


def parse_shard_instances(value: str) -> List[ShardConfig]:
    """
    Parsea "http://h1:5137,http://h2:5138" a ShardConfig con IDs shard-N.

    Args:
        value: URLs separadas por comas

    Returns:
        Lista de ShardConfig
    """
    urls = [url.strip() for url in value.split(",") if url.strip()]
    return [ShardConfig(f"shard-{i}", url) for i, url in enumerate(urls, start=1)]


def load_shard_config(path: Path) -> List[ShardConfig]:
    """
    Carga la lista de shards desde YAML.

    Raises:
        ValidationError: Si el archivo no tiene el formato esperado
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    entries = data.get("shards") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise ValidationError(f"{path}: se esperaba una lista 'shards'", "shards")

    shards = []
    seen = set()
    for i, entry in enumerate(entries, start=1):
        if isinstance(entry, str):
            entry = {"url": entry}
        if not isinstance(entry, dict) or not entry.get("url"):
            raise ValidationError(f"{path}: shard #{i} sin 'url'", "shards")

        shard_id = str(entry.get("id") or f"shard-{i}")
        if shard_id in seen:
            raise ValidationError(f"{path}: shard duplicado '{shard_id}'", "shards")
        seen.add(shard_id)

        shards.append(ShardConfig(shard_id, str(entry["url"])))

    logger.info(f"{len(shards)} shards cargados desde {path}")
    return shards


def default_shards() -> List[ShardConfig]:
    return parse_shard_instances(",".join(config.DEFAULT_SHARD_INSTANCES))


def build_http_clients(
    shards: List[ShardConfig],
    timeout: float = config.SHARD_TIMEOUT
) -> List[HTTPShardClient]:
    """Crea un HTTPShardClient por shard."""
    return [HTTPShardClient(shard.id, shard.url, timeout=timeout) for shard in shards]
