"""
Módulo de particionado: clientes de shard, fusión y coordinador.
"""
from sharding.shard_client import (
    ShardClient,
    LocalShardClient,
    HTTPShardClient,
    ShardFailure,
    ShardRequest,
)
from sharding.result_merger import merge_search_results, merge_pattern_results
from sharding.shard_coordinator import PartitionCoordinator
from sharding.shard_config import (
    ShardConfig,
    load_shard_config,
    parse_shard_instances,
    build_http_clients,
)

__all__ = [
    "ShardClient",
    "LocalShardClient",
    "HTTPShardClient",
    "ShardFailure",
    "ShardRequest",
    "merge_search_results",
    "merge_pattern_results",
    "PartitionCoordinator",
    "ShardConfig",
    "load_shard_config",
    "parse_shard_instances",
    "build_http_clients",
]
