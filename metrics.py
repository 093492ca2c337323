"""
Métricas Prometheus para monitoreo.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, REGISTRY
import time
from functools import wraps
import logging

logger = logging.getLogger(__name__)


# Definir métricas
search_requests = Counter(
    'shardsearch_search_requests_total',
    'Total de búsquedas',
    ['instance_id', 'kind']
)

search_latency = Histogram(
    'shardsearch_search_latency_seconds',
    'Latencia de búsquedas',
    ['instance_id', 'kind'],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0)
)

shard_failures = Counter(
    'shardsearch_shard_failures_total',
    'Consultas a shard que terminaron en fallo',
    ['shard_id', 'kind']
)

index_size = Gauge(
    'shardsearch_index_size',
    'Tamaño del índice local',
    ['instance_id', 'unit']
)


def track_search_metrics(kind: str):
    """
    Decorator para medir búsquedas de un método async.

    El instance_id se toma de self en cada llamada.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            instance_id = getattr(self, 'instance_id', None) or 'unknown'
            search_requests.labels(instance_id=instance_id, kind=kind).inc()
            start = time.time()
            try:
                return await func(self, *args, **kwargs)
            finally:
                latency = time.time() - start
                search_latency.labels(instance_id=instance_id, kind=kind).observe(latency)
        return wrapper
    return decorator


def update_index_size(instance_id: str, stats: dict):
    """Publica las estadísticas del índice como gauges."""
    for unit in ('documents', 'words', 'occurrences'):
        if unit in stats:
            index_size.labels(instance_id=instance_id, unit=unit).set(stats[unit])


def export_metrics() -> bytes:
    """Exporta métricas en formato Prometheus."""
    return generate_latest(REGISTRY)
