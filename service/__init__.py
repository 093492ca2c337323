"""
Paquete service - APIs HTTP del buscador.

Módulos:
- shard_http: API de un shard sobre su QueryEngine
- coordinator_http: API agregada del coordinador
- http_utils: parseo de parámetros y respuestas de error
"""

from service.shard_http import ShardHTTP
from service.coordinator_http import CoordinatorHTTP

__all__ = ['ShardHTTP', 'CoordinatorHTTP']
