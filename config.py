"""
Configuración del buscador particionado.

Valores por defecto del proceso. El entrypoint los sobreescribe con
variables de entorno al arrancar; las opciones de cada consulta viajan
en SearchOptions y nunca se guardan aquí.
"""

# Identidad de la instancia (se sobreescribe con INSTANCE_ID)
INSTANCE_ID = "searchapi-local"

# Configuración HTTP
HTTP_HOST = "0.0.0.0"
SHARD_PORT = 5137
COORDINATOR_PORT = 5100

# Configuración de búsqueda
DEFAULT_LIMIT = 20  # Límite por defecto si el cliente no envía 'limit'
DEFAULT_CASE_SENSITIVE = False
DEFAULT_INCLUDE_TIMESTAMPS = True

# Configuración del coordinador
SHARD_TIMEOUT = 5.0  # segundos por llamada a shard
COORDINATOR_DEADLINE = 15.0  # segundos para toda la consulta
DEFAULT_SHARD_INSTANCES = [
    "http://localhost:5137",
    "http://localhost:5138",
    "http://localhost:5139",
]

# Configuración de almacenamiento
DATABASE_PATH = "data/searchDB.db"
SNAPSHOT_PATH = ""  # Snapshot JSON opcional para el índice en memoria

# Configuración de logging
LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

import logging
import sys


def setup_logging(level: str = LOG_LEVEL):
    """Configura logging con soporte UTF-8."""
    handler = logging.StreamHandler(sys.stdout)

    # reconfigure solo existe en streams de texto reales
    if hasattr(handler.stream, 'reconfigure'):
        handler.stream.reconfigure(encoding='utf-8', errors='replace')

    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
