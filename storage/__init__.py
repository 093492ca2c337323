"""
Módulo de almacenamiento del índice invertido.
Contrato de lectura, implementaciones en memoria y SQLite, y persistencia.
"""
from storage.document import Document, Word
from storage.index_store import IndexStore
from storage.memory_store import MemoryIndexStore
from storage.sqlite_store import SqliteIndexStore
from storage.pattern import compile_pattern, has_wildcards, match_words
from storage.persistence import IndexPersistence

__all__ = [
    "Document",
    "Word",
    "IndexStore",
    "MemoryIndexStore",
    "SqliteIndexStore",
    "compile_pattern",
    "has_wildcards",
    "match_words",
    "IndexPersistence",
]
