"""
Configuración compartida de fixtures para pytest
"""
import pytest

from search.query_engine import QueryEngine
from storage.document import Document
from storage.memory_store import MemoryIndexStore
from storage.sqlite_store import SqliteIndexStore


# doc_id -> (url, palabras en orden de aparición, una por ocurrencia)
CORPUS = {
    1: ("/data/medium/126.txt", ["test", "apple", "test"]),
    2: ("/data/medium/15.txt", ["test", "tast", "Test"]),
    3: ("/data/medium/101.txt", ["toast", "ate", "testing", "te"]),
    4: ("/data/medium/notes.txt", ["tent"]),
    5: ("/data/medium/7.txt", ["apple", "apple", "banana"]),
}

# Escenario: apple x3 en doc 10; apple x1 + banana x2 en doc 11
SCENARIO = {
    10: ("/data/small/10.txt", ["apple", "apple", "apple"]),
    11: ("/data/small/11.txt", ["apple", "banana", "banana"]),
}


def make_document(doc_id: int, url: str) -> Document:
    return Document(
        doc_id,
        url,
        index_time="2024-05-01 10:00:00",
        creation_time="2024-04-01 09:00:00"
    )


def build_memory_store(docs: dict, instance_id: str = "test-shard") -> MemoryIndexStore:
    """Carga un MemoryIndexStore a partir de {doc_id: (url, palabras)}."""
    store = MemoryIndexStore(instance_id=instance_id)
    for doc_id, (url, words) in docs.items():
        store.add_document(make_document(doc_id, url), words)
    return store


def build_sqlite_store(docs: dict, path) -> SqliteIndexStore:
    """Carga una base SQLite con el mismo contenido y devuelve un store de lectura."""
    writer = SqliteIndexStore(str(path), read_only=False)
    writer.create_schema()
    for doc_id, (url, words) in docs.items():
        writer.insert_document(make_document(doc_id, url))
        writer.insert_occurrences(doc_id, [writer.insert_word(w) for w in words])
    return SqliteIndexStore(str(path))


@pytest.fixture
def memory_store():
    return build_memory_store(CORPUS)


@pytest.fixture
def sqlite_store(tmp_path):
    return build_sqlite_store(CORPUS, tmp_path / "searchDB.db")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """El mismo corpus sobre ambas implementaciones de IndexStore."""
    if request.param == "memory":
        return build_memory_store(CORPUS)
    return build_sqlite_store(CORPUS, tmp_path / "searchDB.db")


@pytest.fixture
def engine(store):
    return QueryEngine(store, instance_id="test-shard")


@pytest.fixture
def scenario_engine():
    return QueryEngine(build_memory_store(SCENARIO), instance_id="scenario")
