"""
Índice invertido sobre SQLite.

Esquema (el que produce el indexador):
    document(id, url, idxTime, creationTime)
    word(id, name)
    Occ(docId, wordId)   -- una fila por ocurrencia
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from errors import IndexStoreError
from storage.document import Document
from storage.index_store import IndexStore
from storage.pattern import match_words

logger = logging.getLogger(__name__)

# Límite conservador de parámetros por sentencia
MAX_SQL_PARAMS = 900

SCHEMA = [
    '''
    CREATE TABLE IF NOT EXISTS document (
        id INTEGER PRIMARY KEY,
        url TEXT NOT NULL,
        idxTime TEXT,
        creationTime TEXT
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS word (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS Occ (
        docId INTEGER NOT NULL,
        wordId INTEGER NOT NULL
    )
    ''',
    'CREATE INDEX IF NOT EXISTS idx_occ_word ON Occ (wordId, docId)',
    'CREATE INDEX IF NOT EXISTS idx_occ_doc ON Occ (docId, wordId)',
]


def _chunks(values: List, size: int = MAX_SQL_PARAMS):
    for start in range(0, len(values), size):
        yield values[start:start + size]


def _placeholders(values: List) -> str:
    return ",".join("?" for _ in values)


class SqliteIndexStore(IndexStore):
    """
    IndexStore respaldado por una base SQLite.

    Cada lectura abre su propia conexión de solo lectura, así varias
    consultas simultáneas nunca comparten cursor.
    """

    def __init__(self, database_path: str, read_only: bool = True):
        """
        Args:
            database_path: Ruta del archivo .db
            read_only: Abrir en modo solo lectura (False para cargar datos)
        """
        self.database_path = Path(database_path)
        self.read_only = read_only

        logger.info(
            f"SqliteIndexStore sobre {self.database_path} "
            f"(solo lectura={read_only})"
        )

    @contextmanager
    def _connect(self):
        """Conexión por operación; los errores salen como IndexStoreError."""
        conn = None
        try:
            if self.read_only:
                uri = f"{self.database_path.resolve().as_uri()}?mode=ro"
                conn = sqlite3.connect(uri, uri=True)
            else:
                conn = sqlite3.connect(str(self.database_path))
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Error de SQLite en {self.database_path}: {e}")
            raise IndexStoreError(f"Fallo leyendo el índice: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    # ══════════════════════════════════════════════════════════
    # Carga (indexador / tests)
    # ══════════════════════════════════════════════════════════

    def create_schema(self):
        """Crea las tablas si no existen."""
        with self._connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.commit()

    def insert_document(self, document: Document):
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO document (id, url, idxTime, creationTime) "
                "VALUES (?, ?, ?, ?)",
                (document.id, document.url, document.index_time,
                 document.creation_time)
            )
            conn.commit()

    def insert_word(self, name: str) -> int:
        """Inserta una palabra y retorna su ID (existente o nuevo)."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id FROM word WHERE name = ?", (name,)
            ).fetchone()
            if row:
                return row[0]
            cursor = conn.execute("INSERT INTO word (name) VALUES (?)", (name,))
            conn.commit()
            return cursor.lastrowid

    def insert_occurrences(self, doc_id: int, word_ids: Iterable[int]):
        """Inserta una fila en Occ por cada ocurrencia."""
        with self._connect() as conn:
            conn.executemany(
                "INSERT INTO Occ (docId, wordId) VALUES (?, ?)",
                [(doc_id, word_id) for word_id in word_ids]
            )
            conn.commit()

    # ══════════════════════════════════════════════════════════
    # Contrato IndexStore
    # ══════════════════════════════════════════════════════════

    def resolve_words(
        self,
        terms: List[str],
        case_sensitive: bool = False
    ) -> Tuple[List[int], List[str]]:
        word_ids = []
        ignored = []

        if case_sensitive:
            with self._connect() as conn:
                for term in terms:
                    row = conn.execute(
                        "SELECT id FROM word WHERE name = ? ORDER BY id LIMIT 1",
                        (term,)
                    ).fetchone()
                    if row:
                        word_ids.append(row[0])
                    else:
                        ignored.append(term)
            return word_ids, ignored

        # LOWER() de SQLite solo pliega ASCII; se pliega en Python (Unicode)
        # igual que en MemoryIndexStore y en los comodines
        with self._connect() as conn:
            folded: Dict[str, int] = {}
            for word_id, name in conn.execute("SELECT id, name FROM word ORDER BY id"):
                folded.setdefault(name.lower(), word_id)

        for term in terms:
            word_id = folded.get(term.lower())
            if word_id is None:
                ignored.append(term)
            else:
                word_ids.append(word_id)

        return word_ids, ignored

    def documents_containing(self, word_ids: List[int]) -> List[Tuple[int, int]]:
        unique_ids = list(dict.fromkeys(word_ids))
        if not unique_ids:
            return []

        counts: Dict[int, int] = {}
        with self._connect() as conn:
            for chunk in _chunks(unique_ids):
                rows = conn.execute(
                    f"SELECT docId, COUNT(wordId) FROM Occ "
                    f"WHERE wordId IN ({_placeholders(chunk)}) GROUP BY docId",
                    chunk
                )
                for doc_id, count in rows:
                    counts[doc_id] = counts.get(doc_id, 0) + count

        return sorted(counts.items(), key=lambda x: (-x[1], x[0]))

    def document_details(self, doc_ids: List[int]) -> List[Document]:
        if not doc_ids:
            return []

        found: Dict[int, Document] = {}
        with self._connect() as conn:
            for chunk in _chunks(list(dict.fromkeys(doc_ids))):
                rows = conn.execute(
                    f"SELECT id, url, idxTime, creationTime FROM document "
                    f"WHERE id IN ({_placeholders(chunk)})",
                    chunk
                )
                for doc_id, url, idx_time, creation_time in rows:
                    found[doc_id] = Document(
                        doc_id, url, idx_time or "", creation_time or ""
                    )

        return [found[doc_id] for doc_id in doc_ids if doc_id in found]

    def missing_words(self, doc_id: int, word_ids: List[int]) -> List[int]:
        unique_ids = list(dict.fromkeys(word_ids))
        if not unique_ids:
            return []

        present = set()
        with self._connect() as conn:
            for chunk in _chunks(unique_ids):
                rows = conn.execute(
                    f"SELECT DISTINCT wordId FROM Occ "
                    f"WHERE docId = ? AND wordId IN ({_placeholders(chunk)})",
                    [doc_id] + chunk
                )
                present.update(row[0] for row in rows)

        return [word_id for word_id in unique_ids if word_id not in present]

    def words_from_ids(self, word_ids: List[int]) -> List[str]:
        if not word_ids:
            return []

        names: Dict[int, str] = {}
        with self._connect() as conn:
            for chunk in _chunks(list(dict.fromkeys(word_ids))):
                rows = conn.execute(
                    f"SELECT id, name FROM word WHERE id IN ({_placeholders(chunk)})",
                    chunk
                )
                names.update(rows)

        return [names[word_id] for word_id in word_ids if word_id in names]

    def words_matching_pattern(
        self,
        pattern: str,
        case_sensitive: bool = False
    ) -> List[str]:
        if not pattern or not pattern.strip():
            return []

        with self._connect() as conn:
            vocabulary = [row[0] for row in conn.execute("SELECT name FROM word")]

        return match_words(pattern, vocabulary, case_sensitive)

    def documents_for_words(self, words: List[str]) -> Dict[int, List[str]]:
        names = list(dict.fromkeys(words))
        result: Dict[int, List[str]] = {}
        if not names:
            return result

        with self._connect() as conn:
            id_to_name: Dict[int, str] = {}
            for chunk in _chunks(names):
                rows = conn.execute(
                    f"SELECT id, name FROM word WHERE name IN ({_placeholders(chunk)})",
                    chunk
                )
                id_to_name.update(rows)

            for chunk in _chunks(list(id_to_name)):
                rows = conn.execute(
                    f"SELECT DISTINCT docId, wordId FROM Occ "
                    f"WHERE wordId IN ({_placeholders(chunk)})",
                    chunk
                )
                for doc_id, word_id in rows:
                    result.setdefault(doc_id, []).append(id_to_name[word_id])

        return result

    def get_stats(self) -> Dict:
        with self._connect() as conn:
            documents = conn.execute("SELECT COUNT(*) FROM document").fetchone()[0]
            words = conn.execute("SELECT COUNT(*) FROM word").fetchone()[0]
            occurrences = conn.execute("SELECT COUNT(*) FROM Occ").fetchone()[0]

        return {
            "documents": documents,
            "words": words,
            "occurrences": occurrences
        }
