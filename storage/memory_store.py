"""
Índice invertido en memoria.
Estructura: palabra -> {doc_id: ocurrencias} y documento -> {word_id: ocurrencias}
"""
import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from storage.document import Document, Word
from storage.index_store import IndexStore
from storage.pattern import match_words

logger = logging.getLogger(__name__)


class MemoryIndexStore(IndexStore):
    """
    Índice invertido local en memoria.

    Responsabilidades:
    - Cargar vocabulario, documentos y ocurrencias (lo hace el indexador)
    - Resolver consultas de lectura según el contrato de IndexStore

    Las lecturas no toman el lock: el índice se considera inmutable
    mientras se consulta.
    """

    def __init__(self, instance_id: str = None):
        self.instance_id = instance_id

        # Vocabulario
        self.words: Dict[int, Word] = {}
        self.word_ids: Dict[str, int] = {}
        self.folded_word_ids: Dict[str, int] = {}

        # Almacén de documentos: doc_id -> Document
        self.documents: Dict[int, Document] = {}

        # Índice: word_id -> {doc_id: ocurrencias}
        self.postings: Dict[int, Dict[int, int]] = defaultdict(dict)

        # Índice directo: doc_id -> {word_id: ocurrencias}
        self.forward: Dict[int, Dict[int, int]] = defaultdict(dict)

        self._lock = threading.RLock()
        self._next_word_id = 1

    # ══════════════════════════════════════════════════════════
    # Carga (usada por el indexador externo y los tests)
    # ══════════════════════════════════════════════════════════

    def add_word(self, name: str, word_id: Optional[int] = None) -> Word:
        """
        Añade una palabra al vocabulario (o devuelve la existente).

        Args:
            name: Palabra
            word_id: ID explícito (opcional)

        Returns:
            Palabra registrada
        """
        with self._lock:
            if name in self.word_ids:
                return self.words[self.word_ids[name]]

            if word_id is None:
                word_id = self._next_word_id
            self._next_word_id = max(self._next_word_id, word_id + 1)

            word = Word(word_id, name)
            self.words[word_id] = word
            self.word_ids[name] = word_id
            # La primera palabra registrada gana en búsquedas sin mayúsculas
            self.folded_word_ids.setdefault(name.lower(), word_id)

            return word

    def add_document(self, document: Document, words: Iterable[str] = ()) -> int:
        """
        Registra un documento y, opcionalmente, sus palabras ya tokenizadas.

        Args:
            document: Documento
            words: Una entrada por ocurrencia

        Returns:
            Número de ocurrencias añadidas
        """
        added = 0
        with self._lock:
            self.documents[document.id] = document
            for name in words:
                word = self.add_word(name)
                self.add_occurrence(document.id, word.id)
                added += 1

        logger.debug(f"Documento {document.id} cargado: {added} ocurrencias")
        return added

    def add_occurrence(self, doc_id: int, word_id: int, count: int = 1):
        """Suma ocurrencias de una palabra en un documento."""
        if count <= 0:
            logger.debug(f"Ocurrencia ignorada: doc {doc_id}, palabra {word_id}, cuenta {count}")
            return
        with self._lock:
            self.postings[word_id][doc_id] = (
                self.postings[word_id].get(doc_id, 0) + count
            )
            self.forward[doc_id][word_id] = (
                self.forward[doc_id].get(word_id, 0) + count
            )

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

        for term in terms:
            if case_sensitive:
                word_id = self.word_ids.get(term)
            else:
                word_id = self.folded_word_ids.get(term.lower())

            if word_id is None:
                ignored.append(term)
            else:
                word_ids.append(word_id)

        return word_ids, ignored

    def documents_containing(self, word_ids: List[int]) -> List[Tuple[int, int]]:
        doc_counts: Dict[int, int] = defaultdict(int)

        for word_id in set(word_ids):
            for doc_id, count in self.postings.get(word_id, {}).items():
                if count > 0:
                    doc_counts[doc_id] += count

        return sorted(doc_counts.items(), key=lambda x: (-x[1], x[0]))

    def document_details(self, doc_ids: List[int]) -> List[Document]:
        return [
            self.documents[doc_id]
            for doc_id in doc_ids
            if doc_id in self.documents
        ]

    def missing_words(self, doc_id: int, word_ids: List[int]) -> List[int]:
        present = self.forward.get(doc_id, {})
        missing = []
        for word_id in word_ids:
            if word_id not in present and word_id not in missing:
                missing.append(word_id)
        return missing

    def words_from_ids(self, word_ids: List[int]) -> List[str]:
        return [
            self.words[word_id].name
            for word_id in word_ids
            if word_id in self.words
        ]

    def words_matching_pattern(
        self,
        pattern: str,
        case_sensitive: bool = False
    ) -> List[str]:
        return match_words(pattern, list(self.word_ids), case_sensitive)

    def documents_for_words(self, words: List[str]) -> Dict[int, List[str]]:
        result: Dict[int, List[str]] = {}

        for name in dict.fromkeys(words):
            word_id = self.word_ids.get(name)
            if word_id is None:
                continue
            for doc_id, count in self.postings.get(word_id, {}).items():
                if count > 0:
                    result.setdefault(doc_id, []).append(name)

        return result

    def get_stats(self) -> Dict:
        """Retorna estadísticas del índice."""
        return {
            "documents": len(self.documents),
            "words": len(self.words),
            "occurrences": sum(
                sum(docs.values()) for docs in self.postings.values()
            )
        }
