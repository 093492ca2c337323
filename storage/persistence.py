"""
Persistencia del índice en memoria como snapshot JSON.
"""
import json
import logging
from pathlib import Path
from typing import Dict

from errors import IndexStoreError
from storage.document import Document, Word
from storage.memory_store import MemoryIndexStore

logger = logging.getLogger(__name__)


class IndexPersistence:
    """Gestiona carga y guardado de snapshots del índice."""

    @staticmethod
    def to_dict(store: MemoryIndexStore) -> Dict:
        """
        Serializa el índice.

        Formato:
            {
                "documents": [{"id", "url", "indexTime", "creationTime"}],
                "words": [{"id", "name"}],
                "occurrences": [[doc_id, word_id, count], ...]
            }
        """
        return {
            "documents": [doc.to_dict() for doc in store.documents.values()],
            "words": [word.to_dict() for word in store.words.values()],
            "occurrences": [
                [doc_id, word_id, count]
                for doc_id, words in store.forward.items()
                for word_id, count in words.items()
            ]
        }

    @staticmethod
    def from_dict(data: Dict, instance_id: str = None) -> MemoryIndexStore:
        """Reconstruye un índice a partir de su forma serializada."""
        store = MemoryIndexStore(instance_id=instance_id)

        for word_data in data.get("words", []):
            word = Word.from_dict(word_data)
            store.add_word(word.name, word.id)

        for doc_data in data.get("documents", []):
            store.add_document(Document.from_dict(doc_data))

        for doc_id, word_id, count in data.get("occurrences", []):
            store.add_occurrence(int(doc_id), int(word_id), int(count))

        return store

    @staticmethod
    def save(store: MemoryIndexStore, filepath: Path):
        """
        Guarda el índice a disco.

        Args:
            store: Índice a guardar
            filepath: Ruta del archivo
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(IndexPersistence.to_dict(store), f, indent=2, ensure_ascii=False)

        stats = store.get_stats()
        logger.info(
            f"Índice guardado: {filepath} "
            f"({stats['words']} palabras, {stats['documents']} docs)"
        )

    @staticmethod
    def load(filepath: Path, instance_id: str = None) -> MemoryIndexStore:
        """
        Carga el índice desde disco.

        Args:
            filepath: Ruta del archivo
            instance_id: ID de la instancia que lo servirá

        Returns:
            Índice cargado (vacío si el archivo no existe)

        Raises:
            IndexStoreError: Si el snapshot está corrupto
        """
        filepath = Path(filepath)

        if not filepath.exists():
            logger.info(f"Archivo no existe, creando índice vacío: {filepath}")
            return MemoryIndexStore(instance_id=instance_id)

        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
            store = IndexPersistence.from_dict(data, instance_id)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise IndexStoreError(f"Snapshot inválido {filepath}: {e}") from e

        stats = store.get_stats()
        logger.info(
            f"Índice cargado: {filepath} "
            f"({stats['words']} palabras, {stats['documents']} docs)"
        )
        return store
