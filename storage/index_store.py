"""
Interfaz abstracta de lectura del índice invertido.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple
import logging

from storage.document import Document

logger = logging.getLogger(__name__)


class IndexStore(ABC):
    """
    Primitivas de consulta sobre vocabulario e índice invertido.

    Todas las operaciones son lecturas sin efectos secundarios y deben
    poder ejecutarse concurrentemente desde varias consultas. Las
    implementaciones elevan IndexStoreError ante fallos de lectura.
    """

    @abstractmethod
    def resolve_words(
        self,
        terms: List[str],
        case_sensitive: bool = False
    ) -> Tuple[List[int], List[str]]:
        """
        Traduce términos a IDs de palabra.

        Args:
            terms: Términos de la consulta
            case_sensitive: Comparación exacta o sin mayúsculas

        Returns:
            (word_ids, ignored) donde ignored son los términos sin
            coincidencia, en el orden de entrada
        """
        pass

    @abstractmethod
    def documents_containing(self, word_ids: List[int]) -> List[Tuple[int, int]]:
        """
        Documentos que contienen al menos una de las palabras.

        Args:
            word_ids: IDs de palabras

        Returns:
            Lista de (doc_id, ocurrencias) con la suma de ocurrencias de
            todas las palabras, ordenada por ocurrencias desc y doc_id asc
        """
        pass

    @abstractmethod
    def document_details(self, doc_ids: List[int]) -> List[Document]:
        """Metadata de los documentos pedidos (los inexistentes se omiten)."""
        pass

    @abstractmethod
    def missing_words(self, doc_id: int, word_ids: List[int]) -> List[int]:
        """IDs de word_ids que no aparecen en el documento."""
        pass

    @abstractmethod
    def words_from_ids(self, word_ids: List[int]) -> List[str]:
        """Nombres de las palabras, en el orden de word_ids."""
        pass

    @abstractmethod
    def words_matching_pattern(
        self,
        pattern: str,
        case_sensitive: bool = False
    ) -> List[str]:
        """
        Palabras del vocabulario que satisfacen un patrón con comodines.

        Returns:
            Lista vacía si el patrón está vacío o en blanco
        """
        pass

    @abstractmethod
    def documents_for_words(self, words: List[str]) -> Dict[int, List[str]]:
        """
        Agrupa por documento las palabras dadas que contiene.

        Returns:
            {doc_id: [palabras]} sin entradas vacías
        """
        pass

    def get_stats(self) -> Dict:
        """Estadísticas del índice (opcional)."""
        return {}
