"""
Módulo de búsqueda: motor de consultas, opciones y resultados.
"""
from search.options import SearchOptions
from search.results import (
    DocumentHit,
    SearchResult,
    PatternDocumentHit,
    PatternSearchResult,
)
from search.query_engine import QueryEngine

__all__ = [
    "SearchOptions",
    "DocumentHit",
    "SearchResult",
    "PatternDocumentHit",
    "PatternSearchResult",
    "QueryEngine",
]
