"""
Traducción de patrones con comodines a expresiones regulares.

'?' equivale a exactamente un carácter y '*' a cero o más. El patrón
se ancla a la palabra completa.
"""
import re
from functools import lru_cache
from typing import Iterable, List, Pattern

WILDCARDS = ("*", "?")


def has_wildcards(pattern: str) -> bool:
    """Verifica si el patrón contiene '*' o '?'."""
    return any(w in pattern for w in WILDCARDS)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, case_sensitive: bool = False) -> Pattern:
    """
    Compila un patrón con comodines.

    Args:
        pattern: Patrón, por ejemplo 't?st' o 'te*'
        case_sensitive: Si es False se compara sin distinguir mayúsculas

    Returns:
        Regex que debe usarse con fullmatch
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))

    flags = re.DOTALL
    if not case_sensitive:
        flags |= re.IGNORECASE

    return re.compile("".join(parts), flags)


def match_words(
    pattern: str,
    words: Iterable[str],
    case_sensitive: bool = False
) -> List[str]:
    """
    Filtra las palabras que satisfacen el patrón.

    Args:
        pattern: Patrón con comodines
        words: Vocabulario a recorrer
        case_sensitive: Distinguir mayúsculas

    Returns:
        Palabras que coinciden, en el orden de entrada
    """
    if not pattern or not pattern.strip():
        return []

    regex = compile_pattern(pattern, case_sensitive)
    return [word for word in words if regex.fullmatch(word)]
