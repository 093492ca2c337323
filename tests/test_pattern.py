"""
Tests de comodines.
"""
import pytest

from storage.pattern import compile_pattern, has_wildcards, match_words


@pytest.mark.parametrize("pattern,expected", [
    ("te*", True),
    ("t?st", True),
    ("test", False),
    ("", False),
])
def test_has_wildcards(pattern, expected):
    assert has_wildcards(pattern) is expected


def test_question_mark_is_exactly_one_char():
    words = ["test", "tast", "tst", "toast", "Test"]

    assert match_words("t?st", words) == ["test", "tast", "Test"]


def test_star_matches_zero_or_more():
    words = ["te", "test", "tent", "ate", "xte"]

    assert match_words("te*", words) == ["te", "test", "tent"]


def test_case_sensitive_match():
    assert match_words("t?st", ["test", "Test"], case_sensitive=True) == ["test"]


def test_regex_characters_are_literal():
    words = ["a.b", "axb", "a+b"]

    assert match_words("a.b", words) == ["a.b"]
    assert match_words("a+?", words) == ["a+b"]


def test_pattern_anchored_to_whole_word():
    assert compile_pattern("est").fullmatch("test") is None
    assert compile_pattern("*est").fullmatch("test") is not None


@pytest.mark.parametrize("pattern", ["", "  "])
def test_blank_pattern_matches_nothing(pattern):
    assert match_words(pattern, ["a", " "]) == []
