"""Unit tests for core/utils/slug.py"""

import pytest

from mdsite.core.utils.slug import EMPTY_SLUG, slugify, unique_slug


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my_file_name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("Special! Ch@rs#", "special-chrs"),
    ("What's new?", "whats-new"),
    ("tabs\tand\n newlines", "tabs-and-newlines"),
    ("Ünïcode Title", "ünïcode-title"),
    ("", ""),
])
def test_slugify_basic(text, expected):
    """slugify lower-cases, strips disallowed characters, and hyphenates whitespace runs."""
    assert slugify(text) == expected


def test_slugify_preserves_hyphens():
    """slugify keeps existing hyphens intact."""
    assert slugify("already-slugified") == "already-slugified"


def test_unique_slug_appends_suffixes():
    """Repeated text gets -2, -3, ... in order of appearance."""
    taken: set[str] = set()
    assert [unique_slug("Overview", taken) for _ in range(3)] == ["overview", "overview-2", "overview-3"]


def test_unique_slug_skips_taken_suffix():
    """A suffix already used by another heading is skipped."""
    taken: set[str] = set()
    assert unique_slug("A 2", taken) == "a-2"
    assert unique_slug("A", taken) == "a"
    assert unique_slug("A", taken) == "a-3"


def test_unique_slug_empty_text():
    """Text with no allowed characters falls back to a fixed id."""
    taken: set[str] = set()
    assert unique_slug("!!!", taken) == EMPTY_SLUG
    assert unique_slug("???", taken) == f"{EMPTY_SLUG}-2"
