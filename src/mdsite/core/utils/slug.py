"""Slug generation for heading identifiers"""

import re


_DISALLOWED_RE = re.compile(r'[^\w\s-]')
_WHITESPACE_RE = re.compile(r'\s+')

EMPTY_SLUG = "section"


def slugify(text: str) -> str:
    """Lower-case text, drop characters outside word/space/hyphen, hyphenate whitespace runs."""
    text = _DISALLOWED_RE.sub('', text.lower()).strip()
    return _WHITESPACE_RE.sub('-', text)


def unique_slug(text: str, taken: set[str]) -> str:
    """Return slugify(text) suffixed with -2, -3, ... until absent from taken; records the result."""
    base = slugify(text) or EMPTY_SLUG
    candidate, n = base, 1
    while candidate in taken:
        n += 1
        candidate = f"{base}-{n}"
    taken.add(candidate)
    return candidate
