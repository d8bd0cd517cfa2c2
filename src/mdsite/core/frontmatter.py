"""Metadata header extraction: split a raw file into (metadata, body)"""

import re
from typing import Any

import yaml

from mdsite.errors import MalformedMetadataError


FRONTMATTER_OPEN_RE = re.compile(r'\A---[ \t]*\r?\n')
FRONTMATTER_CLOSE_RE = re.compile(r'^---[ \t]*(?:\r?\n|\Z)', re.MULTILINE)


def parse(text: str) -> tuple[dict[str, Any], str]:
    """Return (metadata, raw_body). Files without a leading --- line have no header."""
    opened = FRONTMATTER_OPEN_RE.match(text)
    if not opened:
        return {}, text

    closed = FRONTMATTER_CLOSE_RE.search(text, opened.end())
    if not closed:
        raise MalformedMetadataError("Metadata header opened with '---' but never closed")

    header = text[opened.end():closed.start()]
    try:
        metadata = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise MalformedMetadataError(f"Invalid YAML metadata: {e}") from e
    if not isinstance(metadata, dict):
        raise MalformedMetadataError(
            f"Invalid YAML metadata: expected a mapping, got {type(metadata).__name__}"
        )
    return metadata, text[closed.end():]
