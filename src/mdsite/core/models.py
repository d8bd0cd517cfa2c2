"""Document data models shared by the repository, listing, and pipeline"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from mdsite.errors import MalformedMetadataError


class Variant(str, Enum):
    """Markup dialect of a document, derived from its file extension"""
    baseline = "baseline"
    extended = "extended"


VARIANT_BY_SUFFIX: dict[str, Variant] = {
    '.md':  Variant.baseline,
    '.mdx': Variant.extended,
}


class DocumentMetadata(BaseModel):
    """Recognized header keys; unknown keys pass through untouched."""
    model_config = ConfigDict(extra="allow")

    title:       str
    date:        str                  # ISO-like, sorts lexicographically
    description: Optional[str] = None
    thumbnail:   Optional[str] = None

    @field_validator("title", "date", "description", "thumbnail", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        # YAML turns bare 2024-01-01 into a date object and 1984 into an int
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @classmethod
    def from_raw(cls, raw: dict[str, Any], slug: Optional[str] = None) -> "DocumentMetadata":
        """Validate a raw header mapping, raising MalformedMetadataError on missing/invalid keys."""
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            problems = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise MalformedMetadataError(f"Invalid metadata ({problems})", slug) from e


class DocumentSummary(BaseModel):
    """Listing projection of a document: identity and metadata, never body content."""
    slug:     str
    variant:  Variant
    metadata: DocumentMetadata


@dataclass(frozen=True)
class DocumentHandle:
    """The single backing file for a slug."""
    slug:    str
    path:    Path
    variant: Variant


@dataclass(frozen=True)
class Document:
    """A freshly read document; lives for one processing call."""
    slug:     str
    variant:  Variant
    path:     Path
    metadata: dict[str, Any]       # raw header mapping, schema-agnostic
    raw_body: str

    def summary(self) -> DocumentSummary:
        return DocumentSummary(
            slug=self.slug,
            variant=self.variant,
            metadata=DocumentMetadata.from_raw(self.metadata, self.slug),
        )
