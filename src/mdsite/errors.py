"""Error taxonomy for the document pipeline.

Every error carries the stage that raised it and, once known, the slug of the
document being processed, so batch callers can report failures per document.
"""

from typing import Optional


class PipelineError(Exception):
    """Base exception for all per-document pipeline failures."""

    stage = "pipeline"

    def __init__(self, message: str, slug: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.slug = slug

    def for_slug(self, slug: str) -> "PipelineError":
        """Attach the document slug if it is not set yet; returns self for re-raising."""
        if self.slug is None:
            self.slug = slug
        return self

    def describe(self) -> str:
        where = f" {self.slug}:" if self.slug else ""
        return f"[{self.stage}]{where} {self.message}"


class RepositoryError(PipelineError):
    """Raised when the content directory itself cannot be read."""

    stage = "repository"


class NotFoundError(PipelineError, LookupError):
    """Raised when a slug has no backing .md or .mdx file."""

    stage = "repository"

    def __init__(self, slug: str):
        super().__init__(f"Document '{slug}' not found", slug)


class MalformedMetadataError(PipelineError):
    """Raised when a metadata header is unterminated, unparseable, or missing required keys."""

    stage = "metadata"


class UnclosedComponentError(PipelineError):
    """Raised when an Extended document opens a component invocation that never closes."""

    stage = "markup"

    def __init__(self, name: str, slug: Optional[str] = None):
        super().__init__(f"Component <{name}> is never closed", slug)
        self.name = name


class UnknownComponentError(PipelineError):
    """Raised when a component invocation has no entry in the render registry."""

    stage = "render"

    def __init__(self, name: str, slug: Optional[str] = None):
        super().__init__(f"Component <{name}> is not in the registry", slug)
        self.name = name


class UnsupportedNodeError(PipelineError):
    """Raised when a render target cannot express a node (e.g. components in HTML mode)."""

    stage = "render"

    def __init__(self, node_type: str, slug: Optional[str] = None):
        super().__init__(f"Node '{node_type}' cannot be serialized to HTML", slug)
        self.node_type = node_type
