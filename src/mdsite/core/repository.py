"""Document discovery and slug resolution over a flat content directory"""

import logging
from pathlib import Path

from mdsite.core import frontmatter
from mdsite.core.models import VARIANT_BY_SUFFIX, Document, DocumentHandle, Variant
from mdsite.errors import MalformedMetadataError, NotFoundError, RepositoryError


logger = logging.getLogger(__name__)

# Resolution order: the Extended file wins when both exist.
RESOLVE_ORDER = ('.mdx', '.md')


class DocumentRepository:
    """Read-only access to the documents in one directory.

    The directory is fixed at construction; every call re-reads the
    filesystem and returns fresh objects.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _require_root(self) -> None:
        if not self.root.is_dir():
            raise RepositoryError(f"Content directory not found: {self.root}")

    def list_documents(self) -> list[DocumentHandle]:
        """Return one handle per slug for every .md/.mdx file; order is not guaranteed."""
        self._require_root()
        handles: dict[str, DocumentHandle] = {}
        for p in self.root.iterdir():
            variant = VARIANT_BY_SUFFIX.get(p.suffix)
            if variant is None or not p.is_file():
                continue
            current = handles.get(p.stem)
            if current is None or variant is Variant.extended:
                handles[p.stem] = DocumentHandle(slug=p.stem, path=p, variant=variant)
        return list(handles.values())

    def resolve(self, slug: str) -> DocumentHandle:
        """Map a slug to its backing file, or raise NotFoundError."""
        if not slug or '/' in slug or '\\' in slug or slug in ('.', '..'):
            raise NotFoundError(slug)
        for suffix in RESOLVE_ORDER:
            path = self.root / f"{slug}{suffix}"
            if path.is_file():
                return DocumentHandle(slug=slug, path=path, variant=VARIANT_BY_SUFFIX[suffix])
        raise NotFoundError(slug)

    def read(self, handle: DocumentHandle) -> str:
        try:
            return handle.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RepositoryError(f"Cannot read {handle.path}: {e}", handle.slug) from e

    def load(self, slug: str) -> Document:
        """Resolve and read a document, splitting its metadata header from the body."""
        return self.load_handle(self.resolve(slug))

    def load_handle(self, handle: DocumentHandle) -> Document:
        logger.debug("Loading %s from %s", handle.slug, handle.path)
        try:
            metadata, body = frontmatter.parse(self.read(handle))
        except MalformedMetadataError as e:
            raise e.for_slug(handle.slug)
        return Document(
            slug=handle.slug,
            variant=handle.variant,
            path=handle.path,
            metadata=metadata,
            raw_body=body,
        )
