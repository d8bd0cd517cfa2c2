"""Unit tests for core/repository.py"""

import pytest

from mdsite.core.models import Variant
from mdsite.core.repository import DocumentRepository
from mdsite.errors import MalformedMetadataError, NotFoundError, PipelineError, RepositoryError


def test_list_documents_filters_extensions(posts_dir, write_post):
    """Only .md and .mdx files are listed."""
    write_post("a.md", "A")
    write_post("b.mdx", "B")
    write_post("notes.txt", "ignored")
    (posts_dir / "drafts").mkdir()
    handles = DocumentRepository(posts_dir).list_documents()
    assert {(h.slug, h.variant) for h in handles} == {("a", Variant.baseline), ("b", Variant.extended)}


def test_list_documents_one_handle_per_slug(posts_dir, write_post):
    """When both files exist the Extended file wins."""
    write_post("post.md", "md")
    write_post("post.mdx", "mdx")
    (handle,) = DocumentRepository(posts_dir).list_documents()
    assert handle.variant is Variant.extended
    assert handle.path.name == "post.mdx"


def test_resolve_prefers_extended(posts_dir, write_post):
    """resolve picks .mdx over .md for the same slug."""
    write_post("post.md", "md")
    write_post("post.mdx", "mdx")
    assert DocumentRepository(posts_dir).resolve("post").variant is Variant.extended


def test_resolve_baseline(posts_dir, write_post):
    """resolve finds a .md file when no .mdx exists."""
    write_post("post.md", "md")
    handle = DocumentRepository(posts_dir).resolve("post")
    assert handle.variant is Variant.baseline
    assert handle.path == posts_dir / "post.md"


@pytest.mark.parametrize("slug", ["missing-slug", "", "../secret", "a/b", ".."])
def test_resolve_not_found(posts_dir, slug):
    """Unknown or path-like slugs raise NotFoundError and nothing else."""
    with pytest.raises(NotFoundError) as exc:
        DocumentRepository(posts_dir).resolve(slug)
    assert type(exc.value) is NotFoundError
    assert exc.value.slug == slug


def test_not_found_is_lookup_error(posts_dir):
    """NotFoundError can be caught as a LookupError."""
    with pytest.raises(LookupError):
        DocumentRepository(posts_dir).resolve("nope")


def test_load_splits_metadata(posts_dir, write_post):
    """load returns a Document with raw metadata and body."""
    write_post("hello.mdx", "# Hello\n", title="Hello", date="2024-01-01")
    doc = DocumentRepository(posts_dir).load("hello")
    assert doc.slug == "hello"
    assert doc.variant is Variant.extended
    assert doc.metadata == {"title": "Hello", "date": "2024-01-01"}
    assert doc.raw_body == "# Hello\n"


def test_load_reads_fresh_each_time(posts_dir, write_post):
    """Documents are not cached between calls."""
    write_post("p.md", "one")
    repo = DocumentRepository(posts_dir)
    first = repo.load("p")
    write_post("p.md", "two")
    assert repo.load("p").raw_body == "two"
    assert first.raw_body == "one"


def test_load_malformed_metadata_has_slug(posts_dir, write_post):
    """Metadata errors raised while loading carry the document slug."""
    write_post("bad.md", "---\ntitle: never closed\n")
    with pytest.raises(MalformedMetadataError) as exc:
        DocumentRepository(posts_dir).load("bad")
    assert exc.value.slug == "bad"


def test_load_undecodable_file(posts_dir):
    """Files that are not UTF-8 raise a per-document pipeline error."""
    (posts_dir / "bin.md").write_bytes(b"\xff\xfe\x00bad")
    with pytest.raises(PipelineError) as exc:
        DocumentRepository(posts_dir).load("bin")
    assert exc.value.slug == "bin"


def test_missing_content_dir(tmp_path):
    """Listing a missing directory is a RepositoryError; resolving is NotFoundError."""
    repo = DocumentRepository(tmp_path / "nope")
    with pytest.raises(RepositoryError):
        repo.list_documents()
    with pytest.raises(NotFoundError):
        repo.resolve("anything")
