"""Integration tests for resolve -> parse -> transform -> render and the static build.

Canonical repository used below
-------------------------------
    posts/
      hello.md          Baseline; two "Overview" headings, one external link
      components.mdx    Extended; a <Callout> wrapping markdown
      broken.mdx        Extended; <Callout> never closed
      older.md          Baseline; literal <Widget/> text

Dates: hello 2024-06-15, components 2024-01-01, broken 2024-03-01, older 2023-12-31.
"""

import json

import pytest

from mdsite.config import Settings
from mdsite.core.listing import ListingIndex
from mdsite.core.pipeline import process_all, process_document, run_build
from mdsite.core.render import Override, PresentationNode, RenderTarget
from mdsite.core.repository import DocumentRepository
from mdsite.errors import NotFoundError, UnclosedComponentError, UnsupportedNodeError


HELLO_MD = """\
# Overview

Read the [docs](https://docs.example.com) or the [about page](/about).

# Overview

Again.
"""

COMPONENTS_MDX = """\
Intro paragraph.

<Callout type="tip">
  Remember **this**.
</Callout>
"""

BROKEN_MDX = """\
<Callout type="warn">
This callout is never closed.
"""

OLDER_MD = """\
Literal <Widget/> text.
"""

REGISTRY = {"Callout": Override(props={"role": "note"})}


@pytest.fixture(name="repo")
def repo_fixture(posts_dir, write_post):
    write_post("hello.md", HELLO_MD, title="Hello", date="2024-06-15", description="First post")
    write_post("components.mdx", COMPONENTS_MDX, title="Components", date="2024-01-01")
    write_post("broken.mdx", BROKEN_MDX, title="Broken", date="2024-03-01")
    write_post("older.md", OLDER_MD, title="Older", date="2023-12-31")
    return DocumentRepository(posts_dir)


def test_process_baseline_to_html(repo):
    """A Baseline document renders with unique heading ids and hardened external links."""
    rendered = process_document(repo, "hello")
    assert rendered.metadata.title == "Hello"
    assert '<h1 id="overview">' in rendered.output
    assert '<h1 id="overview-2">' in rendered.output
    assert 'href="https://docs.example.com" target="_blank" rel="noopener noreferrer"' in rendered.output
    assert '<a href="/about">about page</a>' in rendered.output


def test_process_is_deterministic(repo):
    """Processing the same document twice gives identical output."""
    assert process_document(repo, "hello").output == process_document(repo, "hello").output


def test_process_baseline_literal_component_text(repo):
    """Invocation-shaped text in a Baseline document is rendered verbatim."""
    assert process_document(repo, "older").output == "<p>Literal &lt;Widget/&gt; text.</p>"


def test_process_extended_to_tree(repo):
    """An Extended document renders to a presentation tree with the component resolved."""
    rendered = process_document(repo, "components", RenderTarget.tree, REGISTRY)
    assert isinstance(rendered.output, PresentationNode)
    para, callout = rendered.output.children
    assert para.tag == "p"
    assert callout.tag == "Callout"
    assert callout.props == {"role": "note", "type": "tip"}
    (inner,) = callout.children
    assert inner.tag == "p"


def test_process_extended_components_in_html_mode(repo):
    """Serialized mode rejects component invocations, naming the document."""
    with pytest.raises(UnsupportedNodeError) as exc:
        process_document(repo, "components")
    assert exc.value.slug == "components"


def test_process_missing_slug(repo):
    """A missing slug surfaces as NotFoundError."""
    with pytest.raises(NotFoundError):
        process_document(repo, "missing-slug")


def test_process_unclosed_component(repo):
    """An unterminated invocation fails parse with the slug and stage attached."""
    with pytest.raises(UnclosedComponentError) as exc:
        process_document(repo, "broken", RenderTarget.tree, REGISTRY)
    assert exc.value.slug == "broken"
    assert exc.value.describe().startswith("[markup] broken:")


@pytest.mark.parametrize("workers", [1, 4])
def test_process_all_isolates_failures(repo, workers):
    """One broken document does not stop the others in a batch."""
    report = process_all(repo, RenderTarget.tree, REGISTRY, Settings(max_workers=workers))
    assert set(report.results) == {"hello", "components", "older"}
    assert set(report.failures) == {"broken"}
    assert isinstance(report.failures["broken"], UnclosedComponentError)


def test_listing_over_canonical_repo(repo):
    """The listing includes every document with valid metadata, newest first."""
    slugs = [s.slug for s in ListingIndex(repo).sorted_summaries()]
    assert slugs == ["hello", "broken", "components", "older"]


def test_run_build_writes_outputs(repo, posts_dir, tmp_path):
    """run_build writes one file per successful document plus index.json."""
    settings = Settings(content_dir=str(posts_dir), output_dir=str(tmp_path / "dist"))
    written, failures = run_build(settings, RenderTarget.html)

    assert [slug for slug, _ in written] == ["hello", "older"]
    assert set(failures) == {"broken", "components"}
    assert (tmp_path / "dist" / "hello.html").read_text().startswith('<h1 id="overview">')

    index = json.loads((tmp_path / "dist" / "index.json").read_text())
    assert [entry["slug"] for entry in index] == ["hello", "broken", "components", "older"]
    assert index[0]["metadata"]["description"] == "First post"
    assert index[0]["variant"] == "baseline"


def test_run_build_tree_target(repo, posts_dir, tmp_path):
    """The tree target writes JSON presentation trees."""
    settings = Settings(content_dir=str(posts_dir), output_dir=str(tmp_path / "dist"))
    written, _ = run_build(settings, RenderTarget.tree, REGISTRY)
    assert {slug for slug, _ in written} == {"hello", "components", "older"}
    tree = json.loads((tmp_path / "dist" / "components.json").read_text())
    assert tree["children"][1]["tag"] == "Callout"
