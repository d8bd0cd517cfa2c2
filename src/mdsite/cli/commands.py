"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.listing import ListingIndex
from mdsite.core.pipeline import process_document, run_build
from mdsite.core.render import PresentationNode, RenderTarget, identity_registry
from mdsite.core.repository import DocumentRepository
from mdsite.errors import NotFoundError, PipelineError


ContentDir = Annotated[Optional[str], typer.Option("--content-dir", help="Directory holding .md/.mdx documents")]
Components = Annotated[
    Optional[list[str]],
    typer.Option("--component", "-c", help="Component name to render as-is (repeatable; replaces configured components)"),
]


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail("Could not load configuration", e)


def _repository(settings: Settings) -> DocumentRepository:
    return DocumentRepository(Path(settings.content_dir))


def _echo_failures(failures: dict[str, PipelineError]) -> None:
    for slug in sorted(failures):
        typer.echo(f"  failed: {failures[slug].describe()}", err=True)


def list_cmd(content_dir: ContentDir = None):
    """List documents newest first: date, slug, title."""
    settings = _settings(overrides={"content_dir": content_dir})
    try:
        report = ListingIndex(_repository(settings)).scan()
    except PipelineError as e:
        _fail(e.describe())
    _echo_failures(report.failures)
    if not report.summaries:
        typer.echo("No documents found.")
        raise typer.Exit(1)
    for s in report.summaries:
        typer.echo(f"{s.metadata.date}  {s.slug}  {s.metadata.title}")


def slugs_cmd(content_dir: ContentDir = None):
    """Print every document slug, one per line."""
    settings = _settings(overrides={"content_dir": content_dir})
    try:
        slugs = ListingIndex(_repository(settings)).all_slugs()
    except PipelineError as e:
        _fail(e.describe())
    for slug in sorted(slugs):
        typer.echo(slug)


def render_cmd(
    slug: Annotated[str, typer.Argument(help="Document slug (file name without extension)")],
    content_dir: ContentDir = None,
    target: Annotated[RenderTarget, typer.Option("--target", help="html or tree")] = RenderTarget.html,
    component: Components = None,
    ):
    """Render one document to HTML or a JSON presentation tree."""
    settings = _settings(overrides={"content_dir": content_dir, "components": component or None})
    registry = identity_registry(settings.components)
    try:
        rendered = process_document(_repository(settings), slug, target, registry, settings)
    except NotFoundError:
        _fail(f"Document not found: {slug}")
    except PipelineError as e:
        _fail(e.describe())
    if isinstance(rendered.output, PresentationNode):
        typer.echo(json.dumps(rendered.output.as_dict(), indent=2))
    else:
        typer.echo(rendered.output)


def build_cmd(
    content_dir: ContentDir = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    target: Annotated[RenderTarget, typer.Option("--target", help="html or tree")] = RenderTarget.html,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Documents processed concurrently")] = None,
    component: Components = None,
    ):
    """Render every document plus index.json; failed documents are reported, not fatal to others."""
    settings = _settings(overrides={"content_dir": content_dir, "output_dir": out, "max_workers": workers,
                                   "components": component or None})
    try:
        written, failures = run_build(settings, target, identity_registry(settings.components))
    except PipelineError as e:
        _fail(e.describe())
    for slug, path in written:
        typer.echo(f"  {slug} -> {path}")
    typer.echo(f"Built {len(written)} document(s) to {settings.output_dir}/")
    if failures:
        _echo_failures(failures)
        raise typer.Exit(1)
