"""Pipeline orchestration: per-document processing, batch runs, and static build output"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from mdsite.config import Settings
from mdsite.core.listing import ListingIndex
from mdsite.core.markup.parser import parse
from mdsite.core.models import Document, DocumentMetadata
from mdsite.core.render import PresentationNode, Registry, RenderTarget, render
from mdsite.core.repository import DocumentRepository
from mdsite.core.transform import default_stages, transform
from mdsite.errors import PipelineError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedDocument:
    document: Document
    metadata: DocumentMetadata
    output:   Union[str, PresentationNode]


@dataclass
class BatchReport:
    """Per-slug outcome of a batch run; one document's failure never hides another's result."""
    results:  dict[str, RenderedDocument] = field(default_factory=dict)
    failures: dict[str, PipelineError] = field(default_factory=dict)


def process_document(
    repository: DocumentRepository,
    slug: str,
    target: RenderTarget = RenderTarget.html,
    registry: Optional[Registry] = None,
    settings: Optional[Settings] = None,
    ) -> RenderedDocument:
    """Run resolve -> metadata -> parse -> transform -> render for one slug."""
    settings = settings or Settings()
    document = repository.load(slug)
    try:
        metadata = DocumentMetadata.from_raw(document.metadata, slug)
        tree = parse(
            document.raw_body,
            document.variant,
            parser_config=settings.parser_config,
            max_heading_level=settings.max_heading_level,
        )
        tree = transform(tree, default_stages(settings))
        output = render(tree, target, registry)
    except PipelineError as e:
        raise e.for_slug(slug)
    logger.debug("Rendered %s (%s, %s)", slug, document.variant.value, RenderTarget(target).value)
    return RenderedDocument(document=document, metadata=metadata, output=output)


def process_all(
    repository: DocumentRepository,
    target: RenderTarget = RenderTarget.html,
    registry: Optional[Registry] = None,
    settings: Optional[Settings] = None,
    ) -> BatchReport:
    """Process every document independently, collecting results and failures by slug."""
    settings = settings or Settings()
    slugs = sorted(ListingIndex(repository).all_slugs())

    def run(slug: str) -> tuple[str, Any]:
        try:
            return slug, process_document(repository, slug, target, registry, settings)
        except PipelineError as e:
            logger.warning("Failed %s", e.describe())
            return slug, e

    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        outcomes = list(pool.map(run, slugs))

    report = BatchReport()
    for slug, outcome in outcomes:
        if isinstance(outcome, PipelineError):
            report.failures[slug] = outcome
        else:
            report.results[slug] = outcome
    return report


def _output_text(output: Union[str, PresentationNode]) -> str:
    if isinstance(output, PresentationNode):
        return json.dumps(output.as_dict(), indent=2)
    return output


def run_build(
    settings: Settings,
    target: RenderTarget = RenderTarget.html,
    registry: Optional[Registry] = None,
    ) -> tuple[list[tuple[str, Path]], dict[str, PipelineError]]:
    """Render every document to output_dir and write index.json.

    Returns (written, failures): (slug, path) pairs for written documents and
    the failures from both the listing scan and document processing.
    """
    repository = DocumentRepository(Path(settings.content_dir))
    listing = ListingIndex(repository).scan()
    report = process_all(repository, target, registry, settings)

    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = "html" if RenderTarget(target) is RenderTarget.html else "json"

    written = []
    for slug in sorted(report.results):
        out_file = output_dir / f"{slug}.{suffix}"
        out_file.write_text(_output_text(report.results[slug].output), encoding='utf-8')
        written.append((slug, out_file))

    index = [s.model_dump(mode="json") for s in listing.summaries]
    (output_dir / "index.json").write_text(json.dumps(index, indent=2), encoding='utf-8')

    failures = {**listing.failures, **report.failures}
    return written, failures
