"""Listing index: sorted document summaries and the set of valid slugs"""

import logging
from dataclasses import dataclass, field

from mdsite.core.models import DocumentSummary
from mdsite.core.repository import DocumentRepository
from mdsite.errors import PipelineError


logger = logging.getLogger(__name__)


@dataclass
class ListingReport:
    """Summaries sorted newest first, plus per-slug failures that were skipped."""
    summaries: list[DocumentSummary] = field(default_factory=list)
    failures:  dict[str, PipelineError] = field(default_factory=dict)


def sort_summaries(summaries: list[DocumentSummary]) -> list[DocumentSummary]:
    """Date descending, slug ascending among equal dates."""
    by_slug = sorted(summaries, key=lambda s: s.slug)
    return sorted(by_slug, key=lambda s: s.metadata.date, reverse=True)


class ListingIndex:
    """Navigation listing over a repository; reads headers only, never parses bodies."""

    def __init__(self, repository: DocumentRepository):
        self.repository = repository

    def scan(self) -> ListingReport:
        report = ListingReport()
        summaries = []
        for handle in self.repository.list_documents():
            try:
                summaries.append(self.repository.load_handle(handle).summary())
            except PipelineError as e:
                e.for_slug(handle.slug)
                logger.warning("Skipping %s: %s", handle.slug, e.describe())
                report.failures[handle.slug] = e
        report.summaries = sort_summaries(summaries)
        return report

    def sorted_summaries(self) -> list[DocumentSummary]:
        return self.scan().summaries

    def all_slugs(self) -> set[str]:
        """Every slug with a backing file; each resolves via DocumentRepository.resolve."""
        return {handle.slug for handle in self.repository.list_documents()}
