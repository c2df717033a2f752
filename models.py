"""Shared typed models for the catalog pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from patterns import arxiv_abs_url, normalize_title

PAPER_COLUMNS: tuple[str, ...] = ("paper", "code", "models", "dataset", "project", "date")


@dataclass(frozen=True, slots=True)
class CandidatePaper:
    """Paper discovered by the search feed, not yet reconciled."""

    paper_id: str
    title: str
    abstract: str
    published_at: datetime | None
    categories: frozenset[str] = frozenset()
    url: str = ""
    authors: tuple[str, ...] = ()

    @property
    def reference_url(self) -> str:
        return self.url or arxiv_abs_url(self.paper_id)


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One row of the papers table.

    ``paper_id`` is None when the title link is not an arXiv reference; such
    rows are written back but never used for duplicate matching.
    """

    paper_id: str | None
    title: str
    url: str
    date: str
    code_url: str = ""
    project_url: str = ""
    models: tuple[str, ...] = ()
    dataset: tuple[str, ...] = ()
    source_line: str | None = field(default=None, compare=False, repr=False)

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)

    @property
    def matchable(self) -> bool:
        return self.paper_id is not None


@dataclass(frozen=True, slots=True)
class UnparsedRow:
    """A table line that failed to parse, kept verbatim.

    ``after`` is the source line of the parsed row it followed, or None when
    it preceded every parsed row.
    """

    after: str | None
    text: str


@dataclass(frozen=True, slots=True)
class Catalog:
    """Parsed catalog document: table entries plus the text around the table.

    When the document has a papers heading but no table, ``has_section`` is
    True and the prologue ends where a new table belongs inside that section.
    """

    entries: tuple[CatalogEntry, ...] = ()
    prologue: str = ""
    epilogue: str = ""
    header: tuple[str, ...] | None = None
    columns: tuple[str, ...] = PAPER_COLUMNS
    newline: str = "\n"
    terminated: bool = True
    unparsed_rows: tuple[UnparsedRow, ...] = ()
    has_section: bool = False

    @property
    def has_table(self) -> bool:
        return self.header is not None


@dataclass(frozen=True, slots=True)
class MatchDecision:
    """Outcome of classifying one candidate against a catalog."""

    candidate: CandidatePaper
    accepted: bool
    reason: str
    match: CatalogEntry | None = None
    score: float | None = None


@dataclass(frozen=True, slots=True)
class EnrichedFields:
    code_url: str = ""
    project_url: str = ""
    models: tuple[str, ...] = ()
    dataset: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Summary of one reconciliation run.

    ``document`` is None when no entry was accepted, in which case nothing
    should be persisted.
    """

    accepted: tuple[CatalogEntry, ...]
    duplicates: tuple[MatchDecision, ...]
    rejected: tuple[str, ...]
    deadline_hit: bool = False
    document: str | None = None
