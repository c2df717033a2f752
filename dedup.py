"""Decide whether a candidate paper is already in the catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from models import CandidatePaper, Catalog, CatalogEntry, MatchDecision
from patterns import normalize_title, strip_arxiv_version
from similarity import is_similar, similarity

LOGGER = logging.getLogger(__name__)


def classify(
    candidate: CandidatePaper,
    catalog: Catalog | Sequence[CatalogEntry],
    threshold: float | None = None,
) -> MatchDecision:
    """Classify a candidate as duplicate or accepted.

    Checks run cheapest first and the first hit wins: exact id, exact
    normalized title, then fuzzy title similarity. Entries without an arXiv
    id take no part in matching.
    """
    entries = catalog.entries if isinstance(catalog, Catalog) else catalog
    matchable = [entry for entry in entries if entry.matchable]

    candidate_id = strip_arxiv_version(candidate.paper_id)
    for entry in matchable:
        if strip_arxiv_version(entry.paper_id) == candidate_id:
            LOGGER.info("Duplicate arXiv id: %s", candidate.paper_id)
            return MatchDecision(candidate, accepted=False, reason="id", match=entry)

    normalized = normalize_title(candidate.title)
    for entry in matchable:
        if entry.normalized_title == normalized:
            LOGGER.info("Duplicate title: %s", candidate.title)
            return MatchDecision(candidate, accepted=False, reason="title", match=entry)

    for entry in matchable:
        if is_similar(normalized, entry.normalized_title, threshold):
            score = similarity(normalized, entry.normalized_title)
            LOGGER.info(
                "Similar title found: %r ~ %r (score=%.3f)", candidate.title, entry.title, score
            )
            return MatchDecision(candidate, accepted=False, reason="similar", match=entry, score=score)

    return MatchDecision(candidate, accepted=True, reason="accepted")


def dedupe_batch(candidates: Iterable[CandidatePaper]) -> list[CandidatePaper]:
    """Drop repeats within one feed batch by id or normalized title; first wins."""
    seen_ids: set[str] = set()
    seen_titles: set[str] = set()
    unique: list[CandidatePaper] = []
    for candidate in candidates:
        paper_id = strip_arxiv_version(candidate.paper_id)
        title = normalize_title(candidate.title)
        if paper_id in seen_ids or title in seen_titles:
            continue
        seen_ids.add(paper_id)
        seen_titles.add(title)
        unique.append(candidate)
    return unique
