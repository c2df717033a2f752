"""Best-effort extraction of code links, project pages, models and datasets.

Enrichment never decides whether a paper is accepted: every sub-step is
isolated, and a failing step leaves its field empty. The only hard rejection
comes from ``validate`` (missing id, empty or overlong title, missing date).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC
from typing import TypeVar
from urllib.parse import urlparse

from link_probe import LinkProbe
from models import CandidatePaper, CatalogEntry, EnrichedFields
from patterns import (
    CODE_HOSTS,
    CODE_LINK_RULES,
    DATASET_RULES,
    DOI_HOSTS,
    MODEL_RULES,
    PAPER_HOSTS,
    PROJECT_SUFFIXES,
    URL_TOKEN,
    clean_url,
    collapse_whitespace,
    collect,
    first_match,
    host_matches,
    is_valid_url,
    strip_arxiv_version,
    strip_urls,
    url_host,
)

MAX_TITLE_LENGTH = 200
MAX_MODELS = 3
MAX_DATASETS = 2
ABSTRACT_MATCHES_PER_RULE = 2
DATASET_MATCHES_PER_RULE = 2
DATASET_MIN_LENGTH = 3
DATASET_MAX_LENGTH = 30

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class ValidationRejection(ValueError):
    """Candidate fails hard validation and must not enter the catalog."""


def validate(candidate: CandidatePaper) -> None:
    if not candidate.paper_id or not candidate.paper_id.strip():
        raise ValidationRejection("missing paper id")
    title = candidate.title.strip()
    if not title:
        raise ValidationRejection(f"empty title for paper_id={candidate.paper_id}")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationRejection(
            f"title longer than {MAX_TITLE_LENGTH} characters for paper_id={candidate.paper_id}"
        )
    if candidate.published_at is None:
        raise ValidationRejection(f"missing publication date for paper_id={candidate.paper_id}")


def extract_code_url(text: str) -> str:
    found = first_match(CODE_LINK_RULES, text)
    return clean_url(found) if found else ""


def extract_project_url(text: str) -> str:
    """First path-bearing .io/.com/.org/.net link that is not code, paper or DOI."""
    for token in URL_TOKEN.findall(text):
        url = clean_url(token)
        host = url_host(url)
        if not host or not host.endswith(PROJECT_SUFFIXES):
            continue
        if not urlparse(url).path.startswith("/"):
            continue
        if host_matches(host, CODE_HOSTS + PAPER_HOSTS + DOI_HOSTS):
            continue
        return url
    return ""


def extract_models(title: str, abstract: str) -> tuple[str, ...]:
    """Model tokens, title matches first, upper-cased, at most three."""
    matches = collect(MODEL_RULES, strip_urls(title))
    matches += collect(MODEL_RULES, strip_urls(abstract), per_rule_limit=ABSTRACT_MATCHES_PER_RULE)
    return _distinct((match.upper() for match in matches), MAX_MODELS)


def extract_datasets(text: str) -> tuple[str, ...]:
    """Dataset names from the known vocabulary and two phrase heuristics."""
    matches = collect(DATASET_RULES, strip_urls(text), per_rule_limit=DATASET_MATCHES_PER_RULE)
    cleaned = (collapse_whitespace(match) for match in matches)
    return _distinct(
        (name for name in cleaned if DATASET_MIN_LENGTH <= len(name) <= DATASET_MAX_LENGTH),
        MAX_DATASETS,
    )


class Enricher:
    """Populate auxiliary catalog fields for one candidate at a time."""

    def __init__(self, probe: LinkProbe | None = None) -> None:
        self.probe = probe

    def enrich(self, candidate: CandidatePaper) -> EnrichedFields:
        LOGGER.info("Enriching info for: %s", candidate.title)
        text = f"{candidate.title} {candidate.abstract or ''}"

        code_url = _attempt("code link", candidate, lambda: extract_code_url(text), "")
        project_url = _attempt("project page", candidate, lambda: extract_project_url(text), "")
        models = _attempt(
            "models", candidate, lambda: extract_models(candidate.title, candidate.abstract or ""), ()
        )
        dataset = _attempt("datasets", candidate, lambda: extract_datasets(text), ())

        if code_url:
            code_url = self._verify_code_url(code_url)

        fields = EnrichedFields(
            code_url=code_url if is_valid_url(code_url) else "",
            project_url=project_url if is_valid_url(project_url) else "",
            models=models,
            dataset=dataset,
        )
        LOGGER.info(
            "Enriched paper_id=%s code=%s project=%s models=%s dataset=%s",
            candidate.paper_id,
            fields.code_url or "-",
            fields.project_url or "-",
            ", ".join(fields.models) or "-",
            ", ".join(fields.dataset) or "-",
        )
        return fields

    def build_entry(self, candidate: CandidatePaper) -> CatalogEntry:
        """Validate, enrich and convert a candidate into a catalog entry."""
        validate(candidate)
        fields = self.enrich(candidate)
        return CatalogEntry(
            paper_id=strip_arxiv_version(candidate.paper_id),
            title=candidate.title.strip(),
            url=candidate.reference_url,
            date=_calendar_date(candidate),
            code_url=fields.code_url,
            project_url=fields.project_url,
            models=fields.models,
            dataset=fields.dataset,
        )

    def _verify_code_url(self, code_url: str) -> str:
        if self.probe is None:
            return code_url
        try:
            result = self.probe.probe(code_url)
        except Exception as exc:  # probe failures never block acceptance
            LOGGER.warning("Code link verification failed for %s: %s", code_url, exc)
            return code_url
        if result.reachable is False:
            LOGGER.info("Dropping unreachable code link: %s", code_url)
            return ""
        return code_url


def _attempt(label: str, candidate: CandidatePaper, step: Callable[[], T], default: T) -> T:
    try:
        return step()
    except Exception as exc:
        LOGGER.warning(
            "Extraction of %s failed for paper_id=%s: %s", label, candidate.paper_id, exc
        )
        return default


def _distinct(values, limit: int) -> tuple[str, ...]:
    seen: dict[str, str] = {}
    for value in values:
        key = value.lower()
        if key not in seen:
            seen[key] = value
        if len(seen) >= limit:
            break
    return tuple(seen.values())


def _calendar_date(candidate: CandidatePaper) -> str:
    published = candidate.published_at
    if published.tzinfo is not None:
        published = published.astimezone(UTC)
    return published.date().isoformat()
