"""arXiv search feed for R1-family paper candidates."""

from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from datetime import UTC, datetime, timedelta

import requests

from dedup import dedupe_batch
from filters import CS_CATEGORIES, is_r1_paper
from models import CandidatePaper
from patterns import arxiv_id_from_url, collapse_whitespace, strip_arxiv_version

# Official arXiv export API; returns an Atom feed.
ARXIV_API_URL = "http://export.arxiv.org/api/query"
REQUEST_TIMEOUT_SECONDS = 30
USER_AGENT = "R1-Papers-Catalog/1.0"
_DEFAULT_LOOKBACK_DAYS = 3
_DEFAULT_MAX_RESULTS = 100

_ATOM = "{http://www.w3.org/2005/Atom}"

LOGGER = logging.getLogger(__name__)


def build_search_queries() -> list[str]:
    """Title and category queries covering the usual ways R1 appears in a name."""
    categories = " OR ".join(f"cat:{category}" for category in sorted(CS_CATEGORIES))
    return [
        f'ti:"R1" AND ({categories})',
        f'ti:"r1" AND ({categories})',
        f'(ti:"R1-" OR ti:"-R1" OR ti:"r1-" OR ti:"-r1") AND ({categories})',
        f'all:"R1" AND ti:(model OR method OR network OR approach) AND ({categories})',
    ]


def fetch_candidates(days: int | None = None, max_results: int | None = None) -> list[CandidatePaper]:
    """Run every search query and return recent, relevant, unique candidates.

    Args:
        days: Only keep papers published within this many days. Reads
            ARXIV_LOOKBACK_DAYS if not supplied; defaults to 3.
        max_results: Page size per query. Reads ARXIV_MAX_RESULTS if not
            supplied; defaults to 100.
    """
    if days is None:
        days = int(os.environ.get("ARXIV_LOOKBACK_DAYS", _DEFAULT_LOOKBACK_DAYS))
    if max_results is None:
        max_results = int(os.environ.get("ARXIV_MAX_RESULTS", _DEFAULT_MAX_RESULTS))

    cutoff = datetime.now(UTC) - timedelta(days=days)
    queries = build_search_queries()
    collected: list[CandidatePaper] = []

    for index, query in enumerate(queries, start=1):
        params = {
            "search_query": query,
            "start": 0,
            "max_results": max_results,
            "sortBy": "lastUpdatedDate",
            "sortOrder": "descending",
        }
        try:
            response = requests.get(
                ARXIV_API_URL,
                params=params,
                timeout=REQUEST_TIMEOUT_SECONDS,
                headers={"User-Agent": USER_AGENT},
            )
            response.raise_for_status()
            papers = parse_feed(response.text)
        except (requests.RequestException, ET.ParseError) as exc:
            LOGGER.warning("arXiv query %s/%s failed, skipping: %s", index, len(queries), exc)
            continue

        recent = [paper for paper in papers if paper.published_at and paper.published_at >= cutoff]
        LOGGER.info(
            "arXiv query %s/%s: raw_count=%s recent=%s", index, len(queries), len(papers), len(recent)
        )
        collected.extend(recent)

    unique = dedupe_batch(collected)
    unique.sort(key=lambda paper: paper.published_at, reverse=True)

    relevant: list[CandidatePaper] = []
    for paper in unique:
        if is_r1_paper(paper):
            relevant.append(paper)
        else:
            LOGGER.info("Rejected by relevance filter: %r", paper.title)

    LOGGER.info(
        "arXiv fetch: collected=%s unique=%s relevant=%s days=%s",
        len(collected),
        len(unique),
        len(relevant),
        days,
    )
    return relevant


def parse_feed(xml_text: str) -> list[CandidatePaper]:
    """Parse an arXiv Atom feed into candidates, skipping incomplete entries."""
    root = ET.fromstring(xml_text)
    parsed: list[CandidatePaper] = []
    for entry in root.findall(f"{_ATOM}entry"):
        paper = _parse_entry(entry)
        if paper is not None:
            parsed.append(paper)
    return parsed


def _parse_entry(entry: ET.Element) -> CandidatePaper | None:
    raw_id = _text(entry, "id")
    title = collapse_whitespace(_text(entry, "title"))
    paper_id = arxiv_id_from_url(raw_id) or strip_arxiv_version(raw_id.rsplit("/abs/", 1)[-1])
    if not paper_id or not title:
        return None

    abs_url = ""
    for link in entry.findall(f"{_ATOM}link"):
        if link.get("type") == "text/html" or link.get("rel") == "alternate":
            abs_url = link.get("href", "")
            break

    return CandidatePaper(
        paper_id=paper_id,
        title=title,
        abstract=collapse_whitespace(_text(entry, "summary")),
        published_at=_parse_datetime(_text(entry, "published")),
        categories=frozenset(
            category.get("term", "") for category in entry.findall(f"{_ATOM}category") if category.get("term")
        ),
        url=abs_url or raw_id,
        authors=tuple(
            collapse_whitespace(name.text or "")
            for name in entry.findall(f"{_ATOM}author/{_ATOM}name")
            if name.text
        ),
    )


def _text(entry: ET.Element, tag: str) -> str:
    node = entry.find(f"{_ATOM}{tag}")
    return (node.text or "").strip() if node is not None else ""


def _parse_datetime(raw: str) -> datetime | None:
    if not raw:
        return None

    # arXiv returns RFC3339 timestamps with trailing Z.
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
