"""Post-run reporting: a Markdown summary of the papers added in one run.

The summary is meant for a human reviewer of the catalog change.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from pathlib import Path

from models import CatalogEntry

LOGGER = logging.getLogger(__name__)


def build_summary(
    entries: Sequence[CatalogEntry],
    categories: Mapping[str, frozenset[str]] | None = None,
    run_date: date | None = None,
) -> str:
    """Render the papers added in one run as Markdown.

    Args:
        entries:    Entries accepted in this run, in the order they were added.
        categories: Optional arXiv categories keyed by paper id.
        run_date:   Date shown in the heading; defaults to today (UTC).
    """
    run_date = run_date or datetime.now(UTC).date()
    categories = categories or {}

    lines = [
        f"## Daily R1 Papers Update - {run_date.isoformat()}",
        "",
        f"Adds **{len(entries)} new R1-related paper(s)** found on arXiv.",
        "",
    ]
    if not entries:
        lines.append("No new papers were found.")
        return "\n".join(lines) + "\n"

    lines += ["### Papers Added", ""]
    for index, entry in enumerate(entries, start=1):
        lines.append(f"{index}. **{entry.title}**")
        lines.append(f"   - arXiv ID: [{entry.paper_id or '-'}]({entry.url})")
        paper_categories = categories.get(entry.paper_id or "")
        if paper_categories:
            lines.append(f"   - Categories: {', '.join(sorted(paper_categories))}")
        lines.append(f"   - Published: {entry.date}")
        if entry.code_url:
            lines.append(f"   - Code: {entry.code_url}")
        if entry.models:
            lines.append(f"   - Models: {', '.join(entry.models)}")
        lines.append("")

    lines += [
        "### Review Checklist",
        "- [ ] Paper titles are correctly formatted",
        "- [ ] Code links are accurate",
        "- [ ] Papers are genuinely R1-related",
        "- [ ] No duplicates were added",
    ]
    return "\n".join(lines) + "\n"


def write_summary(summary: str, path: str) -> None:
    target = Path(path)
    target.write_text(summary, encoding="utf-8")
    LOGGER.info("Wrote run summary to %s", target)
