"""Merge new entries into a catalog and render it back to Markdown."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from catalog_parser import EMPTY_CELL, SECTION_TITLE
from models import Catalog, CatalogEntry
from patterns import strip_arxiv_version

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADER: tuple[str, str] = (
    "| Paper | Code | Models | Dataset | Project Page | Date |",
    "|-------|------|--------|---------|--------------|------|",
)

BOOTSTRAP_DOCUMENT = f"""# Awesome R1

A curated list of awesome R1 related papers, code, and resources.

## {SECTION_TITLE}

{DEFAULT_HEADER[0]}
{DEFAULT_HEADER[1]}

## Contributing

Contributions are welcome! Please read the [contributing guidelines](CONTRIBUTING.md) first.

## License

MIT License
"""


def merge(catalog: Catalog, new_entries: Iterable[CatalogEntry]) -> Catalog:
    """Append entries and stable-sort the whole table by date, newest first.

    Raises ValueError if a new entry repeats an id already in the catalog.
    """
    additions = list(new_entries)
    if not additions:
        return catalog

    seen = {strip_arxiv_version(entry.paper_id) for entry in catalog.entries if entry.paper_id}
    for entry in additions:
        if not entry.paper_id:
            continue
        paper_id = strip_arxiv_version(entry.paper_id)
        if paper_id in seen:
            raise ValueError(f"Catalog already contains paper_id={paper_id}")
        seen.add(paper_id)

    combined = sorted([*catalog.entries, *additions], key=lambda entry: entry.date, reverse=True)
    LOGGER.info("Catalog merge: existing=%s added=%s", len(catalog.entries), len(additions))
    return replace(catalog, entries=tuple(combined))


def serialize(catalog: Catalog) -> str:
    """Render the catalog; rows read from the document are reused verbatim."""
    rows = _table_rows(catalog)
    newline = catalog.newline

    if catalog.header is None:
        if not rows:
            return catalog.prologue + catalog.epilogue
        table = newline.join([*DEFAULT_HEADER, *rows]) + newline
        if not catalog.has_section:
            section = newline.join([f"## {SECTION_TITLE}", ""]) + newline + table
            return _join_sections(catalog.prologue, section, newline) + catalog.epilogue
        if catalog.epilogue and not catalog.epilogue.startswith(newline):
            table += newline
        return _join_sections(catalog.prologue, table, newline) + catalog.epilogue

    table = newline.join([*catalog.header, *rows])
    if catalog.terminated:
        table += newline
    return catalog.prologue + table + catalog.epilogue


def render_row(entry: CatalogEntry, columns: tuple[str, ...]) -> str:
    """Render one entry as a table row in the given column order."""
    cells = {
        "paper": f"[{escape_cell(entry.title)}]({entry.url})",
        "code": f"[Code]({entry.code_url})" if entry.code_url else EMPTY_CELL,
        "models": escape_cell(", ".join(entry.models)) or EMPTY_CELL,
        "dataset": escape_cell(", ".join(entry.dataset)) or EMPTY_CELL,
        "project": f"[Project]({entry.project_url})" if entry.project_url else EMPTY_CELL,
        "date": entry.date,
    }
    return "| " + " | ".join(cells[column] for column in columns) + " |"


def escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def _join_sections(prologue: str, section: str, newline: str) -> str:
    if not prologue or prologue.endswith(newline * 2):
        return prologue + section
    if prologue.endswith(newline):
        return prologue + newline + section
    return prologue + newline * 2 + section


def _table_rows(catalog: Catalog) -> list[str]:
    # Unparsed rows stay behind the row they followed when the document was read.
    pending: dict[str | None, list[str]] = {}
    for unparsed in catalog.unparsed_rows:
        pending.setdefault(unparsed.after, []).append(unparsed.text)

    rows = list(pending.pop(None, []))
    for entry in catalog.entries:
        if entry.source_line is None:
            rows.append(render_row(entry, catalog.columns))
            continue
        rows.append(entry.source_line)
        rows.extend(pending.pop(entry.source_line, []))
    for orphaned in pending.values():
        rows.extend(orphaned)
    return rows
