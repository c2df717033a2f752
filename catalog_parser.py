"""Parse the Markdown papers table back into catalog entries.

The document is split into three parts: the prologue (everything before the
table header row), the table itself and the epilogue (everything after the
last table row). Prologue and epilogue are kept as opaque text so the writer
can reassemble the document byte-for-byte.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from models import PAPER_COLUMNS, Catalog, CatalogEntry, UnparsedRow
from patterns import arxiv_id_from_url, is_valid_url

LOGGER = logging.getLogger(__name__)

SECTION_TITLE = "Papers"

_SECTION_MARKER_RE = re.compile(rf"^##\s+{SECTION_TITLE}\s*$")
_SECTION_END_RE = re.compile(r"^#{1,2}\s")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_LINK_CELL_RE = re.compile(r"^\[(?P<text>.+)\]\((?P<url>[^()\s]+)\)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

HEADER_LABELS: dict[str, str] = {
    "paper": "paper",
    "code": "code",
    "models": "models",
    "dataset": "dataset",
    "project page": "project",
    "date": "date",
}

EMPTY_CELL = "-"


class StructuralParseError(ValueError):
    """A table row does not have the shape the papers table requires."""


def parse(document: str) -> Catalog:
    """Parse a catalog document. A missing table yields an empty catalog."""
    lines = _split_lines(document)
    located, section_end = _locate_table(lines)
    if located is None:
        newline = _detect_newline(document)
        if section_end is None:
            LOGGER.info("Catalog parse: no papers table found, document kept as prologue")
            return Catalog(prologue=document, newline=newline)
        LOGGER.info(
            "Catalog parse: papers section has no table, a new one goes at line %s", section_end + 1
        )
        return Catalog(
            prologue="".join(lines[:section_end]),
            epilogue="".join(lines[section_end:]),
            newline=newline,
            has_section=True,
        )

    header_index, body_end = located
    header_line = _strip_eol(lines[header_index])
    separator_line = _strip_eol(lines[header_index + 1])
    columns = columns_from_header(header_line)

    entries: list[CatalogEntry] = []
    unparsed: list[UnparsedRow] = []
    for line_no, line in enumerate(lines[header_index + 2 : body_end], start=header_index + 3):
        try:
            entries.append(parse_row(line, columns))
        except StructuralParseError as exc:
            LOGGER.warning("Catalog parse: skipping line %s: %s", line_no, exc)
            after = entries[-1].source_line if entries else None
            unparsed.append(UnparsedRow(after=after, text=_strip_eol(line)))

    last_line = lines[body_end - 1]
    catalog = Catalog(
        entries=tuple(entries),
        prologue="".join(lines[:header_index]),
        epilogue="".join(lines[body_end:]),
        header=(header_line, separator_line),
        columns=columns,
        newline="\r\n" if lines[header_index].endswith("\r\n") else "\n",
        terminated=last_line.endswith("\n"),
        unparsed_rows=tuple(unparsed),
    )
    LOGGER.info(
        "Catalog parse: entries=%s matchable=%s unparsed=%s",
        len(entries),
        sum(1 for entry in entries if entry.matchable),
        len(unparsed),
    )
    return catalog


def columns_from_header(header_line: str) -> tuple[str, ...]:
    """Map header labels to field names, falling back to the canonical order."""
    labels = [cell.lower() for cell in split_cells(header_line)]
    columns = tuple(HEADER_LABELS.get(label, "") for label in labels)
    if sorted(columns) != sorted(PAPER_COLUMNS):
        LOGGER.warning(
            "Catalog parse: unexpected header %r, using canonical column order", header_line
        )
        return PAPER_COLUMNS
    return columns


def parse_row(line: str, columns: tuple[str, ...] = PAPER_COLUMNS) -> CatalogEntry:
    """Parse one table row. Raises StructuralParseError on malformed rows."""
    cells = split_cells(line)
    if len(cells) != len(columns):
        raise StructuralParseError(f"expected {len(columns)} cells, found {len(cells)}")

    values = dict(zip(columns, cells))
    link = _LINK_CELL_RE.match(values["paper"])
    if not link:
        raise StructuralParseError(f"unparseable paper cell: {values['paper']!r}")

    row_date = values["date"]
    if not _DATE_RE.match(row_date):
        raise StructuralParseError(f"invalid date cell: {row_date!r}")
    try:
        date.fromisoformat(row_date)
    except ValueError as exc:
        raise StructuralParseError(f"invalid date cell: {row_date!r}") from exc

    url = link.group("url")
    return CatalogEntry(
        paper_id=arxiv_id_from_url(url),
        title=unescape_cell(link.group("text")),
        url=url,
        date=row_date,
        code_url=_link_target(values["code"]),
        project_url=_link_target(values["project"]),
        models=_split_list(values["models"]),
        dataset=_split_list(values["dataset"]),
        source_line=_strip_eol(line),
    )


def split_cells(line: str) -> list[str]:
    """Split a pipe-delimited row, ignoring the outer pipes and escaped ``\\|``."""
    text = _strip_eol(line).strip()
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|") and not text.endswith("\\|"):
        text = text[:-1]
    return [cell.strip() for cell in _CELL_SPLIT_RE.split(text)]


def unescape_cell(text: str) -> str:
    return text.replace("\\|", "|")


def _link_target(cell: str) -> str:
    if not cell or cell == EMPTY_CELL:
        return ""
    link = _LINK_CELL_RE.match(cell)
    if link:
        return link.group("url")
    return cell if is_valid_url(cell) else ""


def _split_list(cell: str) -> tuple[str, ...]:
    if not cell or cell == EMPTY_CELL:
        return ()
    return tuple(part.strip() for part in unescape_cell(cell).split(",") if part.strip())


def _locate_table(lines: list[str]) -> tuple[tuple[int, int] | None, int | None]:
    """Find the papers table under any ``## Papers`` heading.

    Returns ``(span, section_end)``. ``span`` is (header index, index after the
    last body row) of the first table found. When no heading has a table,
    ``section_end`` is the index of the line ending the first papers section.
    """
    first_section_end: int | None = None
    for marker, line in enumerate(lines):
        if not _SECTION_MARKER_RE.match(_strip_eol(line)):
            continue
        span, section_end = _scan_section(lines, marker)
        if span is not None:
            return span, None
        if first_section_end is None:
            first_section_end = section_end
    return None, first_section_end


def _scan_section(lines: list[str], marker: int) -> tuple[tuple[int, int] | None, int]:
    index = marker + 1
    while index < len(lines):
        text = _strip_eol(lines[index])
        if _SECTION_END_RE.match(text):
            return None, index
        if text.lstrip().startswith("|"):
            if index + 1 < len(lines) and _is_separator(_strip_eol(lines[index + 1])):
                end = index + 2
                while end < len(lines) and _strip_eol(lines[end]).lstrip().startswith("|"):
                    end += 1
                return (index, end), end
            LOGGER.warning("Catalog parse: table header at line %s has no separator row", index + 1)
            while index + 1 < len(lines) and _strip_eol(lines[index + 1]).lstrip().startswith("|"):
                index += 1
        index += 1
    return None, len(lines)


def _is_separator(text: str) -> bool:
    stripped = text.strip()
    return stripped.startswith("|") and "-" in stripped and set(stripped) <= set("|-: \t")


def _split_lines(document: str) -> list[str]:
    return _LINE_RE.findall(document)


def _strip_eol(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _detect_newline(document: str) -> str:
    return "\r\n" if "\r\n" in document else "\n"
