from __future__ import annotations

import pytest

from catalog_parser import parse
from catalog_writer import BOOTSTRAP_DOCUMENT, DEFAULT_HEADER, merge, render_row, serialize
from models import PAPER_COLUMNS, Catalog, CatalogEntry

EXISTING_README = """# Awesome R1

## Papers

| Paper | Code | Models | Dataset | Project Page | Date |
|-------|------|--------|---------|--------------|------|
| [Middle R1](https://arxiv.org/abs/2502.00002) | - | - | - | - | 2025-02-01 |
| [Oldest R1](https://arxiv.org/abs/2501.00001) | - | - | - | - | 2025-01-01 |

## License

MIT License
"""


def _entry(paper_id: str, title: str, date: str, **fields) -> CatalogEntry:
    return CatalogEntry(
        paper_id=paper_id,
        title=title,
        url=f"https://arxiv.org/abs/{paper_id}",
        date=date,
        **fields,
    )


def test_merge_with_no_new_entries_is_byte_identical() -> None:
    catalog = parse(EXISTING_README)
    assert serialize(merge(catalog, [])) == EXISTING_README


def test_merge_inserts_by_date_descending() -> None:
    catalog = parse(EXISTING_README)
    merged = merge(catalog, [
        _entry("2503.00003", "Newest R1", "2025-03-01"),
        _entry("2501.50000", "Between R1", "2025-01-15"),
    ])

    assert [entry.title for entry in merged.entries] == [
        "Newest R1",
        "Middle R1",
        "Between R1",
        "Oldest R1",
    ]
    dates = [entry.date for entry in merged.entries]
    assert all(dates[i] >= dates[i + 1] for i in range(len(dates) - 1))


def test_merge_keeps_insertion_order_for_equal_dates() -> None:
    catalog = parse(EXISTING_README)
    merged = merge(catalog, [
        _entry("2502.00010", "Same Day A", "2025-02-01"),
        _entry("2502.00011", "Same Day B", "2025-02-01"),
    ])
    assert [entry.title for entry in merged.entries][:3] == ["Middle R1", "Same Day A", "Same Day B"]


def test_merge_rejects_repeated_ids() -> None:
    catalog = parse(EXISTING_README)
    with pytest.raises(ValueError):
        merge(catalog, [_entry("2501.00001", "Oldest R1 again", "2025-01-01")])


def test_serialize_preserves_prose_and_existing_rows() -> None:
    catalog = parse(EXISTING_README)
    new = _entry("2503.00003", "Newest R1", "2025-03-01", code_url="https://github.com/acme/newest")
    output = serialize(merge(catalog, [new]))

    expected_row = (
        "| [Newest R1](https://arxiv.org/abs/2503.00003) | [Code](https://github.com/acme/newest)"
        " | - | - | - | 2025-03-01 |"
    )
    assert output == EXISTING_README.replace(
        "|-------|------|--------|---------|--------------|------|\n",
        "|-------|------|--------|---------|--------------|------|\n" + expected_row + "\n",
    )


def test_render_row_formats_every_cell() -> None:
    entry = _entry(
        "2501.00005",
        "Pipes | R1",
        "2025-01-05",
        code_url="https://github.com/acme/r1",
        project_url="https://acme.github.io/r1/",
        models=("R1-LITE", "OPEN-R1"),
        dataset=("GSM8K",),
    )
    assert render_row(entry, PAPER_COLUMNS) == (
        "| [Pipes \\| R1](https://arxiv.org/abs/2501.00005) | [Code](https://github.com/acme/r1)"
        " | R1-LITE, OPEN-R1 | GSM8K | [Project](https://acme.github.io/r1/) | 2025-01-05 |"
    )


def test_render_row_uses_placeholder_for_empty_fields() -> None:
    row = render_row(_entry("2501.00006", "Bare R1", "2025-01-06"), PAPER_COLUMNS)
    assert row == "| [Bare R1](https://arxiv.org/abs/2501.00006) | - | - | - | - | 2025-01-06 |"


def test_missing_table_is_synthesized_after_content() -> None:
    document = "# Notes\n\nSome prose.\n"
    catalog = parse(document)
    entry = _entry("2501.00007", "First R1", "2025-01-07")

    output = serialize(merge(catalog, [entry]))

    assert output == (
        "# Notes\n\nSome prose.\n\n## Papers\n\n"
        f"{DEFAULT_HEADER[0]}\n{DEFAULT_HEADER[1]}\n"
        "| [First R1](https://arxiv.org/abs/2501.00007) | - | - | - | - | 2025-01-07 |\n"
    )
    assert parse(output).entries == (entry,)


def test_round_trip_of_synthesized_catalog() -> None:
    entries = [
        _entry("2501.00001", "Alpha R1", "2025-01-01", models=("ALPHA-R1",)),
        _entry(
            "2503.00003",
            "Gamma R1: Reasoning",
            "2025-03-03",
            code_url="https://github.com/acme/gamma",
            dataset=("ImageNet", "COCO"),
        ),
        _entry("2502.00002", "Beta R1", "2025-02-02", project_url="https://beta.io/r1"),
    ]
    merged = merge(Catalog(), entries)

    first = serialize(merged)
    reparsed = parse(first)

    assert reparsed.entries == merged.entries
    assert [entry.paper_id for entry in reparsed.entries] == ["2503.00003", "2502.00002", "2501.00001"]
    assert serialize(reparsed) == first
    assert serialize(parse(serialize(reparsed))) == first


def test_bootstrap_document_parses_to_empty_table() -> None:
    catalog = parse(BOOTSTRAP_DOCUMENT)
    assert catalog.has_table is True
    assert catalog.entries == ()
    assert serialize(catalog) == BOOTSTRAP_DOCUMENT


def test_table_is_inserted_inside_empty_papers_section() -> None:
    document = "# Awesome R1\n\n## Papers\n\nNothing yet.\n\n## License\n\nMIT License\n"
    entry = _entry("2501.00008", "Placed R1", "2025-01-08")

    output = serialize(merge(parse(document), [entry]))

    assert output == (
        "# Awesome R1\n\n## Papers\n\nNothing yet.\n\n"
        f"{DEFAULT_HEADER[0]}\n{DEFAULT_HEADER[1]}\n"
        "| [Placed R1](https://arxiv.org/abs/2501.00008) | - | - | - | - | 2025-01-08 |\n"
        "\n## License\n\nMIT License\n"
    )
    assert output.count("## Papers") == 1
    assert parse(output).entries == (entry,)


def test_table_is_inserted_when_papers_heading_ends_document() -> None:
    entry = _entry("2501.00008", "Placed R1", "2025-01-08")

    output = serialize(merge(parse("# Awesome R1\n\n## Papers"), [entry]))

    assert output.startswith(f"# Awesome R1\n\n## Papers\n\n{DEFAULT_HEADER[0]}\n")
    assert parse(output).entries == (entry,)


def test_unparsed_row_moves_with_its_preceding_row() -> None:
    broken = "| [Broken R1](https://arxiv.org/abs/2501.00003) | - |"
    document = EXISTING_README.replace("| 2025-02-01 |\n", f"| 2025-02-01 |\n{broken}\n")
    newest = _entry("2503.00003", "Newest R1", "2025-03-01")

    output = serialize(merge(parse(document), [newest]))

    lines = output.splitlines()
    middle = next(i for i, line in enumerate(lines) if "Middle R1" in line)
    assert "Newest R1" in lines[middle - 1]
    assert lines[middle + 1] == broken
    assert "Oldest R1" in lines[middle + 2]


def test_merge_rejects_id_differing_only_by_version() -> None:
    catalog = parse(EXISTING_README)
    with pytest.raises(ValueError, match="2502.00002"):
        merge(catalog, [_entry("2502.00002v3", "Middle R1 Again", "2025-02-03")])
