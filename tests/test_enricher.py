from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

import enricher as enricher_module
from catalog_writer import render_row
from enricher import (
    Enricher,
    ValidationRejection,
    extract_code_url,
    extract_datasets,
    extract_models,
    extract_project_url,
    validate,
)
from link_probe import ProbeResult
from models import PAPER_COLUMNS, CandidatePaper


def _candidate(
    title: str = "R1-Lite: A Small Model",
    abstract: str = "code at https://github.com/acme/r1lite",
    paper_id: str = "X9",
    published_at: datetime | None = datetime(2025, 3, 1, 12, 0, tzinfo=UTC),
) -> CandidatePaper:
    return CandidatePaper(paper_id=paper_id, title=title, abstract=abstract, published_at=published_at)


class _StubProbe:
    def __init__(self, reachable: bool | None = None, error: Exception | None = None) -> None:
        self.reachable = reachable
        self.error = error
        self.calls: list[str] = []

    def probe(self, url: str) -> ProbeResult:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return ProbeResult(reachable=self.reachable)


def test_r1_lite_scenario_row() -> None:
    entry = Enricher().build_entry(_candidate())

    assert entry.code_url == "https://github.com/acme/r1lite"
    assert "R1-LITE" in entry.models
    row = render_row(entry, PAPER_COLUMNS)
    assert "[Code](https://github.com/acme/r1lite)" in row
    assert "R1-LITE" in row


def test_code_url_strips_trailing_punctuation() -> None:
    assert extract_code_url("See https://github.com/acme/repo.") == "https://github.com/acme/repo"


def test_code_url_empty_when_absent() -> None:
    assert extract_code_url("No code released.") == ""


def test_project_url_skips_code_paper_and_doi_hosts() -> None:
    text = (
        "Code: https://github.com/acme/r1, paper https://arxiv.org/abs/2501.00001, "
        "doi https://doi.org/10.1000/xyz and site https://acme.github.io/r1lite/ plus https://other.org/x"
    )
    assert extract_project_url(text) == "https://acme.github.io/r1lite/"


@pytest.mark.parametrize("text", [
    "Only https://github.com/acme/r1 here.",
    "Host without path https://acme.com",
    "Unlisted suffix https://acme.ai/r1",
    "No links at all.",
])
def test_project_url_empty_when_no_eligible_link(text: str) -> None:
    assert extract_project_url(text) == ""


def test_models_prefer_title_and_cap_at_three() -> None:
    models = extract_models(
        "Open-R1 Study",
        "We compare DeepSeek-R1 and R1-Zero and Kimi-R1 and X-R1.",
    )
    assert models == ("OPEN-R1", "DEEPSEEK-R1", "R1-ZERO")


def test_models_are_distinct_and_upper_cased() -> None:
    assert extract_models("r1-lite vs R1-Lite", "") == ("R1-LITE",)


def test_models_ignore_tokens_inside_urls() -> None:
    assert extract_models("R1-Lite: A Small Model", "code at https://github.com/acme/r1lite") == ("R1-LITE",)


def test_datasets_from_vocabulary_capped_at_two() -> None:
    text = "Experiments on ImageNet, COCO and CIFAR show gains on our new benchmark dataset."
    assert extract_datasets(text) == ("ImageNet", "COCO")


def test_datasets_from_evaluated_on_phrase() -> None:
    assert extract_datasets("The model is evaluated on GSM8K with greedy decoding.") == ("GSM8K",)


def test_datasets_length_filter_drops_short_tokens() -> None:
    assert extract_datasets("Results evaluated on AB only.") == ()


@pytest.mark.parametrize("abstract", [
    "",
    "R1 " * 50,
    "A-R1 B-R1 C-R1 D-R1 E-R1 r1-x r1-y r1-z on ImageNet COCO CIFAR MNIST GLUE SQuAD",
    "evaluated on Alpha evaluated on Beta evaluated on Gamma; toy dataset, large dataset, extra dataset",
])
def test_enricher_output_bounds(abstract: str) -> None:
    fields = Enricher().enrich(_candidate(title="Many R1 R1-X X-R1 Models", abstract=abstract))
    assert len(fields.models) <= 3
    assert len(fields.dataset) <= 2


def test_probe_not_found_clears_code_link() -> None:
    probe = _StubProbe(reachable=False)
    fields = Enricher(probe=probe).enrich(_candidate())
    assert probe.calls == ["https://github.com/acme/r1lite"]
    assert fields.code_url == ""


@pytest.mark.parametrize("reachable", [True, None])
def test_probe_other_outcomes_keep_code_link(reachable: bool | None) -> None:
    fields = Enricher(probe=_StubProbe(reachable=reachable)).enrich(_candidate())
    assert fields.code_url == "https://github.com/acme/r1lite"


def test_probe_exception_keeps_code_link() -> None:
    probe = _StubProbe(error=RuntimeError("network down"))
    entry = Enricher(probe=probe).build_entry(_candidate())
    assert entry.code_url == "https://github.com/acme/r1lite"


def test_probe_not_called_without_code_link() -> None:
    probe = _StubProbe(reachable=False)
    Enricher(probe=probe).enrich(_candidate(abstract="No code."))
    assert probe.calls == []


def test_failing_extraction_step_leaves_field_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(title: str, abstract: str) -> tuple[str, ...]:
        raise RuntimeError("regex exploded")

    monkeypatch.setattr(enricher_module, "extract_models", _boom)
    fields = Enricher().enrich(_candidate())
    assert fields.models == ()
    assert fields.code_url == "https://github.com/acme/r1lite"


def test_malformed_extracted_link_is_cleared(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(enricher_module, "extract_project_url", lambda text: "not a url")
    fields = Enricher().enrich(_candidate())
    assert fields.project_url == ""


@pytest.mark.parametrize("candidate", [
    _candidate(title=""),
    _candidate(title="   "),
    _candidate(title="R" * 201),
    _candidate(paper_id=""),
    _candidate(published_at=None),
])
def test_validate_rejects(candidate: CandidatePaper) -> None:
    with pytest.raises(ValidationRejection):
        validate(candidate)
    with pytest.raises(ValidationRejection):
        Enricher().build_entry(candidate)


def test_validate_accepts_title_at_length_limit() -> None:
    validate(_candidate(title="R" * 200))


def test_entry_date_is_utc_calendar_date() -> None:
    published = datetime(2025, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    entry = Enricher().build_entry(_candidate(published_at=published))
    assert entry.date == "2025-03-02"


def test_entry_links_to_arxiv_abstract_page() -> None:
    entry = Enricher().build_entry(_candidate(paper_id="2501.00001"))
    assert entry.url == "https://arxiv.org/abs/2501.00001"
    assert entry.paper_id == "2501.00001"
