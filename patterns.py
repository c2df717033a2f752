"""Recognizer rules for titles, links, model and dataset names.

Every rule here is stateless. Extraction rules are plain named regexes that
are applied in the order they are declared; callers either take the first
value any rule yields (``first_match``) or the union across rules
(``collect``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import urlparse

FAMILY_TOKEN = "r1"

CODE_HOSTS: tuple[str, ...] = ("github.com", "gitlab.com")
PAPER_HOSTS: tuple[str, ...] = ("arxiv.org",)
DOI_HOSTS: tuple[str, ...] = ("doi.org",)
PROJECT_SUFFIXES: tuple[str, ...] = (".io", ".com", ".org", ".net")

_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCT = ".,;:"

_ARXIV_ID_RE = re.compile(r"arxiv\.org/(?:abs|pdf)/([^\s?#)\]]+?)(?:\.pdf)?/?$", re.IGNORECASE)
_ARXIV_VERSION_RE = re.compile(r"v\d+$")


@dataclass(frozen=True, slots=True)
class ExtractionRule:
    """Named regex rule. ``group`` selects the captured value (0 = whole match)."""

    name: str
    pattern: re.Pattern[str]
    group: int = 0

    def findall(self, text: str, limit: int | None = None) -> list[str]:
        values: list[str] = []
        for match in self.pattern.finditer(text):
            value = match.group(self.group)
            if not value:
                continue
            values.append(value)
            if limit is not None and len(values) >= limit:
                break
        return values

    def first(self, text: str) -> str | None:
        found = self.findall(text, limit=1)
        return found[0] if found else None


def _rule(name: str, pattern: str, flags: int = 0, group: int = 0) -> ExtractionRule:
    return ExtractionRule(name=name, pattern=re.compile(pattern, flags), group=group)


URL_TOKEN = _rule("url", r"https?://[^\s)\]>,]+", re.IGNORECASE)

# Order is precedence: a GitHub link wins over a GitLab link anywhere in the text.
CODE_LINK_RULES: tuple[ExtractionRule, ...] = (
    _rule("github", r"https?://(?:www\.)?github\.com/[^\s)\],]+", re.IGNORECASE),
    _rule("gitlab", r"https?://(?:www\.)?gitlab\.com/[^\s)\],]+", re.IGNORECASE),
)

MODEL_RULES: tuple[ExtractionRule, ...] = (
    _rule("token-word", rf"\b[\w\-]*{FAMILY_TOKEN}[\w\-]*\b", re.IGNORECASE),
    _rule("token-prefix", rf"\b{FAMILY_TOKEN}[_\-]?\w+", re.IGNORECASE),
    _rule("token-suffix", rf"\w+[_\-]?{FAMILY_TOKEN}\b", re.IGNORECASE),
)

KNOWN_DATASETS: tuple[str, ...] = (
    "imagenet",
    "coco",
    "cifar",
    "mnist",
    "glue",
    "squad",
    "wmt",
    "conll",
    "openwebtext",
    "pile",
    "commoncrawl",
)

DATASET_RULES: tuple[ExtractionRule, ...] = (
    _rule("vocabulary", r"\b(?:" + "|".join(KNOWN_DATASETS) + r")\b", re.IGNORECASE),
    _rule("word-dataset", r"\b\w+\s*dataset\b", re.IGNORECASE),
    _rule("evaluated-on", r"(?i:\bevaluated?\s+on\s+)([A-Z][A-Za-z0-9\-]+)", group=1),
)


def normalize_title(title: str) -> str:
    """Lower-case, turn punctuation into spaces and collapse whitespace."""
    lowered = title.lower()
    return _SPACE_RE.sub(" ", _PUNCT_RE.sub(" ", lowered)).strip()


def collapse_whitespace(text: str) -> str:
    return _SPACE_RE.sub(" ", text).strip()


def first_match(rules: Iterable[ExtractionRule], text: str) -> str | None:
    """Return the first value yielded by the highest-precedence matching rule."""
    for rule in rules:
        value = rule.first(text)
        if value is not None:
            return value
    return None


def collect(
    rules: Iterable[ExtractionRule],
    text: str,
    per_rule_limit: int | None = None,
) -> list[str]:
    """Concatenate matches of every rule, in rule order."""
    values: list[str] = []
    for rule in rules:
        values.extend(rule.findall(text, limit=per_rule_limit))
    return values


def strip_urls(text: str) -> str:
    return URL_TOKEN.pattern.sub(" ", text)


def clean_url(url: str) -> str:
    return url.rstrip(_TRAILING_PUNCT)


def is_valid_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def url_host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_matches(host: str, domains: Iterable[str]) -> bool:
    """True if ``host`` is one of ``domains`` or a subdomain of one."""
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def strip_arxiv_version(paper_id: str) -> str:
    return _ARXIV_VERSION_RE.sub("", paper_id.strip())


def arxiv_id_from_url(url: str) -> str | None:
    """Extract a version-less arXiv id from an abs/ or pdf/ link."""
    match = _ARXIV_ID_RE.search(url.strip())
    if not match:
        return None
    return strip_arxiv_version(match.group(1)) or None


def arxiv_abs_url(paper_id: str) -> str:
    return f"https://arxiv.org/abs/{paper_id}"
