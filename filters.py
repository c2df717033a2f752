"""Heuristic relevance filter for R1-family papers (no network calls)."""

from __future__ import annotations

import re

from models import CandidatePaper

CS_CATEGORIES: frozenset[str] = frozenset({
    "cs.AI",
    "cs.CL",
    "cs.LG",
    "cs.CV",
    "cs.RO",
    "cs.NE",
    "cs.IR",
    "cs.MM",
    "cs.HC",
    "cs.CR",
    "cs.DC",
    "cs.DS",
    "cs.IT",
    "cs.MA",
    "cs.NI",
    "cs.PL",
    "cs.SE",
    "cs.SY",
})

# Any of these in the title marks the paper as an R1-family candidate.
_TITLE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\br1[-_\s]",
        r"[-_\s]r1\b",
        r"\br1\b",
        r"\br1:\s",
        r"[\"']r1[\"']",
    )
)

# Fallback when the title is silent: the abstract ties R1 to a model or method.
_ABSTRACT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"model.*r1",
        r"r1.*model",
        r"method.*r1",
        r"r1.*method",
        r"approach.*r1",
        r"r1.*approach",
        r"framework.*r1",
        r"r1.*framework",
    )
)

# "R1" used as a revision, a statistic or a numbered item rather than a name.
_EXCLUDE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"version\s+r1",
        r"revision\s+r1",
        r"r1\s+error",
        r"r1\s+squared",
        r"round\s+1",
        r"reviewer\s+1",
        r"requirement\s+1",
        r"rule\s+1",
        r"region\s+1",
        r"response\s+1",
        r"\br1\s*=\s*\d",
        r"coefficient.*r1",
        r"correlation.*r1",
    )
)

_AI_KEYWORDS: frozenset[str] = frozenset({
    "neural",
    "model",
    "learning",
    "network",
    "algorithm",
    "training",
    "inference",
    "transformer",
    "attention",
    "deep",
    "machine",
    "artificial",
    "intelligence",
    "classification",
    "regression",
    "prediction",
    "optimization",
    "embedding",
    "representation",
    "feature",
    "performance",
})


def is_r1_paper(paper: CandidatePaper) -> bool:
    """Return True if the paper looks like an R1-family ML paper.

    All of the following must hold:
    - the title names R1, or the abstract links R1 to a model/method;
    - at least one arXiv category is a CS category;
    - no exclusion phrase ("round 1", "r1 squared", ...) appears;
    - title or abstract mentions at least one AI keyword.
    """
    title = paper.title.lower()
    abstract = (paper.abstract or "").lower()

    if not any(pattern.search(title) for pattern in _TITLE_PATTERNS):
        if not any(pattern.search(abstract) for pattern in _ABSTRACT_PATTERNS):
            return False

    if not CS_CATEGORIES.intersection(paper.categories):
        return False

    if any(pattern.search(title) or pattern.search(abstract) for pattern in _EXCLUDE_PATTERNS):
        return False

    return any(keyword in title or keyword in abstract for keyword in _AI_KEYWORDS)
