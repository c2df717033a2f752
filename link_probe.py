"""Lightweight existence check for extracted code repository links."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Protocol

import requests

LINK_PROBE_TIMEOUT_SECONDS = float(os.getenv("LINK_PROBE_TIMEOUT_SECONDS", "5"))
USER_AGENT = "R1-Papers-Catalog/1.0"

LOGGER = logging.getLogger(__name__)

_GITHUB_REPO_RE = re.compile(r"github\.com/([^/\s]+)/([^/?#\s]+)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """``reachable`` is None when the outcome could not be determined."""

    reachable: bool | None


class LinkProbe(Protocol):
    def probe(self, url: str) -> ProbeResult: ...


class HttpLinkProbe:
    """HEAD-request probe for GitHub repository links.

    A 404 is the only definitive "not found"; server errors and network
    failures report an unknown outcome instead of raising.
    """

    def __init__(self, timeout: float = LINK_PROBE_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def probe(self, url: str) -> ProbeResult:
        if not _GITHUB_REPO_RE.search(url):
            return ProbeResult(reachable=None)

        try:
            response = requests.head(
                url,
                timeout=self.timeout,
                allow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        except requests.RequestException as exc:
            LOGGER.warning("Cannot verify code link %s: %s", url, exc)
            return ProbeResult(reachable=None)

        if response.status_code == 404:
            LOGGER.info("Code repository not found: %s", url)
            return ProbeResult(reachable=False)
        if response.status_code < 500:
            LOGGER.info("Code repository verified: %s", url)
            return ProbeResult(reachable=True)

        LOGGER.warning("Code link check returned status=%s for %s", response.status_code, url)
        return ProbeResult(reachable=None)
