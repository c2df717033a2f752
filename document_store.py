"""File-backed catalog document store with optimistic version checks."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)

MISSING_VERSION = ""


class PersistenceConflict(RuntimeError):
    """The stored document changed after it was loaded."""


@dataclass(frozen=True, slots=True)
class LoadedDocument:
    content: str
    exists: bool
    version: str = MISSING_VERSION


class DocumentStore(Protocol):
    def load(self, path: str) -> LoadedDocument: ...

    def save(self, path: str, content: str, base_version: str) -> None: ...


def content_version(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class FileDocumentStore:
    """Store documents on the local filesystem.

    The version of a document is the SHA-256 of its content (empty string for
    a missing file). ``save`` refuses to overwrite a document whose version no
    longer matches ``base_version`` and replaces the file atomically.
    """

    def __init__(self, root: str | os.PathLike[str] = ".") -> None:
        self.root = Path(root)

    def load(self, path: str) -> LoadedDocument:
        return self._read(self.root / path)

    def save(self, path: str, content: str, base_version: str) -> None:
        target = self.root / path
        current = self._read(target)
        if current.version != base_version:
            raise PersistenceConflict(
                f"{target} changed since it was loaded (expected version "
                f"{base_version or '<missing>'}, found {current.version or '<missing>'})"
            )

        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content.encode("utf-8"))
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        LOGGER.info("Saved %s (version=%s)", target, content_version(content)[:12])

    def _read(self, target: Path) -> LoadedDocument:
        if not target.exists():
            return LoadedDocument(content="", exists=False)
        content = target.read_bytes().decode("utf-8")
        return LoadedDocument(content=content, exists=True, version=content_version(content))
