"""One reconciliation run: classify candidates, enrich new ones, merge, serialize."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable

from catalog_parser import parse
from catalog_writer import BOOTSTRAP_DOCUMENT, merge, serialize
from dedup import classify
from document_store import DocumentStore
from enricher import Enricher, ValidationRejection
from models import CandidatePaper, Catalog, CatalogEntry, MatchDecision, ReconcileResult

LOGGER = logging.getLogger(__name__)


def reconcile(
    candidates: Iterable[CandidatePaper],
    catalog: Catalog,
    enricher: Enricher | None = None,
    threshold: float | None = None,
    deadline: float | None = None,
) -> ReconcileResult:
    """Process candidates in order against ``catalog``.

    Each candidate is also checked against entries accepted earlier in the
    same run. ``deadline`` is a ``time.monotonic()`` value; once it passes,
    remaining candidates are left unprocessed and the accepted ones are kept.
    """
    enricher = enricher or Enricher()
    batch = list(candidates)

    accepted: list[CatalogEntry] = []
    duplicates: list[MatchDecision] = []
    rejected: list[str] = []
    deadline_hit = False

    for index, candidate in enumerate(batch, start=1):
        if deadline is not None and time.monotonic() >= deadline:
            deadline_hit = True
            LOGGER.warning(
                "Run deadline reached; %s of %s candidates left unprocessed",
                len(batch) - index + 1,
                len(batch),
            )
            break

        LOGGER.info("Processing paper %s/%s: %s", index, len(batch), candidate.title)
        decision = classify(candidate, [*catalog.entries, *accepted], threshold)
        if not decision.accepted:
            duplicates.append(decision)
            continue

        try:
            entry = enricher.build_entry(candidate)
        except ValidationRejection as exc:
            rejected.append(candidate.paper_id)
            LOGGER.warning("Rejected paper_id=%s: %s", candidate.paper_id, exc)
            continue
        except Exception as exc:  # broad by design: one bad candidate must not stop the batch
            rejected.append(candidate.paper_id)
            LOGGER.exception("Failed processing paper_id=%s: %s", candidate.paper_id, exc)
            continue

        accepted.append(entry)
        LOGGER.info("Accepted paper_id=%s", candidate.paper_id)

    document = serialize(merge(catalog, accepted)) if accepted else None
    LOGGER.info(
        "Reconcile complete. candidates=%s accepted=%s duplicates=%s rejected=%s",
        len(batch),
        len(accepted),
        len(duplicates),
        len(rejected),
    )
    return ReconcileResult(
        accepted=tuple(accepted),
        duplicates=tuple(duplicates),
        rejected=tuple(rejected),
        deadline_hit=deadline_hit,
        document=document,
    )


def run_reconciliation(
    store: DocumentStore,
    path: str,
    candidates: Iterable[CandidatePaper],
    enricher: Enricher | None = None,
    threshold: float | None = None,
    deadline: float | None = None,
    dry_run: bool = False,
) -> ReconcileResult:
    """Load the catalog, reconcile candidates and save the merged document.

    A PersistenceConflict from the store propagates unchanged; the caller
    must rerun the whole reconciliation against the fresh document.
    """
    loaded = store.load(path)
    if loaded.exists:
        content = loaded.content
    else:
        LOGGER.warning("Catalog %s not found, starting from a new document", path)
        content = BOOTSTRAP_DOCUMENT

    catalog = parse(content)
    LOGGER.info("Loaded %s existing papers from %s", len(catalog.entries), path)

    result = reconcile(candidates, catalog, enricher=enricher, threshold=threshold, deadline=deadline)
    if result.document is None:
        LOGGER.info("No new papers accepted; %s left unchanged", path)
        return result

    if dry_run:
        LOGGER.info("[dry-run] Would write %s new papers to %s", len(result.accepted), path)
        return result

    store.save(path, result.document, base_version=loaded.version)
    LOGGER.info("Wrote %s new papers to %s", len(result.accepted), path)
    return result
