"""CLI entrypoint for the daily R1 papers catalog update."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time

from dotenv import load_dotenv

from arxiv_feed import fetch_candidates
from document_store import FileDocumentStore, PersistenceConflict
from enricher import Enricher
from link_probe import HttpLinkProbe
from reconcile import run_reconciliation
from report import build_summary, write_summary
from similarity import DEFAULT_SIMILARITY_THRESHOLD


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Merge new R1 papers from arXiv into the catalog README")
    parser.add_argument(
        "--catalog",
        default=os.getenv("CATALOG_PATH", "README.md"),
        help="Path of the Markdown catalog document (default: CATALOG_PATH or README.md)",
    )
    parser.add_argument("--days", type=int, default=None, help="Only consider papers published within N days")
    parser.add_argument("--max-results", type=int, default=None, help="Maximum results per arXiv query")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Reconcile and log the outcome without writing the catalog",
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip the HTTP existence check for extracted code links",
    )
    parser.add_argument(
        "--deadline-seconds",
        type=float,
        default=os.getenv("RUN_DEADLINE_SECONDS"),
        help="Stop enriching new candidates after this many seconds and keep what was accepted",
    )
    parser.add_argument(
        "--similarity-threshold",
        type=_threshold,
        default=os.getenv("SIMILARITY_THRESHOLD", str(DEFAULT_SIMILARITY_THRESHOLD)),
        help="Title similarity ratio at or above which a candidate counts as a duplicate",
    )
    parser.add_argument(
        "--summary-path",
        default=os.getenv("SUMMARY_PATH"),
        help="Write a Markdown summary of added papers to this file",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Run one catalog update cycle and return the process exit status."""
    started = time.monotonic()
    deadline = started + args.deadline_seconds if args.deadline_seconds else None

    candidates = fetch_candidates(days=args.days, max_results=args.max_results)
    logging.info("Fetched %s candidate papers from arXiv", len(candidates))
    if not candidates:
        logging.info("No potential papers found")
        return 0

    enricher = Enricher(probe=None if args.no_verify else HttpLinkProbe())
    store = FileDocumentStore()

    try:
        result = run_reconciliation(
            store,
            args.catalog,
            candidates,
            enricher=enricher,
            threshold=args.similarity_threshold,
            deadline=deadline,
            dry_run=args.dry_run,
        )
    except PersistenceConflict as exc:
        logging.error("Catalog changed during the run, rerun the update: %s", exc)
        return 1

    logging.info(
        "Run complete. accepted=%s duplicates=%s rejected=%s deadline_hit=%s elapsed=%.1fs",
        len(result.accepted),
        len(result.duplicates),
        len(result.rejected),
        result.deadline_hit,
        time.monotonic() - started,
    )

    if result.accepted and args.summary_path:
        categories = {paper.paper_id: paper.categories for paper in candidates}
        write_summary(build_summary(result.accepted, categories), args.summary_path)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Initialize config and execute the update."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    sys.exit(run(parse_args(argv)))


def _threshold(value: str) -> float:
    try:
        threshold = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if not 0.0 <= threshold <= 1.0:
        raise argparse.ArgumentTypeError(f"must be between 0 and 1: {value!r}")
    return threshold


if __name__ == "__main__":
    main()
