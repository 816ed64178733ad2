"""Remove transcript blobs that no metadata record references.

Lists blobs under the storage prefix and deletes those older than the
grace period with no matching ``transcript_metadata`` row. Run it from
cron or by hand after incidents; it is safe to repeat.

Usage:
    python scripts/sweep_orphans.py --dry-run
    python scripts/sweep_orphans.py --older-than 7200
"""

import argparse
import asyncio
from datetime import timedelta

import structlog

from storage.service import build_s3_client, build_transcript_service
from tv_common.config import get_settings
from tv_common.db.connection import build_engine, build_session_factory
from tv_common.logging import bind_correlation_id, configure_logging

logger = structlog.get_logger("sweep_orphans")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments for the orphan sweep."""
    parser = argparse.ArgumentParser(description="Delete unreferenced transcript blobs")
    parser.add_argument(
        "--older-than",
        type=int,
        default=None,
        help="Minimum blob age in seconds (defaults to TV_ORPHAN_GRACE_SECONDS)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Report orphans without deleting")
    return parser.parse_args()


async def main() -> None:
    """Run one orphan sweep against the configured stores."""
    args = parse_args()
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    bind_correlation_id()

    engine = build_engine(settings)
    try:
        service = build_transcript_service(
            settings,
            build_session_factory(engine),
            build_s3_client(settings),
        )
        older_than = None if args.older_than is None else timedelta(seconds=args.older_than)
        report = await service.sweep_orphans(older_than, dry_run=args.dry_run)
    finally:
        await engine.dispose()

    for key in report.orphaned:
        logger.info("orphan_blob", blob_key=key, deleted=key in report.deleted)
    if report.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    asyncio.run(main())
