"""
CLI entrypoint for the periodic stat snapshot. Run after scans complete or from cron, e.g.:

  python -m app.snapshot

Or hourly: 0 * * * * cd /path/to/emberwatch && .venv/bin/python -m app.snapshot
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.snapshot_job import run_snapshot

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Record current counters as new stat versions."""
    settings = get_settings()
    db = SessionLocal()
    try:
        written = run_snapshot(db, settings)
        logger.info("Snapshot completed: versions_written=%s", written)
        return 0
    except Exception as e:
        logger.exception("Snapshot job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
