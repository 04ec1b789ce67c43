"""Periodic snapshot: record current counters for the system and, optionally, every project."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.core.database import transaction
from app.models import Project
from app.services.stat_snapshots import refresh_stats
from app.services.stats_cache import StatsCache, publish_system_stats
from app.services.suppression_ledger import check_invariant

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_snapshot(
    session: Session,
    settings: "Settings",
    clock: Clock | None = None,
    cache: StatsCache | None = None,
) -> int:
    """
    Write one stat version per project (when SNAPSHOT_INCLUDE_PROJECTS) plus the system scope.

    Safe to run repeatedly; each run appends new versions and, given a cache, republishes
    the system stats to it. Returns the number written.
    """
    clock = clock or get_clock()
    project_ids: list[int] = []
    if settings.SNAPSHOT_INCLUDE_PROJECTS:
        project_ids = [row[0] for row in session.query(Project.id).order_by(Project.id).all()]

    with transaction(session):
        refresh_stats(session, project_ids, clock)
    publish_system_stats(session, cache, clock)

    inconsistent = check_invariant(session)
    if inconsistent:
        logger.warning(
            "Findings with inconsistent filter ownership: count=%s, ids=%s",
            len(inconsistent),
            inconsistent[:20],
        )
    written = len(project_ids) + 1
    logger.info("Snapshot run: versions_written=%s", written)
    return written
