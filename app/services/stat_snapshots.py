"""Stat snapshot store: append-only, versioned counters per scope.

A scope is either the whole system (project_id None) or one project. Every write appends
a StatVersion stamped with the clock; past versions are never changed, so history reads
need no locking.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from sqlalchemy import distinct, func
from sqlalchemy.orm import Query, Session

from app.core.clock import Clock, as_utc, get_clock
from app.core.errors import InvalidCounterError, NoHistoryError, NotFoundError
from app.models import Burn, Finding, Project, StatVersion
from app.models.stat_version import COUNTER_NAMES
from app.services.suppression_ledger import count_by_status

logger = logging.getLogger(__name__)

SYSTEM_SCOPE: int | None = None


def _scope_label(project_id: int | None) -> str:
    return "system" if project_id is None else f"project:{project_id}"


def require_project(session: Session, project_id: int) -> Project:
    """Project row, or NotFoundError when the registry does not know it."""
    project = session.get(Project, project_id)
    if project is None:
        raise NotFoundError(f"no project with id {project_id}")
    return project


def _versions(session: Session, project_id: int | None) -> Query:
    query = session.query(StatVersion)
    if project_id is None:
        return query.filter(StatVersion.project_id.is_(None))
    return query.filter(StatVersion.project_id == project_id)


def compute_counters(session: Session, project_id: int | None = SYSTEM_SCOPE) -> dict[str, int]:
    """Live aggregate counts for the scope, keyed by COUNTER_NAMES."""
    burns = session.query(
        func.count(Burn.id),
        func.coalesce(func.sum(Burn.num_files), 0),
        func.coalesce(func.sum(Burn.num_lines), 0),
    )
    if project_id is None:
        services = session.query(func.count(distinct(Burn.project_id))).scalar() or 0
    else:
        require_project(session, project_id)
        burns = burns.filter(Burn.project_id == project_id)
    burn_count, files, lines = burns.one()
    if project_id is not None:
        services = 1 if burn_count else 0

    statuses = count_by_status(session, project_id)
    total_query = session.query(func.count(Finding.id))
    if project_id is not None:
        total_query = total_query.filter(Finding.project_id == project_id)

    return {
        "services": int(services),
        "burns": int(burn_count),
        "total_findings": int(total_query.scalar() or 0),
        "open_findings": statuses["open"],
        "hidden_findings": statuses["hidden"],
        "published_findings": statuses["published"],
        "filtered_findings": statuses["filtered"],
        "files": int(files),
        "lines": int(lines),
    }


def write_snapshot(
    session: Session,
    project_id: int | None,
    counters: Mapping[str, int],
    clock: Clock | None = None,
) -> StatVersion:
    """Append a new version for the scope. Missing counters are stored as 0."""
    unknown = set(counters) - set(COUNTER_NAMES)
    if unknown:
        raise InvalidCounterError(f"unknown counters: {sorted(unknown)}")
    clock = clock or get_clock()
    version = StatVersion(
        project_id=project_id,
        created_at=clock.now(),
        **{name: int(counters.get(name, 0)) for name in COUNTER_NAMES},
    )
    session.add(version)
    session.flush()
    logger.debug("Stat snapshot written: scope=%s, version_id=%s", _scope_label(project_id), version.id)
    return version


def latest_version(session: Session, project_id: int | None) -> StatVersion | None:
    return (
        _versions(session, project_id)
        .order_by(StatVersion.created_at.desc(), StatVersion.id.desc())
        .first()
    )


def _earliest_version(session: Session, project_id: int | None) -> StatVersion | None:
    return (
        _versions(session, project_id)
        .order_by(StatVersion.created_at.asc(), StatVersion.id.asc())
        .first()
    )


def current(
    session: Session,
    project_id: int | None = SYSTEM_SCOPE,
    clock: Clock | None = None,
) -> dict[str, int]:
    """Latest counters for the scope; the first version is computed and written on demand."""
    if project_id is not None:
        require_project(session, project_id)
    version = latest_version(session, project_id)
    if version is None:
        logger.info("Starting stat history: scope=%s", _scope_label(project_id))
        version = write_snapshot(session, project_id, compute_counters(session, project_id), clock)
    return version.counters()


def value_at(session: Session, project_id: int | None, timestamp: datetime) -> dict[str, int]:
    """
    Counters as of ``timestamp``: the latest version at or before it.

    Before the first version the earliest version is returned, since history starts there.
    A scope with no versions at all raises NoHistoryError.
    """
    at = as_utc(timestamp)
    version = (
        _versions(session, project_id)
        .filter(StatVersion.created_at <= at)
        .order_by(StatVersion.created_at.desc(), StatVersion.id.desc())
        .first()
    )
    if version is None:
        version = _earliest_version(session, project_id)
    if version is None:
        raise NoHistoryError(f"no stat history for {_scope_label(project_id)}")
    return version.counters()


def first_version_time(session: Session, project_id: int | None) -> datetime:
    """Timestamp of the scope's first version. NoHistoryError when there is none."""
    version = _earliest_version(session, project_id)
    if version is None:
        raise NoHistoryError(f"no stat history for {_scope_label(project_id)}")
    return as_utc(version.created_at)


def refresh_stats(
    session: Session,
    project_ids: Iterable[int] = (),
    clock: Clock | None = None,
) -> dict[str, int]:
    """
    Write fresh versions for each project given, then for the system scope.

    Runs inside the caller's transaction. Returns the system counters written.
    """
    clock = clock or get_clock()
    touched = sorted(set(project_ids))
    for project_id in touched:
        write_snapshot(session, project_id, compute_counters(session, project_id), clock)
    counters = compute_counters(session, SYSTEM_SCOPE)
    write_snapshot(session, SYSTEM_SCOPE, counters, clock)
    logger.info("Stats refreshed: projects=%s", touched)
    return counters
