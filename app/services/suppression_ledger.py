"""Suppression ledger: finding status and the rule (if any) that owns each filtered finding.

All status/owner writes for suppression go through mark_filtered and mark_open so that
filter_id is set exactly when status is filtered.
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session

from app.models import Filter, Finding
from app.models.finding import FINDING_STATUSES, STATUS_FILTERED, STATUS_OPEN
from app.schemas.filters import RULE_FIELDS

logger = logging.getLogger(__name__)


def count_by_status(session: Session, project_id: int | None = None) -> dict[str, int]:
    """Number of findings per status, for one project or all. Every status is present."""
    query = session.query(Finding.status, func.count(Finding.id))
    if project_id is not None:
        query = query.filter(Finding.project_id == project_id)
    counts = {status: 0 for status in FINDING_STATUSES}
    for status, count in query.group_by(Finding.status).all():
        counts[status] = count
    return counts


def list_filtered_by(session: Session, filter_id: int) -> set[int]:
    """Ids of findings currently owned by the rule."""
    rows = session.query(Finding.id).filter(Finding.filter_id == filter_id).all()
    return {row[0] for row in rows}


def mark_filtered(session: Session, findings: Iterable[Finding], filter_id: int) -> int:
    """Claim open findings for a rule. Findings not open are left alone. Returns count claimed."""
    claimed = 0
    for finding in findings:
        if finding.status != STATUS_OPEN:
            continue
        finding.status = STATUS_FILTERED
        finding.filter_id = filter_id
        claimed += 1
    if claimed:
        session.flush()
    return claimed


def mark_open(session: Session, filter_id: int) -> set[int]:
    """Release every finding owned by the rule. Returns the project ids touched."""
    owned = (
        session.query(Finding)
        .filter(Finding.filter_id == filter_id)
        .with_for_update()
        .all()
    )
    project_ids: set[int] = set()
    for finding in owned:
        finding.status = STATUS_OPEN
        finding.filter_id = None
        project_ids.add(finding.project_id)
    if owned:
        session.flush()
        logger.debug(
            "Released findings from filter: filter_id=%s, released=%s", filter_id, len(owned)
        )
    return project_ids


def count_filtered(session: Session, filter_id: int) -> int:
    """Number of findings the rule currently owns."""
    return (
        session.query(func.count(Finding.id))
        .filter(Finding.filter_id == filter_id)
        .scalar()
        or 0
    )


def decorate_with_filtered_count(session: Session, filters: Iterable[Filter]) -> list[dict[str, Any]]:
    """
    Rule columns plus finding_count (findings each rule currently owns).

    Counts come from one grouped query rather than one query per rule.
    """
    rules = list(filters)
    if not rules:
        return []
    ids = [rule.id for rule in rules]
    counts = dict(
        session.query(Finding.filter_id, func.count(Finding.id))
        .filter(Finding.filter_id.in_(ids))
        .group_by(Finding.filter_id)
        .all()
    )
    results: list[dict[str, Any]] = []
    for rule in rules:
        row: dict[str, Any] = {"id": rule.id, "created_at": rule.created_at}
        for name in RULE_FIELDS:
            row[name] = getattr(rule, name)
        row["finding_count"] = counts.get(rule.id, 0)
        results.append(row)
    return results


def check_invariant(session: Session) -> list[int]:
    """
    Ids of findings whose status and owner disagree, or whose owner is a rule that no
    longer exists. Empty when the ledger is consistent.
    """
    rows = (
        session.query(Finding.id)
        .outerjoin(Filter, Filter.id == Finding.filter_id)
        .filter(
            or_(
                and_(Finding.status == STATUS_FILTERED, Finding.filter_id.is_(None)),
                and_(Finding.status != STATUS_FILTERED, Finding.filter_id.isnot(None)),
                and_(Finding.filter_id.isnot(None), Filter.id.is_(None)),
            )
        )
        .order_by(Finding.id)
        .all()
    )
    return [row[0] for row in rows]
