"""Filter matching engine: match rules against findings and keep suppression consistent.

A rule claims open findings it matches. A finding is owned by at most one rule; rules
never take a finding another rule already owns. Deleting a rule releases its findings and
re-applies every remaining rule in ascending id order, so a released finding ends up with
the lowest-id remaining rule that matches it.

Mutations hold a process-wide lock and run in one transaction together with the stat
snapshots they cause, so readers never see a half-applied rule.
"""

import logging
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.core.database import transaction
from app.core.errors import NotFoundError, RuleValidationError
from app.models import Filter, Finding
from app.models.finding import STATUS_OPEN
from app.schemas.filters import RULE_FIELDS, FilterCreate
from app.services import suppression_ledger
from app.services.stat_snapshots import refresh_stats, require_project
from app.services.stats_cache import StatsCache, publish_system_stats

logger = logging.getLogger(__name__)

# Rule fields compared against findings. Unset (None) rule fields are wildcards.
MATCH_FIELDS: tuple[str, ...] = RULE_FIELDS

# Serializes every suppression mutation in the process. Global rules and the re-apply
# pass touch every project, so there is a single lock rather than one per project.
_SUPPRESSION_LOCK = threading.Lock()


def matches(rule: Any, finding: Any) -> bool:
    """
    True if every field set on the rule equals the finding's field exactly.

    Comparison is plain equality: case-sensitive, no substring or pattern matching.
    A rule with no field set matches everything (such rules cannot be created).
    """
    for name in MATCH_FIELDS:
        expected = getattr(rule, name, None)
        if expected is None:
            continue
        if getattr(finding, name, None) != expected:
            return False
    return True


def _open_candidates(session: Session, rule: Filter) -> list[Finding]:
    """Open findings pre-selected in SQL on the rule's concrete fields, ascending by id."""
    query = session.query(Finding).filter(Finding.status == STATUS_OPEN)
    for name in MATCH_FIELDS:
        value = getattr(rule, name)
        if value is not None:
            query = query.filter(getattr(Finding, name) == value)
    return query.order_by(Finding.id).with_for_update().all()


def _claim(session: Session, rule: Filter) -> tuple[int, set[int]]:
    """Claim every open finding the rule matches. Returns (claimed, project ids touched)."""
    # SQL equality may be collation-dependent; matches() has the final say.
    matched = [finding for finding in _open_candidates(session, rule) if matches(rule, finding)]
    claimed = suppression_ledger.mark_filtered(session, matched, rule.id)
    return claimed, {finding.project_id for finding in matched}


def _reapply(session: Session) -> tuple[dict[int, int], set[int]]:
    """Apply every rule in ascending id order. Returns (claimed per rule id, project ids touched)."""
    claimed_by_rule: dict[int, int] = {}
    touched: set[int] = set()
    for rule in session.query(Filter).order_by(Filter.id).all():
        claimed, project_ids = _claim(session, rule)
        if claimed:
            claimed_by_rule[rule.id] = claimed
            touched |= project_ids
    return claimed_by_rule, touched


def _identity_id(rule: Filter) -> int:
    # The identity key is readable without a refresh, which fails once the row is gone.
    identity = inspect(rule).identity
    return identity[0] if identity else rule.id


def _to_payload(fields: FilterCreate | Mapping[str, Any]) -> FilterCreate:
    if isinstance(fields, FilterCreate):
        return fields
    try:
        return FilterCreate.model_validate(dict(fields))
    except PydanticValidationError as e:
        raise RuleValidationError("Filter fields are invalid.", errors=e.errors()) from e


def create_filter(
    session: Session,
    fields: FilterCreate | Mapping[str, Any],
    clock: Clock | None = None,
    cache: StatsCache | None = None,
) -> tuple[Filter, int]:
    """
    Validate and store a rule, then apply it to the open findings.

    Raises RuleValidationError when no field is set (a rule matching everything) or a
    field fails its shape checks, and NotFoundError for an unknown project. Nothing is
    written in either case. Returns (rule, findings claimed).
    """
    clock = clock or get_clock()
    payload = _to_payload(fields)
    if not payload.concrete_fields():
        raise RuleValidationError("Filter must set at least one field.")
    if payload.project_id is not None:
        require_project(session, payload.project_id)

    with _SUPPRESSION_LOCK, transaction(session):
        rule = Filter(created_at=clock.now(), **{name: getattr(payload, name) for name in RULE_FIELDS})
        session.add(rule)
        session.flush()
        claimed, project_ids = _claim(session, rule)
        if claimed:
            refresh_stats(session, project_ids, clock)
        rule_id = rule.id

    logger.info("Filter created: filter_id=%s, findings_filtered=%s", rule_id, claimed)
    if claimed:
        publish_system_stats(session, cache, clock)
    return rule, claimed


def apply_filter(
    session: Session,
    rule: Filter,
    clock: Clock | None = None,
    cache: StatsCache | None = None,
) -> int:
    """
    Claim the open findings a stored rule matches. Returns the number claimed.

    Findings owned by other rules are never taken, so a second call with no finding
    changes in between claims nothing. Raises NotFoundError when the rule has been
    deleted since the caller loaded it.
    """
    clock = clock or get_clock()
    rule_id = _identity_id(rule)
    with _SUPPRESSION_LOCK, transaction(session):
        rule = session.get(Filter, rule_id, with_for_update=True)
        if rule is None:
            raise NotFoundError(f"record not found for id = {rule_id}")
        claimed, project_ids = _claim(session, rule)
        if claimed:
            refresh_stats(session, project_ids, clock)

    logger.info("Filter applied: filter_id=%s, findings_filtered=%s", rule_id, claimed)
    if claimed:
        publish_system_stats(session, cache, clock)
    return claimed


def delete_filter(
    session: Session,
    filter_id: int,
    clock: Clock | None = None,
    cache: StatsCache | None = None,
) -> set[int]:
    """
    Delete a rule and hand its findings to the remaining rules.

    Releases the rule's findings to open, deletes it, then re-applies all remaining rules
    in ascending id order. Raises NotFoundError for an unknown id. Returns the ids of the
    projects whose findings changed.
    """
    clock = clock or get_clock()
    with _SUPPRESSION_LOCK, transaction(session):
        rule = session.get(Filter, filter_id, with_for_update=True)
        if rule is None:
            raise NotFoundError(f"record not found for id = {filter_id}")
        touched = suppression_ledger.mark_open(session, rule.id)
        session.delete(rule)
        session.flush()
        reclaimed, reclaimed_projects = _reapply(session)
        touched |= reclaimed_projects
        if touched:
            refresh_stats(session, touched, clock)

    logger.info(
        "Filter deleted: filter_id=%s, projects_touched=%s, reclaimed_by=%s",
        filter_id,
        sorted(touched),
        reclaimed,
    )
    if touched:
        publish_system_stats(session, cache, clock)
    return touched


def reapply_all_filters(
    session: Session,
    clock: Clock | None = None,
    cache: StatsCache | None = None,
) -> dict[int, int]:
    """
    Apply every rule, lowest id first, to the current open findings.

    For the scan pipeline to call after it publishes new findings. Returns findings
    claimed per rule id (rules that claimed nothing are omitted).
    """
    clock = clock or get_clock()
    with _SUPPRESSION_LOCK, transaction(session):
        claimed_by_rule, touched = _reapply(session)
        if touched:
            refresh_stats(session, touched, clock)

    if claimed_by_rule:
        logger.info("Filters re-applied: claimed_by_rule=%s", claimed_by_rule)
        publish_system_stats(session, cache, clock)
    return claimed_by_rule


def get_filter(session: Session, filter_id: int) -> Filter:
    """Stored rule, or NotFoundError."""
    rule = session.get(Filter, filter_id)
    if rule is None:
        raise NotFoundError(f"no filter with id {filter_id} found")
    return rule


def count_filtered(session: Session, filter_id: int) -> int:
    """Number of findings the rule currently owns. NotFoundError for an unknown id."""
    get_filter(session, filter_id)
    return suppression_ledger.count_filtered(session, filter_id)
