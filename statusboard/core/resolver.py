"""
Status Board — Status Resolver.

Decides what status each employee shows today by reconciling three
sources, in this order, on every roster load:

1. Recurring pass — weekday defaults for employees with recurring enabled.
2. Scheduled pass — one-off overrides dated exactly today. These win over
   the recurring result.
3. Retention pass — purges overrides whose date has passed.

Each employee is resolved at most once per calendar day: the first two
passes only look at employees whose `applied_date` is not today, and every
write stamps that marker. Writes are compare-and-swap on the employee's
version, so a row edited mid-run is left alone rather than clobbered.

Failures are per record: they are logged, collected in the report, and
never stop the remaining records or passes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from statusboard.ports.store_port import StoreError

if TYPE_CHECKING:
    from statusboard.data.models import Employee, ScheduledStatusOverride
    from statusboard.ports.store_port import StatusStorePort

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def day_of_week_index(moment: datetime) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (moment.weekday() + 1) % 7


@dataclass(frozen=True)
class ResolutionDay:
    """Today's date and weekday, both taken from one clock reading."""

    date: str            # ISO YYYY-MM-DD
    day_of_week: int     # 0 = Sunday .. 6 = Saturday

    @classmethod
    def from_datetime(cls, now: datetime) -> ResolutionDay:
        return cls(date=now.date().isoformat(), day_of_week=day_of_week_index(now))

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


@dataclass
class ResolutionReport:
    """What one resolution run did."""

    date: str
    day_of_week: int
    candidates: int = 0
    recurring_applied: list[int] = field(default_factory=list)
    scheduled_applied: list[int] = field(default_factory=list)
    conflicts: list[int] = field(default_factory=list)
    purged: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Shared write helper
# ---------------------------------------------------------------------------


async def _apply(
    store: StatusStorePort,
    tenant_id: int,
    day: ResolutionDay,
    candidates: dict[int, Employee],
    employee_id: int,
    status_text: str,
    source: str,
    report: ResolutionReport,
) -> bool:
    """CAS-write one status. Keeps `candidates` at the latest version."""
    employee = candidates[employee_id]
    try:
        updated = await store.apply_status(
            tenant_id, employee_id, status_text, day.date, employee.version,
        )
    except StoreError as exc:
        logger.error("Failed to apply %s status to employee #%d: %s", source, employee_id, exc)
        report.errors.append(f"{source} employee #{employee_id}: {exc}")
        return False

    if updated is None:
        logger.warning(
            "Employee #%d changed during resolution; %s status '%s' not applied",
            employee_id, source, status_text,
        )
        report.conflicts.append(employee_id)
        return False

    candidates[employee_id] = updated
    logger.info(
        "Applied %s status '%s' to employee #%d for %s",
        source, status_text, employee_id, day.date,
    )
    return True


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


async def run_recurring_pass(
    store: StatusStorePort,
    tenant_id: int,
    day: ResolutionDay,
    candidates: dict[int, Employee],
    report: ResolutionReport,
) -> None:
    """Apply today's weekday rule to recurring-enabled candidates.

    Employees with an override dated today are skipped here: the scheduled
    pass owns them.
    """
    eligible = [e.id for e in candidates.values() if e.recurring_enabled]
    if not eligible:
        return

    try:
        rules = await store.list_recurring_rules(
            tenant_id, employee_ids=eligible, day_of_week=day.day_of_week,
        )
        if not rules:
            return
        scheduled_today = {
            o.employee_id
            for o in await store.list_overrides(
                tenant_id, employee_ids=eligible, scheduled_date=day.date,
            )
        }
    except StoreError as exc:
        logger.error("Recurring pass: read failed for tenant #%d: %s", tenant_id, exc)
        report.errors.append(f"recurring read: {exc}")
        return

    for rule in rules:
        if rule.employee_id in scheduled_today:
            logger.debug(
                "Employee #%d has a scheduled status today; recurring rule skipped",
                rule.employee_id,
            )
            continue
        if await _apply(
            store, tenant_id, day, candidates,
            rule.employee_id, rule.status_text, "recurring", report,
        ):
            report.recurring_applied.append(rule.employee_id)


async def run_scheduled_pass(
    store: StatusStorePort,
    tenant_id: int,
    day: ResolutionDay,
    candidates: dict[int, Employee],
    report: ResolutionReport,
) -> None:
    """Apply overrides dated exactly today; overwrites the recurring result.

    Past-dated overrides are never applied here, only purged later.
    """
    if not candidates:
        return

    try:
        overrides = await store.list_overrides(
            tenant_id, employee_ids=list(candidates), scheduled_date=day.date,
        )
    except StoreError as exc:
        logger.error("Scheduled pass: read failed for tenant #%d: %s", tenant_id, exc)
        report.errors.append(f"scheduled read: {exc}")
        return

    # Rows come ordered by id, so the most recently created override wins.
    by_employee: dict[int, list[ScheduledStatusOverride]] = {}
    for override in overrides:
        by_employee.setdefault(override.employee_id, []).append(override)

    for employee_id, todays in by_employee.items():
        winner = todays[-1]
        if winner.last_applied_date == day.date:
            logger.debug("Scheduled status #%d already applied today", winner.id)
            continue

        if not await _apply(
            store, tenant_id, day, candidates,
            employee_id, winner.status_text, "scheduled", report,
        ):
            continue
        report.scheduled_applied.append(employee_id)

        for override in todays:
            try:
                await store.mark_override_applied(tenant_id, override.id, day.date)
            except StoreError as exc:
                logger.error("Failed to stamp scheduled status #%d: %s", override.id, exc)
                report.errors.append(f"stamp override #{override.id}: {exc}")


async def run_retention_pass(
    store: StatusStorePort,
    tenant_id: int,
    day: ResolutionDay,
    report: ResolutionReport,
) -> None:
    """Delete every override dated before today, applied or not."""
    try:
        report.purged = await store.delete_overrides_before(tenant_id, day.date)
    except StoreError as exc:
        logger.error("Retention pass failed for tenant #%d: %s", tenant_id, exc)
        report.errors.append(f"retention: {exc}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def resolve_statuses(
    store: StatusStorePort,
    tenant_id: int,
    now: datetime,
) -> ResolutionReport:
    """Run the three passes for one tenant against a single `now`."""
    day = ResolutionDay.from_datetime(now)
    report = ResolutionReport(date=day.date, day_of_week=day.day_of_week)

    try:
        pending = await store.list_pending_employees(tenant_id, day.date)
    except StoreError as exc:
        logger.error("Could not read pending employees for tenant #%d: %s", tenant_id, exc)
        report.errors.append(f"candidates read: {exc}")
        pending = []

    candidates = {e.id: e for e in pending}
    report.candidates = len(candidates)

    if candidates:
        await run_recurring_pass(store, tenant_id, day, candidates, report)
        await run_scheduled_pass(store, tenant_id, day, candidates, report)

    await run_retention_pass(store, tenant_id, day, report)

    logger.info(
        "Resolved tenant #%d for %s (%s): %d candidate(s), %d recurring, "
        "%d scheduled, %d conflict(s), %d purged, %d error(s)",
        tenant_id, day.date, day.day_name, report.candidates,
        len(report.recurring_applied), len(report.scheduled_applied),
        len(report.conflicts), report.purged, len(report.errors),
    )
    return report
