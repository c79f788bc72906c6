# hr_compliance/services/compliance_status.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from hr_compliance.schemas.compliance import (
    BiAnnualPeriodOut,
    ComplianceItemOut,
    ComplianceOverviewOut,
    ComplianceRecordIn,
    ComplianceTypeIn,
    MonthlyPeriodOut,
    QuarterlyPeriodOut,
)
from hr_compliance.services.periods import (
    SUBDIVIDED_FREQUENCIES,
    CurrentIndices,
    Period,
    PeriodKind,
    current_index,
    current_indices,
    is_period_overdue,
    sub_periods,
)

# How far back completed annual items from earlier periods are still shown
RECENTLY_COMPLETED_WINDOW = relativedelta(months=3)

# kind -> (timeline entry model, index field, item attribute)
_TIMELINE_KINDS = {
    PeriodKind.QUARTER: (QuarterlyPeriodOut, "quarter", "quarterly_timeline"),
    PeriodKind.MONTH: (MonthlyPeriodOut, "month", "monthly_timeline"),
    PeriodKind.HALF: (BiAnnualPeriodOut, "half", "bi_annual_timeline"),
}

RecordIndex = Dict[Tuple[str, str], ComplianceRecordIn]


# ---- Helpers -----------------------------------------------------------------
def _index_records(records: Iterable[ComplianceRecordIn]) -> RecordIndex:
    """(type_id, period) -> first matching record, in input order."""
    idx: RecordIndex = {}
    for r in records:
        idx.setdefault((r.compliance_type_id, r.period_identifier), r)
    return idx


def _completed_date(record: Optional[ComplianceRecordIn]) -> Optional[datetime]:
    return record.updated_at if record is not None else None


def _aligned(ts: datetime, now: datetime) -> datetime:
    """Make ts comparable with now; naive timestamps are treated as UTC."""
    if (ts.tzinfo is None) == (now.tzinfo is None):
        return ts
    if now.tzinfo is None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts.replace(tzinfo=timezone.utc)


# ---- Per-frequency timeline --------------------------------------------------
def _timeline_item(
    ctype: ComplianceTypeIn,
    kind: PeriodKind,
    records: RecordIndex,
    cur: CurrentIndices,
    now: datetime,
) -> Tuple[ComplianceItemOut, bool]:
    """
    Build the item for a quarterly/monthly/bi-annual type.
    Returns (item, all_sub_periods_completed).
    """
    model, index_field, timeline_attr = _TIMELINE_KINDS[kind]
    this_index = current_index(kind, cur)

    timeline = []
    for sub in sub_periods(kind, cur.year):
        record = records.get((ctype.id, sub.identifier))
        is_completed = record is not None and record.is_satisfied

        if is_period_overdue(sub.identifier, ctype.frequency, now):
            status = "completed" if is_completed else "overdue"
        elif sub.index == this_index:
            status = "completed" if is_completed else "due"
        else:
            status = "upcoming"

        timeline.append(
            model(
                **{index_field: sub.index},
                period=sub.identifier,
                label=sub.label,
                status=status,
                completed_date=_completed_date(record),
            )
        )

    has_overdue = any(p.status == "overdue" for p in timeline)
    current_period = Period(year=cur.year, kind=kind, index=this_index).identifier
    current_record = records.get((ctype.id, current_period))
    current_done = current_record is not None and current_record.is_satisfied

    if has_overdue:
        status = "overdue"
    else:
        status = "completed" if current_done else "due"

    item = ComplianceItemOut(
        id=ctype.id,
        name=ctype.name,
        frequency=ctype.frequency,
        period=current_period,
        status=status,
        is_overdue=has_overdue or bool(current_record is not None and current_record.is_overdue),
        completed_date=_completed_date(current_record),
        **{timeline_attr: timeline},
    )
    # partial-year completion never counts as done
    return item, all(p.status == "completed" for p in timeline)


# ---- Annual / default --------------------------------------------------------
def _annual_item(
    ctype: ComplianceTypeIn,
    records: RecordIndex,
    cur: CurrentIndices,
) -> Tuple[ComplianceItemOut, bool]:
    """Annual and unrecognised frequencies: one period per calendar year."""
    period = str(cur.year)
    record = records.get((ctype.id, period))

    status, is_overdue, done = "due", False, False
    if record is not None:
        if record.is_satisfied:
            status, done = "completed", True
        elif record.status == "overdue" or record.is_overdue:
            status, is_overdue = "overdue", True

    item = ComplianceItemOut(
        id=ctype.id,
        name=ctype.name,
        frequency=ctype.frequency,
        period=period,
        status=status,
        is_overdue=is_overdue,
        completed_date=_completed_date(record),
    )
    return item, done


# ---- Backfill ----------------------------------------------------------------
def _recently_completed(
    types: List[ComplianceTypeIn],
    records: List[ComplianceRecordIn],
    completed_items: List[ComplianceItemOut],
    now: datetime,
) -> List[ComplianceItemOut]:
    """
    Completed annual/default-path records from the last 3 months that the main
    loop did not produce (e.g. last year's annual check completed in January).
    """
    by_id = {}
    for t in types:
        by_id.setdefault(t.id, t)
    since = now - RECENTLY_COMPLETED_WINDOW
    seen = {(item.id, item.period) for item in completed_items}

    extra: List[ComplianceItemOut] = []
    for r in records:
        if not r.is_satisfied:
            continue
        ctype = by_id.get(r.compliance_type_id)
        if ctype is None or ctype.frequency in SUBDIVIDED_FREQUENCIES:
            continue
        if _aligned(r.updated_at, now) < since:
            continue
        key = (ctype.id, r.period_identifier)
        if key in seen:
            continue
        seen.add(key)
        extra.append(
            ComplianceItemOut(
                id=ctype.id,
                name=ctype.name,
                frequency=ctype.frequency,
                period=r.period_identifier,
                status="completed",
            )
        )
    return extra


# ---- Public API --------------------------------------------------------------
def compute_compliance_overview(
    now: datetime,
    compliance_types: Iterable[ComplianceTypeIn],
    compliance_records: Iterable[ComplianceRecordIn],
) -> ComplianceOverviewOut:
    """
    Derive the due/completed view for one entity (employee or client).

    Pure: depends only on the arguments. `now` is read once by the caller and
    used for every comparison. Types are processed in input order, sub-periods
    ascending, backfilled items in record order.

    Every type yields exactly one item in either bucket. Quarterly, monthly and
    bi-annual items land in completedItems only when every sub-period of the
    current year is completed; their `status` reflects the current sub-period
    (or 'overdue' if any earlier one was missed), so a 'completed' item can
    still sit in dueItems.
    """
    types = list(compliance_types)
    records = list(compliance_records)
    record_index = _index_records(records)
    cur = current_indices(now)

    due_items: List[ComplianceItemOut] = []
    completed_items: List[ComplianceItemOut] = []

    for ctype in types:
        kind = SUBDIVIDED_FREQUENCIES.get(ctype.frequency)
        if kind is not None:
            item, done = _timeline_item(ctype, kind, record_index, cur, now)
        else:
            item, done = _annual_item(ctype, record_index, cur)
        (completed_items if done else due_items).append(item)

    completed_items.extend(_recently_completed(types, records, completed_items, now))

    return ComplianceOverviewOut(due_items=due_items, completed_items=completed_items)
