# hr_compliance/services/compliance_automation.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_compliance.crud.compliance import (
    create_pending_records,
    existing_entity_ids,
    list_active_client_ids,
    list_employee_ids,
    list_open_records,
    list_types_for_target,
)
from hr_compliance.services.audit import audit_automation_run
from hr_compliance.services.periods import (
    ANNUAL,
    BI_ANNUAL,
    MONTHLY,
    QUARTERLY,
    WEEKLY,
    InvalidPeriodIdentifier,
    Period,
    current_period,
    is_past_end,
    parse_period,
)

log = logging.getLogger("hr_compliance.automation")

# Months in which a new period starts (records are generated during that month)
_GENERATION_MONTHS = {
    ANNUAL: {1},
    QUARTERLY: {1, 4, 7, 10},
    BI_ANNUAL: {1, 7},
}


def generation_period(frequency: str, now: datetime) -> Tuple[Optional[Period], bool]:
    """
    (period, should_generate) for a type's frequency at `now`.
    Monthly and weekly types generate on every run; unknown frequencies give (None, False).
    """
    period = current_period(frequency, now)
    if period is None:
        return None, False
    if frequency in (MONTHLY, WEEKLY):
        return period, True
    return period, now.month in _GENERATION_MONTHS[frequency]


def generate_period_records(db: Session, *, target_table: str, now: datetime) -> int:
    """
    Create the current period's 'pending' record for every entity that lacks one.
    A failing type is logged and skipped.
    """
    entity_ids = list_employee_ids(db) if target_table == "employees" else list_active_client_ids(db)
    created = 0

    for ctype in list_types_for_target(db, target_table):
        frequency = (ctype.frequency or "").strip().lower()
        period, should_generate = generation_period(frequency, now)
        if period is None:
            log.info("Unknown frequency %r for %s type %s, skipping", ctype.frequency, target_table, ctype.id)
            continue
        if not should_generate:
            continue

        try:
            have = existing_entity_ids(
                db,
                compliance_type_id=ctype.id,
                period_identifier=period.identifier,
                target_table=target_table,
            )
            n = create_pending_records(
                db,
                compliance_type_id=ctype.id,
                period_identifier=period.identifier,
                target_table=target_table,
                entity_ids=[e for e in entity_ids if e not in have],
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            log.exception("Generating %s records failed for type %s (%s)", target_table, ctype.id, period)
            continue

        created += n
        log.info("Created %s %s records for %r - %s", n, target_table, ctype.name, period)

    return created


def flag_overdue_records(db: Session, *, target_table: str, now: datetime) -> int:
    """
    Mark unsatisfied records whose period has ended as overdue.
    Records with unparseable period identifiers are logged and left untouched.
    """
    updated = 0
    for record in list_open_records(db, target_table):
        try:
            period = parse_period(record.period_identifier)
        except InvalidPeriodIdentifier as exc:
            log.warning("Skipping record %s: %s", record.id, exc)
            continue
        if not is_past_end(period, now):
            continue
        record.status = "overdue"
        record.is_overdue = True
        updated += 1

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Flagging overdue %s records failed", target_table)
        return 0
    return updated


def run_compliance_automation(
    db: Session,
    now: datetime,
    *,
    actor: Optional[str] = "scheduler",
    ip: Optional[str] = None,
) -> Dict[str, Any]:
    """
    One automation pass:
      - generate current-period records for employee and client types
      - flag records of ended periods as overdue
      - write an AUTOMATION_RUN audit entry (best effort)
    """
    log.info("Starting compliance automation | now=%s", now.isoformat())

    employee_created = generate_period_records(db, target_table="employees", now=now)
    client_created = generate_period_records(db, target_table="clients", now=now)
    employee_updates = flag_overdue_records(db, target_table="employees", now=now)
    client_updates = flag_overdue_records(db, target_table="clients", now=now)

    summary: Dict[str, Any] = {
        "success": True,
        "employee_records_created": employee_created,
        "client_records_created": client_created,
        "employee_status_updates": employee_updates,
        "client_status_updates": client_updates,
        "processed_at": now,
        "message": (
            f"Created {employee_created} employee records, {client_created} client records. "
            f"Updated {employee_updates} employee statuses, {client_updates} client statuses."
        ),
    }
    log.info("Compliance automation completed: %s", summary["message"])

    audit_automation_run(db, summary=summary, actor=actor, ip=ip)
    return summary
