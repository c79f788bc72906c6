# hr_compliance/api/v1/compliance.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_compliance.crud.compliance import (
    get_client,
    get_employee,
    list_records_for_client,
    list_records_for_employee,
    list_visible_compliance_types,
)
from hr_compliance.db.session import get_db
from hr_compliance.schemas.compliance import (
    AutomationRunOut,
    ComplianceOverviewOut,
    PeriodOut,
)
from hr_compliance.services.audit import ip_from_request
from hr_compliance.services.compliance_automation import run_compliance_automation
from hr_compliance.services.compliance_status import compute_compliance_overview
from hr_compliance.services.periods import parse_period

log = logging.getLogger("hr_compliance.api")

router = APIRouter()

FETCH_FAILED = "Failed to fetch compliance data"


def _utcnow() -> datetime:
    # naive UTC, same convention as CURRENT_TIMESTAMP on stored rows
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _now(at: Optional[datetime]) -> datetime:
    # single clock read per request; every derivation below uses this value
    return at if at is not None else _utcnow()


@router.get(
    "/employees/{employee_id}/compliance",
    response_model=ComplianceOverviewOut,
    response_model_exclude_none=True,
)
def employee_compliance(
    employee_id: str,
    at: Optional[datetime] = Query(None, description="Evaluate as of this instant (ISO 8601)."),
    db: Session = Depends(get_db),
):
    """
    Due and completed compliance items for one employee, limited to employee
    types visible in the portal.
    """
    now = _now(at)
    try:
        if get_employee(db, employee_id) is None:
            raise HTTPException(status_code=404, detail="Employee not found")
        types = list_visible_compliance_types(db, target_table="employees", portal_only=True)
        records = list_records_for_employee(db, employee_id)
    except SQLAlchemyError:
        log.exception("Fetching compliance data failed | employee_id=%s", employee_id)
        raise HTTPException(status_code=503, detail=FETCH_FAILED)

    return compute_compliance_overview(now, types, records)


@router.get(
    "/clients/{client_id}/compliance",
    response_model=ComplianceOverviewOut,
    response_model_exclude_none=True,
)
def client_compliance(
    client_id: str,
    at: Optional[datetime] = Query(None, description="Evaluate as of this instant (ISO 8601)."),
    db: Session = Depends(get_db),
):
    """Due and completed compliance items for one client (all client types)."""
    now = _now(at)
    try:
        if get_client(db, client_id) is None:
            raise HTTPException(status_code=404, detail="Client not found")
        types = list_visible_compliance_types(db, target_table="clients", portal_only=False)
        records = list_records_for_client(db, client_id)
    except SQLAlchemyError:
        log.exception("Fetching compliance data failed | client_id=%s", client_id)
        raise HTTPException(status_code=503, detail=FETCH_FAILED)

    return compute_compliance_overview(now, types, records)


@router.get("/compliance/periods/{period_identifier}", response_model=PeriodOut)
def describe_period(period_identifier: str):
    # InvalidPeriodIdentifier -> 422 via the registered handler
    period = parse_period(period_identifier)
    return PeriodOut(
        identifier=period.identifier,
        year=period.year,
        kind=period.kind.value,
        index=period.index,
        label=period.label,
        end_at=period.end_instant(),
    )


@router.post("/compliance/automation/run", response_model=AutomationRunOut)
def run_automation(
    request: Request,
    at: Optional[datetime] = Query(None, description="Run as of this instant (ISO 8601)."),
    db: Session = Depends(get_db),
):
    """
    Run one compliance automation pass: generate current-period records and
    flag ended periods as overdue.
    """
    now = _now(at)
    try:
        summary = run_compliance_automation(db, now, actor="api", ip=ip_from_request(request))
    except SQLAlchemyError:
        db.rollback()
        log.exception("Compliance automation failed")
        raise HTTPException(status_code=503, detail="Compliance automation failed")
    return AutomationRunOut(**summary)
