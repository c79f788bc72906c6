# hr_compliance/crud/compliance.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from hr_compliance.models.client import Client
from hr_compliance.models.compliance_period_record import (
    CompliancePeriodRecord,
    SATISFIED_STATUSES,
)
from hr_compliance.models.compliance_type import ComplianceType
from hr_compliance.models.employee import Employee
from hr_compliance.schemas.compliance import ComplianceRecordIn, ComplianceTypeIn

log = logging.getLogger("hr_compliance.crud")

M = TypeVar("M", bound=BaseModel)


# ---------------------------
# Boundary validation
# ---------------------------
def parse_rows(model: Type[M], rows: Iterable[object], *, what: str) -> List[M]:
    """
    Validate raw rows (ORM objects or dicts) into `model`.
    Invalid rows are logged and dropped so they never reach the status engine.
    """
    out: List[M] = []
    for row in rows:
        try:
            out.append(model.model_validate(row))
        except ValidationError as exc:
            row_id = row.get("id") if isinstance(row, dict) else getattr(row, "id", None)
            log.warning(
                "Rejected %s row id=%r: %s",
                what,
                row_id,
                "; ".join(
                    f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
                ),
            )
    return out


# ---------------------------
# Reads (status engine inputs)
# ---------------------------
def list_visible_compliance_types(
    db: Session,
    target_table: str = "employees",
    portal_only: bool = True,
) -> List[ComplianceTypeIn]:
    q = db.query(ComplianceType).filter(ComplianceType.target_table == target_table)
    if portal_only:
        q = q.filter(ComplianceType.visible_in_employee_portal.is_(True))
    rows = q.order_by(ComplianceType.name.asc(), ComplianceType.id.asc()).all()
    return parse_rows(ComplianceTypeIn, rows, what="compliance_type")


def _records_query(db: Session):
    return db.query(CompliancePeriodRecord).order_by(
        CompliancePeriodRecord.created_at.desc(), CompliancePeriodRecord.id.desc()
    )


def list_records_for_employee(db: Session, employee_id: str) -> List[ComplianceRecordIn]:
    rows = _records_query(db).filter(CompliancePeriodRecord.employee_id == employee_id).all()
    return parse_rows(ComplianceRecordIn, rows, what="compliance_period_record")


def list_records_for_client(db: Session, client_id: str) -> List[ComplianceRecordIn]:
    rows = _records_query(db).filter(CompliancePeriodRecord.client_id == client_id).all()
    return parse_rows(ComplianceRecordIn, rows, what="compliance_period_record")


def get_employee(db: Session, employee_id: str) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.id == employee_id).first()


def get_client(db: Session, client_id: str) -> Optional[Client]:
    return db.query(Client).filter(Client.id == client_id).first()


# ---------------------------
# Automation helpers
# ---------------------------
def list_types_for_target(db: Session, target_table: str) -> List[ComplianceType]:
    return (
        db.query(ComplianceType)
        .filter(ComplianceType.target_table == target_table)
        .order_by(ComplianceType.name.asc(), ComplianceType.id.asc())
        .all()
    )


def list_employee_ids(db: Session) -> List[str]:
    return [r[0] for r in db.query(Employee.id).order_by(Employee.id.asc()).all()]


def list_active_client_ids(db: Session) -> List[str]:
    return [
        r[0]
        for r in db.query(Client.id)
        .filter(Client.is_active.is_(True))
        .order_by(Client.id.asc())
        .all()
    ]


def _entity_column(target_table: str):
    return CompliancePeriodRecord.client_id if target_table == "clients" else CompliancePeriodRecord.employee_id


def existing_entity_ids(
    db: Session, *, compliance_type_id: str, period_identifier: str, target_table: str
) -> Set[str]:
    col = _entity_column(target_table)
    rows = (
        db.query(col)
        .filter(
            CompliancePeriodRecord.compliance_type_id == compliance_type_id,
            CompliancePeriodRecord.period_identifier == period_identifier,
            col.isnot(None),
        )
        .all()
    )
    return {r[0] for r in rows}


def create_pending_records(
    db: Session,
    *,
    compliance_type_id: str,
    period_identifier: str,
    target_table: str,
    entity_ids: Iterable[str],
) -> int:
    """Insert one 'pending' record per entity. Caller commits."""
    n = 0
    key = "client_id" if target_table == "clients" else "employee_id"
    for entity_id in entity_ids:
        db.add(
            CompliancePeriodRecord(
                compliance_type_id=compliance_type_id,
                period_identifier=period_identifier,
                status="pending",
                is_overdue=False,
                **{key: entity_id},
            )
        )
        n += 1
    db.flush()
    return n


def list_open_records(db: Session, target_table: str) -> List[CompliancePeriodRecord]:
    """Records not yet satisfied nor flagged overdue, joined with their type."""
    col = _entity_column(target_table)
    return (
        db.query(CompliancePeriodRecord)
        .join(ComplianceType, ComplianceType.id == CompliancePeriodRecord.compliance_type_id)
        .filter(
            col.isnot(None),
            CompliancePeriodRecord.status.notin_(SATISFIED_STATUSES),
            CompliancePeriodRecord.is_overdue.is_(False),
        )
        .order_by(CompliancePeriodRecord.id.asc())
        .all()
    )
