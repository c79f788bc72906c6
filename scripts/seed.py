#!/usr/bin/env python3
"""
Local dev seed:
- Creates tables (dev only).
- Ensures a handful of compliance types, one employee and one client exist.
- Safe to run multiple times (idempotent).
"""
import os
import sys

# enable 'hr_compliance.' imports
sys.path.append(os.getcwd())

from dotenv import load_dotenv, find_dotenv

load_dotenv(find_dotenv(usecwd=True))

from sqlalchemy.orm import Session  # noqa: E402

from hr_compliance.db.session import engine, session_scope  # noqa: E402
from hr_compliance.models import Base  # noqa: E402
from hr_compliance.models.client import Client  # noqa: E402
from hr_compliance.models.compliance_type import ComplianceType  # noqa: E402
from hr_compliance.models.employee import Employee  # noqa: E402

DEFAULT_TYPES = (
    ("Supervision", "quarterly", "employees"),
    ("Spot Check", "bi-annual", "employees"),
    ("Annual Appraisal", "annual", "employees"),
    ("Medication Competency", "annual", "employees"),
    ("Care Plan Review", "monthly", "clients"),
    ("Client Spot Check", "quarterly", "clients"),
)


def ensure_type(db: Session, name: str, frequency: str, target_table: str) -> ComplianceType:
    obj = (
        db.query(ComplianceType)
        .filter(ComplianceType.name == name, ComplianceType.target_table == target_table)
        .first()
    )
    if obj:
        return obj
    obj = ComplianceType(name=name, frequency=frequency, target_table=target_table)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def ensure_employee(db: Session, name: str) -> Employee:
    obj = db.query(Employee).filter(Employee.name == name).first()
    if obj:
        return obj
    obj = Employee(name=name)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def ensure_client(db: Session, name: str) -> Client:
    obj = db.query(Client).filter(Client.name == name).first()
    if obj:
        return obj
    obj = Client(name=name, is_active=True)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def main():
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        for name, frequency, target in DEFAULT_TYPES:
            t = ensure_type(db, name, frequency, target)
            print(f"OK: type {t.name} ({t.frequency}, {t.target_table}) -> {t.id}")
        e = ensure_employee(db, os.environ.get("SEED_EMPLOYEE_NAME", "Demo Employee"))
        print(f"OK: employee {e.name} -> {e.id}")
        c = ensure_client(db, os.environ.get("SEED_CLIENT_NAME", "Demo Client"))
        print(f"OK: client {c.name} -> {c.id}")


if __name__ == "__main__":
    main()
