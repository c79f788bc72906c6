# hr_compliance/services/audit.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

log = logging.getLogger("hr_compliance.audit")

AUTOMATION_RUN = "AUTOMATION_RUN"

# audit_logs lives outside the ORM models: the HR database may already have one
_CREATE_SQL = text(
    """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        actor TEXT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NULL,
        entity_id TEXT NULL,
        meta TEXT NULL,
        ip_address TEXT NULL,
        created_at DATETIME NOT NULL DEFAULT (CURRENT_TIMESTAMP)
    )
    """
)

_INSERT_SQL = text(
    "INSERT INTO audit_logs (actor, action, entity_type, entity_id, meta, ip_address) "
    "VALUES (:actor, :action, :entity_type, :entity_id, :meta, :ip)"
)


def ip_from_request(request: Optional[Request]) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer."""
    if request is None:
        return None
    forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


def audit_log(
    db: Session,
    *,
    action: str,
    actor: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> bool:
    """
    Append one audit row (the table is created on first use).
    Failures are logged and rolled back; the caller's work is already committed.
    """
    params = {
        "actor": actor,
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        # datetimes in run summaries are stored as their str()
        "meta": json.dumps(meta or {}, separators=(",", ":"), default=str),
        "ip": ip,
    }
    try:
        db.execute(_CREATE_SQL)
        db.execute(_INSERT_SQL, params)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Audit write failed | action=%s actor=%s", action, actor)
        return False
    return True


def audit_automation_run(
    db: Session,
    *,
    summary: Dict[str, Any],
    actor: Optional[str] = "scheduler",
    ip: Optional[str] = None,
) -> bool:
    return audit_log(
        db,
        action=AUTOMATION_RUN,
        actor=actor,
        entity_type="compliance_automation",
        meta=summary,
        ip=ip,
    )
