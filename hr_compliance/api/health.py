# hr_compliance/api/health.py
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_compliance.db.session import get_db
from hr_compliance.models.compliance_type import ComplianceType

router = APIRouter()

NO_STORE = {"Cache-Control": "no-store"}


@router.get("/healthz")
def healthz() -> dict:
    """Liveness: the process answers."""
    return {"ok": True, "service": "hr_compliance", "ts": datetime.now(timezone.utc).isoformat()}


@router.get("/readyz")
def readyz(db: Session = Depends(get_db)):
    """
    Readiness: the compliance_types table is reachable. Reports how many
    types are configured so an empty catalogue is visible at a glance.
    """
    started = time.perf_counter()
    try:
        type_count = db.query(func.count(ComplianceType.id)).scalar()
    except SQLAlchemyError as e:
        return JSONResponse(status_code=503, content={"ok": False, "db": "down", "error": str(e)}, headers=NO_STORE)

    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "db": "up",
            "compliance_types": type_count,
            "db_latency_ms": round((time.perf_counter() - started) * 1000.0, 2),
        },
        headers=NO_STORE,
    )
