# hr_compliance/main.py
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv, find_dotenv
from fastapi import FastAPI

# ---------------------------
# Env loading (root .env first, then package .env as fallback)
# ---------------------------
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("hr_compliance")

# --- DB engine (env must be loaded first) ---
from hr_compliance.db.session import engine  # noqa: E402
from hr_compliance.models import Base  # noqa: E402

from hr_compliance.api import health  # noqa: E402
from hr_compliance.api.v1 import compliance  # noqa: E402
from hr_compliance.core.errors import register_exception_handlers  # noqa: E402
from hr_compliance.middleware.request_logging import RequestLoggingMiddleware  # noqa: E402
from hr_compliance.worker.scheduler import make_scheduler  # noqa: E402

# ---------------------------
# CREATE TABLES (local dev only; the HR database owns the schema)
# ---------------------------
if os.getenv("ENABLE_CREATE_ALL", "0") == "1":
    Base.metadata.create_all(bind=engine)

# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="HR Compliance", version="1.0.0")

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(compliance.router, prefix="/api/v1", tags=["compliance"])
app.include_router(health.router, prefix="/api", tags=["health"])


# ---------------------------
# Scheduler (daily compliance automation)
# ---------------------------
@app.on_event("startup")
def _start_scheduler():
    app.state.scheduler = None
    if os.getenv("ENABLE_SCHEDULER", "1") != "1":
        return
    try:
        app.state.scheduler = make_scheduler()
        app.state.scheduler.start()
    except Exception:
        # keep the API running if the scheduler cannot start
        log.exception("Scheduler failed to start")
        app.state.scheduler = None


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "scheduler", None)
    if sched:
        sched.shutdown(wait=False)
