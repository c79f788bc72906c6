# hr_compliance/worker/scheduler.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError
from tzlocal import get_localzone

from hr_compliance.db.session import session_scope
from hr_compliance.services.compliance_automation import run_compliance_automation

log = logging.getLogger("hr_compliance.scheduler")


def scheduler_timezone() -> str:
    """APP_TIMEZONE, else the system zone via tzlocal."""
    return os.getenv("APP_TIMEZONE") or str(get_localzone())


def scheduler_now() -> datetime:
    """Wall-clock time in the zone the cron fires in (naive, like stored rows)."""
    return datetime.now(ZoneInfo(scheduler_timezone())).replace(tzinfo=None)


def run_daily_compliance_automation() -> Dict[str, Any]:
    """
    Daily job: fresh DB session, one clock read, one automation pass.
    Returns the run summary ({} on failure).
    """
    with session_scope() as db:
        try:
            return run_compliance_automation(db, scheduler_now(), actor="scheduler")
        except SQLAlchemyError:
            db.rollback()
            log.exception("Daily compliance automation failed")
            return {}


def make_scheduler() -> BackgroundScheduler:
    """
    Create and return a BackgroundScheduler instance configured from env:
      - APP_TIMEZONE           (default: system tz via tzlocal)
      - APP_SCHEDULER_HOUR     (default: 2)
      - APP_SCHEDULER_MINUTE   (default: 0)
    """
    tzname = scheduler_timezone()
    hour = int(os.getenv("APP_SCHEDULER_HOUR", "2"))
    minute = int(os.getenv("APP_SCHEDULER_MINUTE", "0"))

    sched = BackgroundScheduler(timezone=tzname)
    sched.add_job(
        run_daily_compliance_automation,
        CronTrigger(hour=hour, minute=minute),
        id="daily_compliance_automation",
        replace_existing=True,
    )
    log.info("Scheduler configured | tz=%s at %02d:%02d", tzname, hour, minute)
    return sched
