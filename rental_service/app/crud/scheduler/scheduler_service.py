import logging
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy.orm import Session

from ..leasing_tenants.leases_crud import expire_due_leases
from ..financials.invoices_crud import mark_overdue, generate_for_active_leases

logger = logging.getLogger(__name__)


def run_lifecycle_jobs(db: Session, now: datetime = None) -> Dict[str, int]:
    """One pass of the time-based transitions.

    Each job commits its own work; a failing job is rolled back and logged
    so the next one still runs.
    """
    now = now or datetime.now(timezone.utc)
    jobs = (
        ("expired_leases", lambda: expire_due_leases(db, now.date())),
        ("overdue_invoices", lambda: mark_overdue(db, now)),
        ("generated_invoices", lambda: generate_for_active_leases(db, now)),
    )

    results = {}
    for name, job in jobs:
        try:
            results[name] = job()
        except Exception:
            db.rollback()
            logger.exception("Scheduler job %s failed", name)
            results[name] = 0

    logger.info("Lifecycle jobs at %s: %s", now.isoformat(), results)
    return results
