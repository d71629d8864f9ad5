"""Generate due recurring invoices, then sweep overdue ones.

Meant to be run from cron (for example once a day):

    python run_recurring_invoices.py
"""

import logging

from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.services.reconciliation import sweep_overdue
from backend.app.services.recurring import process_due_invoices

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("billing.cron")


def main() -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        results = process_due_invoices(db)
        sweep = sweep_overdue(db)
    finally:
        db.close()
    logger.info("Recurring: %s; sweep: %s", results, sweep)
    return 1 if results["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
