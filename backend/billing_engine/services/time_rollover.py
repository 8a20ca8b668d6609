import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.shared import ensure_utc
from billing_engine.repositories.time_entry_repository import TimeEntryRepository

logger = logging.getLogger(__name__)


class TimeRolloverService:
    def __init__(self, db: Session):
        self.db = db
        self.time_entry_repo = TimeEntryRepository(db)

    def rollover_unapproved_time(
        self,
        company_id: UUID,
        current_period_end: datetime,
        next_period_start: datetime,
    ) -> int:
        """Move unapproved entries ending by ``current_period_end`` into the next period.

        Each entry keeps its exact duration and starts at ``next_period_start``.
        Must run before the next period's time charges are calculated.

        Returns:
            Number of entries moved.
        """
        next_start = ensure_utc(next_period_start)
        entries = self.time_entry_repo.get_unapproved_ending_by(
            company_id, ensure_utc(current_period_end)
        )

        try:
            for entry in entries:
                duration = ensure_utc(entry.end_time) - ensure_utc(entry.start_time)
                entry.start_time = next_start  # type: ignore[assignment]
                entry.end_time = next_start + duration  # type: ignore[assignment]
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Rolled over %d unapproved time entries for company %s", len(entries), company_id
        )
        return len(entries)
