from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.bucket import BucketPlan, BucketUsage


class BucketRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_plan(self, plan_id: UUID) -> BucketPlan | None:
        return self.db.query(BucketPlan).filter(BucketPlan.plan_id == plan_id).first()

    def get_usage_overlapping(
        self,
        bucket_plan_id: UUID,
        company_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> BucketUsage | None:
        return (
            self.db.query(BucketUsage)
            .filter(
                BucketUsage.bucket_plan_id == bucket_plan_id,
                BucketUsage.company_id == company_id,
                BucketUsage.period_start < period_end,
                BucketUsage.period_end > period_start,
            )
            .order_by(BucketUsage.period_start.desc())
            .first()
        )
