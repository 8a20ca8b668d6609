from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from billing_engine.models.tax_rate import TaxRate


class TaxRateRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_effective(self, region: str, as_of: datetime) -> TaxRate | None:
        return (
            self.db.query(TaxRate)
            .filter(
                TaxRate.region == region,
                TaxRate.start_date <= as_of,
                or_(TaxRate.end_date.is_(None), TaxRate.end_date > as_of),
            )
            .order_by(TaxRate.start_date.desc())
            .first()
        )
