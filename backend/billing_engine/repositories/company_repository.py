from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.company import Company


class CompanyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, company_id: UUID) -> Company | None:
        return self.db.query(Company).filter(Company.id == company_id).first()
