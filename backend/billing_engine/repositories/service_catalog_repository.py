from uuid import UUID

from sqlalchemy.orm import Session

from billing_engine.models.service_catalog import ServiceCatalog


class ServiceCatalogRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, service_id: UUID) -> ServiceCatalog | None:
        return self.db.query(ServiceCatalog).filter(ServiceCatalog.id == service_id).first()
