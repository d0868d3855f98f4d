from sqlalchemy import Column, Integer, String, DateTime, func
from procurement_events.models.base import Base

class OrganisationMapping(Base):
    __tablename__ = "organisation_mappings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    organisation_id = Column(String, nullable=False, unique=True, index=True)
    external_organisation_id = Column(Integer, nullable=False, unique=True, index=True)
    created_by = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
