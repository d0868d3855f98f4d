from sqlalchemy import Column, Integer, String, DateTime, func
from procurement_events.models.base import Base

class ProcurementProject(Base):
    __tablename__ = "procurement_projects"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_name = Column(String, nullable=False)
    ca_number = Column(String, nullable=False)  # framework
    lot_number = Column(String, nullable=False)
    external_project_id = Column(String)
    external_reference_id = Column(String)
    created_by = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
