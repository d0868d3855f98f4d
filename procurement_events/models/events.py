from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from procurement_events.models.base import Base

class ProcurementEvent(Base):
    __tablename__ = "procurement_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("procurement_projects.id"), nullable=False, index=True)
    event_name = Column(String, nullable=False)
    event_type = Column(String, nullable=False, default="TBD")
    external_event_id = Column(String)
    external_reference_id = Column(String)
    down_selected_suppliers = Column(Boolean, nullable=False, default=False)
    assessment_id = Column(Integer)
    assessment_supplier_target = Column(Integer)
    ocds_authority_name = Column(String, nullable=False)
    ocid_prefix = Column(String, nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_by = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    project = relationship("ProcurementProject", lazy="selectin")
    supplier_selections = relationship(
        "SupplierSelection",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def event_id(self) -> str:
        return f"{self.ocds_authority_name}-{self.ocid_prefix}-{self.id}"


class SupplierSelection(Base):
    __tablename__ = "supplier_selections"
    __table_args__ = (UniqueConstraint("event_id", "organisation_mapping_id", name="uq_event_supplier"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("procurement_events.id", ondelete="CASCADE"), nullable=False)
    organisation_mapping_id = Column(Integer, ForeignKey("organisation_mappings.id"), nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    event = relationship("ProcurementEvent", back_populates="supplier_selections")
    organisation_mapping = relationship("OrganisationMapping", lazy="selectin")
