"""
Interfaces of the systems the event services depend on but do not own.

Implementations are supplied by the hosting application; tests use in-memory fakes.
"""
from typing import Any, Dict, List, Optional, Protocol

from procurement_events.schemas.events import EventType


class Assessment(Protocol):
    assessment_id: int
    status: str


class AssessmentService(Protocol):

    async def create_empty_assessment(self, framework_id: str, lot_id: str,
                                      event_type: EventType, principal: str) -> int:
        ...

    async def get_assessment(self, assessment_id: int, principal: str) -> Assessment:
        """Raises ResourceNotFoundError or AuthorisationFailureError for an id the caller does not own."""
        ...


class UserProfileService(Protocol):

    async def resolve_buyer_user_id(self, principal: str) -> Optional[str]:
        ...

    async def resolve_buyer_company_id(self, principal: str) -> str:
        ...


class SupplierDirectory(Protocol):

    async def get_suppliers_for_lot(self, framework_id: str, lot_id: str) -> List[str]:
        """Organisation ids of every supplier currently on the framework lot."""
        ...


class CriteriaService(Protocol):

    async def get_eval_criteria(self, project_id: int, event_id: str) -> List[Dict[str, Any]]:
        ...


class Collaborators:
    """The set of collaborator implementations wired into the application at start-up."""

    def __init__(self, assessments: AssessmentService, profiles: UserProfileService,
                 supplier_directory: SupplierDirectory, criteria: CriteriaService):
        self.assessments = assessments
        self.profiles = profiles
        self.supplier_directory = supplier_directory
        self.criteria = criteria
