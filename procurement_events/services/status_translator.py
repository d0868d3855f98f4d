from typing import Mapping

from procurement_events.core.errors import ExternalSystemError
from procurement_events.core.logging_config import logger
from procurement_events.schemas.events import TenderStatus


class StatusTranslator:
    """Maps remote platform status codes to the unified tender status vocabulary."""

    def __init__(self, status_map: Mapping[str, TenderStatus]):
        self.status_map = status_map

    def translate(self, status_code) -> TenderStatus:
        status = self.status_map.get(str(status_code))
        if status is None:
            logger.error(f"No tender status configured for remote status code {status_code}")
            raise ExternalSystemError(f"Unmapped remote status code '{status_code}'")
        return status

    @staticmethod
    def from_assessment(assessment_status: str) -> TenderStatus:
        try:
            return TenderStatus(str(assessment_status).lower())
        except ValueError as e:
            raise ExternalSystemError(f"Unknown assessment status '{assessment_status}'") from e
