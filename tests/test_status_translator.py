import pytest

from procurement_events.core.errors import ExternalSystemError
from procurement_events.schemas.events import TenderStatus
from procurement_events.services.status_translator import StatusTranslator


@pytest.fixture
def translator(event_config):
    return StatusTranslator(event_config.rfx_status_to_tender_status)


@pytest.mark.parametrize("code, status", [
    (0, TenderStatus.PLANNING),
    ("100", TenderStatus.PLANNED),
    (300, TenderStatus.ACTIVE),
    (1000, TenderStatus.WITHDRAWN),
])
def test_translate(translator, code, status):
    assert translator.translate(code) == status


@pytest.mark.parametrize("code", [None, 999, "planned"])
def test_unmapped_code_is_external_error(translator, code):
    with pytest.raises(ExternalSystemError):
        translator.translate(code)


def test_from_assessment_lower_cases():
    assert StatusTranslator.from_assessment("Active") == TenderStatus.ACTIVE
    assert StatusTranslator.from_assessment("COMPLETE") == TenderStatus.COMPLETE


def test_from_assessment_unknown_status():
    with pytest.raises(ExternalSystemError):
        StatusTranslator.from_assessment("archived")
