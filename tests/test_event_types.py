import pytest

from procurement_events.core.errors import IllegalStateError
from procurement_events.schemas.events import EventType
from procurement_events.services.event_types import (
    EventCategory,
    EventTypeMachine,
    classify,
)


@pytest.mark.parametrize("event_type, category", [
    (None, EventCategory.PLACEHOLDER),
    (EventType.TBD, EventCategory.PLACEHOLDER),
    ("TBD", EventCategory.PLACEHOLDER),
    (EventType.FCA, EventCategory.ASSESSMENT),
    ("DAA", EventCategory.ASSESSMENT),
    (EventType.EOI, EventCategory.MARKET),
    (EventType.RFI, EventCategory.MARKET),
    (EventType.CA, EventCategory.MARKET),
    (EventType.DA, EventCategory.MARKET),
    (EventType.FC, EventCategory.MARKET),
])
def test_classify(event_type, category):
    assert classify(event_type) == category


def test_classify_unknown_type():
    with pytest.raises(ValueError):
        classify("XYZ")


async def test_placeholder_accepts_any_concrete_type():
    for event_type in EventType:
        if event_type == EventType.TBD:
            continue
        machine = EventTypeMachine("ocds-b5fd17-1", None)
        assert await machine.assign(event_type) == event_type
        assert machine.state == event_type.value


async def test_concrete_type_cannot_be_reassigned():
    machine = EventTypeMachine("ocds-b5fd17-1", "RFI")

    with pytest.raises(IllegalStateError) as exc_info:
        await machine.assign(EventType.CA)

    assert "'RFI' to 'CA'" in str(exc_info.value)
    assert machine.state == "RFI"


async def test_concrete_type_cannot_be_reassigned_to_itself():
    machine = EventTypeMachine("ocds-b5fd17-1", "FCA")

    with pytest.raises(IllegalStateError):
        await machine.assign(EventType.FCA)


async def test_placeholder_type_cannot_be_assigned():
    machine = EventTypeMachine("ocds-b5fd17-1", "TBD")

    with pytest.raises(IllegalStateError):
        await machine.assign(EventType.TBD)
    assert machine.state == "TBD"
