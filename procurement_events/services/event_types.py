from enum import Enum

from transitions import MachineError
from transitions.extensions.asyncio import AsyncMachine

from procurement_events.core.errors import IllegalStateError
from procurement_events.core.logging_config import logger
from procurement_events.schemas.events import EventType


class EventCategory(str, Enum):
    PLACEHOLDER = "placeholder"
    ASSESSMENT = "assessment"
    MARKET = "market"


PLACEHOLDER_EVENT_TYPE = EventType.TBD
ASSESSMENT_EVENT_TYPES = frozenset({EventType.FCA, EventType.DAA})


def classify(event_type: EventType | str | None) -> EventCategory:
    """Single routing decision for an event: which system owns its suppliers and documents."""
    if event_type is None:
        return EventCategory.PLACEHOLDER
    event_type = EventType(event_type)
    if event_type == PLACEHOLDER_EVENT_TYPE:
        return EventCategory.PLACEHOLDER
    if event_type in ASSESSMENT_EVENT_TYPES:
        return EventCategory.ASSESSMENT
    return EventCategory.MARKET


def list_event_types() -> list[EventType]:
    return list(EventType)


class EventTypeMachine:
    """
    Guards the event type: it starts as TBD and may be assigned a concrete
    value exactly once. There is no transition out of a concrete type.
    """

    states = [event_type.value for event_type in EventType]

    def __init__(self, event_id: str, event_type: str | None):
        self.event_id = event_id
        self.machine = AsyncMachine(
            model=self,
            states=EventTypeMachine.states,
            initial=event_type or PLACEHOLDER_EVENT_TYPE.value,
            auto_transitions=False,
            send_event=True,
        )
        for event_type in EventType:
            if event_type == PLACEHOLDER_EVENT_TYPE:
                continue
            self.machine.add_transition(
                f"assign_{event_type.value}",
                PLACEHOLDER_EVENT_TYPE.value,
                event_type.value,
                after="log_assignment",
            )

    async def assign(self, event_type: EventType) -> EventType:
        if classify(event_type) == EventCategory.PLACEHOLDER:
            raise IllegalStateError(f"Event {self.event_id} cannot be assigned the placeholder type")
        try:
            await self.trigger(f"assign_{EventType(event_type).value}")
        except MachineError as e:
            raise IllegalStateError(
                f"Cannot update an existing event type of '{self.state}' to '{EventType(event_type).value}'"
            ) from e
        return EventType(self.state)

    async def log_assignment(self, event):
        logger.info(f"Event {self.event_id} assigned type {self.state}")
