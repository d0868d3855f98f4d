from datetime import datetime, timezone

from procurement_events.core.errors import ValidationFailureError
from procurement_events.schemas.events import PublishDates


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def check_publish_dates(publish_dates: PublishDates, now: datetime | None = None) -> list[str]:

    errors = []
    now = now or datetime.now(timezone.utc)
    end_date = _aware(publish_dates.end_date)

    if end_date <= now:
        errors.append(f"End date {publish_dates.end_date.isoformat()} must be in the future")

    if publish_dates.start_date is not None:
        start_date = _aware(publish_dates.start_date)
        if start_date < now:
            errors.append(f"Start date {publish_dates.start_date.isoformat()} must not be in the past")
        if start_date >= end_date:
            errors.append(
                f"Start date {publish_dates.start_date.isoformat()} must be before end date "
                f"{publish_dates.end_date.isoformat()}"
            )

    return errors


class PublishDatesValidator:

    def __init__(self, clock=None):
        self.clock = clock

    def validate(self, publish_dates: PublishDates) -> None:
        errors = check_publish_dates(publish_dates, self.clock() if self.clock else None)
        if errors:
            raise ValidationFailureError("; ".join(errors), errors)
