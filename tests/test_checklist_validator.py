from datetime import datetime, timedelta

import pytest

from procurement_events.core.errors import ValidationFailureError
from procurement_events.schemas.events import PublishDates
from procurement_events.services.checklist_validator import PublishDatesValidator, check_publish_dates
from tests.conftest import FIXED_NOW


def test_valid_dates_have_no_errors():
    dates = PublishDates(start_date=FIXED_NOW, end_date=FIXED_NOW + timedelta(days=1))

    assert check_publish_dates(dates, FIXED_NOW) == []


def test_end_date_only():
    assert check_publish_dates(PublishDates(end_date=FIXED_NOW + timedelta(minutes=1)), FIXED_NOW) == []


def test_end_date_in_past():
    errors = check_publish_dates(PublishDates(end_date=FIXED_NOW - timedelta(minutes=1)), FIXED_NOW)

    assert len(errors) == 1
    assert "must be in the future" in errors[0]


def test_every_problem_is_reported():
    dates = PublishDates(start_date=FIXED_NOW - timedelta(days=2), end_date=FIXED_NOW - timedelta(days=3))

    errors = check_publish_dates(dates, FIXED_NOW)

    assert len(errors) == 3


def test_naive_dates_are_treated_as_utc():
    naive_now = FIXED_NOW.replace(tzinfo=None)
    dates = PublishDates(start_date=naive_now + timedelta(hours=1), end_date=naive_now + timedelta(days=1))

    assert check_publish_dates(dates, FIXED_NOW) == []


def test_validator_raises_with_all_errors():
    validator = PublishDatesValidator(clock=lambda: FIXED_NOW)
    dates = PublishDates(start_date=FIXED_NOW + timedelta(days=2), end_date=FIXED_NOW + timedelta(days=1))

    with pytest.raises(ValidationFailureError) as exc_info:
        validator.validate(dates)

    assert exc_info.value.errors == [
        f"Start date {dates.start_date.isoformat()} must be before end date {dates.end_date.isoformat()}"
    ]


def test_validator_uses_current_time_by_default():
    PublishDatesValidator().validate(PublishDates(end_date=datetime(2999, 1, 1)))
