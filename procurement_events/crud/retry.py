from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from procurement_events.core.config import settings
from procurement_events.core.logging_config import logger


def retry_on_db_error(max_attempts: int = settings.DB_RETRY_ATTEMPTS):
    """
    Retries a local store call on transient OperationalError with exponential backoff.

    This is the only retry in the service: remote platform calls are never retried.
    """
    return retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        before_sleep=lambda retry_state: logger.warning(
            f"Local store call failed, retrying (attempt {retry_state.attempt_number}): "
            f"{retry_state.outcome.exception() if retry_state.outcome else None}"
        ),
        reraise=True,
    )
