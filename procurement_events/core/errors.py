"""
Exceptions raised by the event services.

Every error carries the identifiers and values needed to render a precise
message to the caller; the HTTP layer maps each class to a status code.
"""


class ProcurementEventError(Exception):
    """Base exception for all procurement event errors"""

    status_code = 500
    title = "Internal server error"


class ResourceNotFoundError(ProcurementEventError):
    """Unknown project, event, organisation mapping or document"""

    status_code = 404
    title = "Resource not found"


class ValidationFailureError(ProcurementEventError):
    """
    Request data rejected before any write took place

    Holds every individual problem found, not only the first one.
    """

    status_code = 400
    title = "Validation error processing the request"

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or [message]
        super().__init__(message)


class AuthorisationFailureError(ProcurementEventError):
    """The caller has no identity on the remote sourcing platform"""

    status_code = 403
    title = "Access to the requested resource is forbidden"


class IllegalStateError(ProcurementEventError):
    """The event is not in a state that allows the requested operation"""

    status_code = 409
    title = "Operation not allowed in the current event state"


class ExternalSystemError(ProcurementEventError):
    """
    The remote sourcing platform failed, timed out or returned a non-success code

    Also raised when a remote status code has no configured translation.
    """

    status_code = 502
    title = "Error communicating with the remote sourcing platform"

    def __init__(self, message: str, return_code: int | None = None) -> None:
        self.return_code = return_code
        self.message = message
        super().__init__(f"{message} (return code: {return_code})" if return_code is not None else message)
