from enum import StrEnum


class ClientOutcome(StrEnum):
    """The only outcomes a client ever sees; connection internals stay hidden."""

    SUCCESS = 'success'
    VALIDATION_FAILED = 'validation-failed'
    NOT_FOUND = 'not-found'
    CONFLICT_RETRY = 'conflict-retry'
    TEMPORARILY_UNAVAILABLE = 'temporarily-unavailable'


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    outcome: ClientOutcome = ClientOutcome.VALIDATION_FAILED

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(CustomBaseError):
    """Malformed input, rejected before any I/O."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class NotFoundError(CustomBaseError):
    outcome = ClientOutcome.NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class InvalidStateTransitionError(CustomBaseError):
    def __init__(self, current: str, requested: str, message: str | None = None) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            message or f'Cannot move booking from {current} to {requested}',
            409,
        )


class DuplicateReviewError(CustomBaseError):
    def __init__(self, message: str = 'Booking has already been reviewed') -> None:
        super().__init__(message, 409)


class StaleStateError(CustomBaseError):
    """The booking changed between read and conditional write."""

    outcome = ClientOutcome.CONFLICT_RETRY

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class BrokerUnavailableError(CustomBaseError):
    outcome = ClientOutcome.TEMPORARILY_UNAVAILABLE

    def __init__(self, message: str = 'Message broker unavailable') -> None:
        super().__init__(message, 503)


class StoreUnavailableError(CustomBaseError):
    outcome = ClientOutcome.TEMPORARILY_UNAVAILABLE

    def __init__(self, message: str = 'Document store unavailable') -> None:
        super().__init__(message, 503)
