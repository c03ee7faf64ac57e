"""Business-rule failures raised while cancelling a booking.

The cancellation services catch these at their boundary and turn them into a
normal response carrying an ``error`` message, so callers can tell "the request
never reached us" apart from "we rejected it".
"""


class CancellationError(Exception):
    """Base class for fatal cancellation failures."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


class BookingNotFoundError(CancellationError):
    def __init__(self, booking_id: str):
        super().__init__("Booking not found or access denied", code="booking_not_found")
        self.booking_id = booking_id


class NotBookingOwnerError(CancellationError):
    def __init__(self, message: str = "Unauthorized: Booking belongs to another user"):
        super().__init__(message, code="not_owner")


class BookingAlreadyCancelledError(CancellationError):
    def __init__(self, booking_id: str):
        super().__init__("Booking is already cancelled", code="already_cancelled")
        self.booking_id = booking_id


class InvalidCancellationRequestError(CancellationError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_request")


class CancellationCommitError(CancellationError):
    """The status transition could not be persisted. Nothing downstream has run."""

    def __init__(self, message: str = "Could not update booking status"):
        super().__init__(message, code="commit_failed")
