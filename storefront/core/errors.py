from typing import Optional


class StorefrontError(Exception):
    """Base class for every error raised by the cart and order core."""


class OrderServiceError(StorefrontError):
    """The remote order service could not be reached or answered non-2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ScheduleValidationError(StorefrontError):
    pass


class MalformedTimeError(ScheduleValidationError):
    def __init__(self, text: str):
        super().__init__(f"Scheduled time must look like YYYY-MM-DD HH:mm, got {text!r}")
        self.text = text


class ScheduleInPastError(ScheduleValidationError):
    pass


class SubmissionError(StorefrontError):
    pass


class EmptyCartError(SubmissionError):
    def __init__(self):
        super().__init__("Cart is empty")


class SubmissionTransportError(SubmissionError):
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause
        self.status_code = getattr(cause, "status_code", None)


class QueryError(StorefrontError):
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class CancelError(StorefrontError):
    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class NotCancellableError(CancelError):
    pass


class CancelTransportError(CancelError):
    pass


class StorageError(StorefrontError):
    """Local cart storage failed. Logged only, never shown to the user."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause
