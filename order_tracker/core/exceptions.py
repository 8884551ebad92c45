"""
Custom Exception Classes

Error hierarchy raised by the item store. The HTTP layer maps each class
to a status code; nothing below this module knows about HTTP.
"""

from typing import Any, Dict, Optional


class OrderTrackerError(Exception):
    """Base exception class for all order tracker errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class LimitExceededError(OrderTrackerError):
    """Batch is larger than the store accepts in one statement"""

    def __init__(self, limit: int, size: int):
        super().__init__(
            f"The number of items exceeds the limit of {limit}",
            details={"limit": limit, "size": size},
        )
        self.limit = limit
        self.size = size


class NotFoundError(OrderTrackerError):
    """Requested row does not exist"""


class ValidationError(OrderTrackerError):
    """Malformed input reached the store"""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        self.field = field
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


class StoreError(OrderTrackerError):
    """Statement or connection failure, tagged with the failing operation"""

    def __init__(self, operation: str, original: Optional[BaseException] = None):
        self.operation = operation
        self.original = original
        message = f"Error {operation}"
        if original is not None:
            message = f"{message}: {original}"
        super().__init__(message, details={"operation": operation})


class OperationTimeoutError(StoreError):
    """Caller-supplied timeout elapsed before the statement finished"""

    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation)
        self.message = f"Timed out {operation} after {timeout}s"
        self.args = (self.message,)
        self.details["timeout"] = timeout
