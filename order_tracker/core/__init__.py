"""
Core module initialization.
Exports configuration, logging utilities and the error hierarchy.
"""

from order_tracker.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from order_tracker.core.exceptions import (
    OrderTrackerError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
    StoreError,
    OperationTimeoutError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "OrderTrackerError",
    "LimitExceededError",
    "NotFoundError",
    "ValidationError",
    "StoreError",
    "OperationTimeoutError",
]
