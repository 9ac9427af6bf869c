"""
Core module initialization.
Exports configuration, logging utilities and error kinds.
"""

from restaurant_api.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from restaurant_api.core.errors import (
    RestaurantAPIError,
    InvalidInputError,
    NotFoundError,
    ConstraintViolationError,
    StoreUnavailableError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "RestaurantAPIError",
    "InvalidInputError",
    "NotFoundError",
    "ConstraintViolationError",
    "StoreUnavailableError",
]
