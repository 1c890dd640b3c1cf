"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from foodorder.core.config import get_settings, Settings, EnvironmentMode
from foodorder.core.exceptions import (
    AppError,
    Conflict,
    GatewayError,
    InvalidReference,
    InvalidSignature,
    NotFound,
    Unauthorized,
)

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "AppError",
    "Conflict",
    "GatewayError",
    "InvalidReference",
    "InvalidSignature",
    "NotFound",
    "Unauthorized",
]
