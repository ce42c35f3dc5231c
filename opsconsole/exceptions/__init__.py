"""
Custom exceptions for the Ops Console framework.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    OpsBaseException,
    OpsConfigurationError,
    OpsValidationError,
    OpsAuthenticationError,
    OpsConnectionError,
    OpsProcessingError,
)

__all__ = [
    "OpsBaseException",
    "OpsConfigurationError",
    "OpsValidationError",
    "OpsAuthenticationError",
    "OpsConnectionError",
    "OpsProcessingError",
]
