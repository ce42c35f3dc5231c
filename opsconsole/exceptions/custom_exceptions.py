"""
Custom exception classes for the Ops Console framework.

Every error carries a human-readable ``message`` plus a ``context`` mapping
naming what was being worked on (collection, chunk, environment, ...). The
message is what ends up in batch results; the context is appended when the
error is logged.
"""

from typing import Optional, Dict, Any


class OpsBaseException(Exception):
    """Base exception class for all Ops Console exceptions."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = {key: value for key, value in (context or {}).items() if value is not None}

    def add_context(self, **values: Any) -> "OpsBaseException":
        """Merge ``values`` (ignoring None) into the context and return the exception."""
        self.context.update({key: value for key, value in values.items() if value is not None})
        return self

    @property
    def collection(self) -> Optional[str]:
        """Collection the error relates to, when known."""
        return self.context.get("collection")

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class OpsConfigurationError(OpsBaseException):
    """
    Raised when ``environment_config.json`` or an engine setting is unusable.

    Covers missing or malformed config files, unknown collections, a unit
    size outside 1..500 and a non-positive commit timeout. Never retried.
    """
    pass


class OpsValidationError(OpsBaseException):
    """
    Raised when a request or config structure fails validation.

    Bulk entry points turn the mutator subclass into a validation failure
    result instead of letting it propagate.
    """
    pass


class OpsAuthenticationError(OpsBaseException):
    """Raised when hosted store credentials are missing or unusable."""
    pass


class OpsConnectionError(OpsBaseException):
    """Raised when the hosted store session cannot be opened or has not been opened."""
    pass


class OpsProcessingError(OpsBaseException):
    """
    Raised when the store rejects work on a collection.

    The batch executor records these per chunk; only export writes and
    misuse of a write unit surface them to the caller.
    """
    pass
