"""Bulk Operation Specific Exceptions

Extends the framework exception hierarchy with error types for chunked
mutations and tabular export.
"""

from typing import List, Optional
from opsconsole.exceptions import OpsConfigurationError, OpsProcessingError, OpsValidationError


class ExportError(OpsConfigurationError):
    """Raised when an export cannot be produced from the given field specification."""
    pass


class MutationValidationError(OpsValidationError):
    """Raised by mutators when required identifiers or values are missing."""
    pass


class ChunkCommitFailure(OpsProcessingError):
    """A write unit was rejected by the store as a whole.
    
    Store adapters raise this from ``commit()``; the batch executor records it
    as a failed chunk and never lets it reach the batch caller.
    """
    
    def __init__(self, message: str, keys: Optional[List[str]] = None,
                 collection: Optional[str] = None):
        self.keys = list(keys or [])
        super().__init__(message, {"collection": collection})


class StoreAccessError(OpsProcessingError):
    """Raised when a collection cannot be resolved in the document store."""
    
    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message, {"collection": collection})
