"""Bulk Operations Module

Batched field-level mutation of many records under the store's atomic
write-unit size limit, with per-chunk success/failure aggregation, plus
JSON and CSV export of record collections.
"""

from .models import (
    MutationItem,
    ChunkOutcome,
    FailedChunk,
    AggregateResult,
    LifecycleState,
    ExportField,
)
from .exceptions import (
    ExportError,
    MutationValidationError,
    ChunkCommitFailure,
    StoreAccessError,
)
from .chunking import ChunkPlanner, plan_chunks
from .store import DocumentStore, WriteUnit, InMemoryDocumentStore, SERVER_TIMESTAMP
from .executor import BatchExecutor, ChunkTask
from .aggregation import ResultAggregator, aggregate_outcomes
from .bulk_api import BulkOperations
from .export import TabularExporter, render_csv, render_json

__all__ = [
    # Data models
    'MutationItem',
    'ChunkOutcome',
    'FailedChunk',
    'AggregateResult',
    'LifecycleState',
    'ExportField',
    
    # Exceptions
    'ExportError',
    'MutationValidationError',
    'ChunkCommitFailure',
    'StoreAccessError',
    
    # Engine
    'ChunkPlanner',
    'plan_chunks',
    'DocumentStore',
    'WriteUnit',
    'InMemoryDocumentStore',
    'SERVER_TIMESTAMP',
    'BatchExecutor',
    'ChunkTask',
    'ResultAggregator',
    'aggregate_outcomes',
    'BulkOperations',
    'TabularExporter',
    'render_csv',
    'render_json',
]
