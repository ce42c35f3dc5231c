"""Batch Executor

Applies a list of mutation items to a collection as a pipeline of chunk
tasks. Each task is one atomic write unit; tasks run strictly in order, one
at a time, and every task runs regardless of how earlier ones ended.

A rejected commit is recorded as a failed chunk and the pipeline moves on:
commits are never retried and store failures never propagate to the caller.
Callers detect incomplete batches through ``AggregateResult.failed``.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from func_timeout import func_timeout, FunctionTimedOut
from pydantic import BaseModel, Field

from opsconsole.config import BulkSettings, PLATFORM_MAX_UNIT_SIZE
from opsconsole.exceptions import OpsBaseException, OpsConfigurationError
from opsconsole.utils import log_performance
from .aggregation import aggregate_outcomes
from .chunking import ChunkPlanner
from .models import AggregateResult, ChunkOutcome, MutationItem
from .store import DocumentStore, SERVER_TIMESTAMP, WriteUnit

logger = logging.getLogger(__name__)

ItemLike = Union[MutationItem, Tuple[str, Mapping[str, Any]], Mapping[str, Any]]


class ChunkTask(BaseModel):
    """One chunk of a batch, bound to its collection and position."""
    index: int = Field(ge=0, description="Position of the chunk in the batch")
    collection: str = Field(..., min_length=1, description="Target collection")
    items: List[MutationItem] = Field(..., min_length=1, description="Items committed together")
    
    @property
    def keys(self) -> List[str]:
        return [item.key for item in self.items]


def to_mutation_item(item: ItemLike) -> MutationItem:
    """Accept a MutationItem, a ``(key, patch)`` pair, or an ``{id, data}`` mapping."""
    if isinstance(item, MutationItem):
        return item
    if isinstance(item, tuple):
        key, patch = item
        return MutationItem(key=key, patch=dict(patch))
    key = item.get("key", item.get("id"))
    patch = item.get("patch", item.get("data", {}))
    return MutationItem(key=key, patch=dict(patch))


def _error_message(error: BaseException) -> str:
    return getattr(error, "message", None) or str(error) or type(error).__name__


class BatchExecutor:
    """Runs chunked mutations against a DocumentStore.
    
    Args:
        store: Document store adapter
        max_unit_size: Maximum patches per write unit
        commit_timeout: Optional deadline in seconds for each commit. When it
            expires the chunk is recorded as failed with an unknown outcome;
            by default a commit is awaited indefinitely.
    """
    
    def __init__(self, store: DocumentStore,
                 max_unit_size: int = PLATFORM_MAX_UNIT_SIZE,
                 commit_timeout: Optional[float] = None):
        if commit_timeout is not None and commit_timeout <= 0:
            raise OpsConfigurationError(
                f"Commit timeout must be positive, got {commit_timeout}"
            )
        self.store = store
        self.planner = ChunkPlanner(max_unit_size)
        self.commit_timeout = commit_timeout
    
    @classmethod
    def from_settings(cls, store: DocumentStore, settings: BulkSettings) -> "BatchExecutor":
        return cls(store, settings.max_unit_size, settings.commit_timeout_seconds)
    
    @property
    def max_unit_size(self) -> int:
        return self.planner.max_unit_size
    
    def plan(self, collection_name: str, items: Sequence[ItemLike]) -> List[ChunkTask]:
        """Build the ordered task pipeline for a batch without touching the store."""
        if not collection_name:
            raise OpsConfigurationError("Collection name is required")
        
        mutation_items = [to_mutation_item(item) for item in items]
        return [
            ChunkTask(index=index, collection=collection_name, items=chunk)
            for index, chunk in enumerate(self.planner.plan(mutation_items))
        ]
    
    def run_task(self, task: ChunkTask) -> ChunkOutcome:
        """Commit one chunk as a single write unit and report its outcome."""
        try:
            unit = self.store.begin_unit(task.collection)
            for item in task.items:
                unit.add_patch(item.key, {**item.patch, "updatedAt": SERVER_TIMESTAMP})
            self._commit(unit)
        except FunctionTimedOut:
            error_msg = (f"Commit timed out after {self.commit_timeout}s; "
                         f"outcome of {len(task.items)} updates is unknown")
            logger.error(f"Batch update failed for {task.collection} chunk {task.index}: {error_msg}")
            return ChunkOutcome.failure(task.index, task.keys, error_msg)
        except OpsBaseException as e:
            e.add_context(collection=task.collection, chunk=task.index)
            logger.error(f"Batch update failed: {e}")
            return ChunkOutcome.failure(task.index, task.keys, e.message)
        except Exception as e:
            logger.error(f"Batch update failed for {task.collection} chunk {task.index}: {e}")
            return ChunkOutcome.failure(task.index, task.keys, _error_message(e))
        
        logger.debug(f"Chunk {task.index} committed {len(task.items)} updates to {task.collection}")
        return ChunkOutcome.success(task.index, task.keys)
    
    def run(self, tasks: Sequence[ChunkTask]) -> List[ChunkOutcome]:
        """Run tasks strictly in order; each commit finishes before the next begins."""
        return [self.run_task(task) for task in tasks]
    
    @log_performance
    def execute(self, collection_name: str, items: Sequence[ItemLike]) -> AggregateResult:
        """Apply ``items`` to ``collection_name`` chunk by chunk.
        
        Returns:
            AggregateResult with totals and one error per failed chunk
            
        Raises:
            OpsConfigurationError: If the collection name is missing
        """
        tasks = self.plan(collection_name, items)
        if not tasks:
            logger.info(f"No updates to apply to {collection_name}")
            return AggregateResult()
        
        logger.info(f"Applying {len(items)} updates to {collection_name} in {len(tasks)} chunks")
        result = aggregate_outcomes(self.run(tasks))
        
        if result.failed:
            logger.warning(f"Batch on {collection_name} incomplete: {result.summary()}")
        else:
            logger.info(f"Batch on {collection_name} complete: {result.summary()}")
        return result
    
    def _commit(self, unit: WriteUnit) -> None:
        if self.commit_timeout is None:
            unit.commit()
        else:
            func_timeout(self.commit_timeout, unit.commit)
