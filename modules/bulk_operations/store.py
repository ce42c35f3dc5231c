"""Document store contract consumed by the batch executor.

A store hands out write units; a unit collects field patches and commits
them atomically. ``SERVER_TIMESTAMP`` marks a value the store fills in from
its own clock at commit time.

``InMemoryDocumentStore`` implements the contract over plain dictionaries.
It backs the test suite and CLI dry runs.
"""

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

from opsconsole.config import PLATFORM_MAX_UNIT_SIZE
from opsconsole.exceptions import OpsProcessingError
from .exceptions import ChunkCommitFailure, StoreAccessError

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Sentinel for a timestamp assigned by the store when a unit commits."""
    _instance = None
    
    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
    
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"
    
    def __reduce__(self):
        return (_ServerTimestamp, ())


SERVER_TIMESTAMP = _ServerTimestamp()


def resolve_server_timestamps(fields: Mapping[str, Any], timestamp: Any) -> Dict[str, Any]:
    """Return a copy of ``fields`` with every SERVER_TIMESTAMP replaced by ``timestamp``."""
    resolved = {}
    for name, value in fields.items():
        if value is SERVER_TIMESTAMP:
            resolved[name] = timestamp
        elif isinstance(value, Mapping):
            resolved[name] = resolve_server_timestamps(value, timestamp)
        else:
            resolved[name] = value
    return resolved


class WriteUnit(ABC):
    """A group of field patches committed together; succeeds or fails as a whole."""
    
    @abstractmethod
    def add_patch(self, key: str, fields: Mapping[str, Any]) -> None:
        """Enqueue a partial update of record ``key``."""
        pass
    
    @abstractmethod
    def commit(self) -> None:
        """Commit every enqueued patch atomically.
        
        Raises:
            ChunkCommitFailure: If the store rejects the unit
        """
        pass


class DocumentStore(ABC):
    """A store of named collections that accepts atomic write units."""
    
    @abstractmethod
    def begin_unit(self, collection_name: str) -> WriteUnit:
        """Open a new write unit against ``collection_name``."""
        pass
    
    def fetch_records(self, collection_name: str) -> List[Dict[str, Any]]:
        """Read every record of a collection, each with its key as ``id``."""
        raise OpsProcessingError(f"{type(self).__name__} does not support reading records")


class CommitRecord(BaseModel):
    """One commit attempt observed by the in-memory store."""
    collection: str = Field(..., description="Target collection")
    keys: List[str] = Field(default_factory=list, description="Keys patched by the unit")
    committed: bool = Field(..., description="Whether the unit was applied")
    error: Optional[str] = Field(None, description="Rejection message")


class InMemoryWriteUnit(WriteUnit):
    
    def __init__(self, store: "InMemoryDocumentStore", collection_name: str):
        self._store = store
        self.collection_name = collection_name
        self.patches: List[Tuple[str, Dict[str, Any]]] = []
        self._closed = False
    
    def add_patch(self, key: str, fields: Mapping[str, Any]) -> None:
        if self._closed:
            raise OpsProcessingError("Cannot add patches to a write unit that was already committed")
        self.patches.append((key, dict(fields)))
    
    def commit(self) -> None:
        if self._closed:
            raise OpsProcessingError("Write unit was already committed")
        self._closed = True
        self._store._commit_unit(self)


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed document store with update (not upsert) semantics.
    
    A unit that patches a missing record, exceeds ``max_operations_per_unit``,
    or whose zero-based commit attempt number is listed in ``fail_commits``
    is rejected without applying any of its patches.
    
    Args:
        collections: Initial records, ``{collection: {key: record}}``
        clock: Callable returning the value used for SERVER_TIMESTAMP
        fail_commits: Commit attempt numbers to reject, or a mapping of
            attempt number to the rejection message
        max_operations_per_unit: Store-side limit on patches per unit
    """
    
    def __init__(self,
                 collections: Optional[Mapping[str, Mapping[str, Mapping[str, Any]]]] = None,
                 clock: Optional[Callable[[], Any]] = None,
                 fail_commits: Optional[Union[Mapping[int, str], Iterable[int]]] = None,
                 max_operations_per_unit: int = PLATFORM_MAX_UNIT_SIZE):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {key: copy.deepcopy(dict(record)) for key, record in records.items()}
            for name, records in (collections or {}).items()
        }
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        if fail_commits is None:
            self.fail_commits: Dict[int, str] = {}
        elif isinstance(fail_commits, Mapping):
            self.fail_commits = dict(fail_commits)
        else:
            self.fail_commits = {attempt: "Injected commit failure" for attempt in fail_commits}
        self.max_operations_per_unit = max_operations_per_unit
        self.commit_log: List[CommitRecord] = []
    
    def begin_unit(self, collection_name: str) -> InMemoryWriteUnit:
        return InMemoryWriteUnit(self, collection_name)
    
    def get(self, collection_name: str, key: str) -> Optional[Dict[str, Any]]:
        """Return a copy of a record, or None when it does not exist."""
        record = self.collections.get(collection_name, {}).get(key)
        return copy.deepcopy(record) if record is not None else None
    
    def fetch_records(self, collection_name: str) -> List[Dict[str, Any]]:
        """Return copies of every record in a collection, each with its ``id``."""
        return [
            {"id": key, **copy.deepcopy(record)}
            for key, record in self.collections.get(collection_name, {}).items()
        ]
    
    def _commit_unit(self, unit: InMemoryWriteUnit) -> None:
        attempt = len(self.commit_log)
        keys = [key for key, _ in unit.patches]
        
        try:
            self._check_unit(attempt, unit)
        except OpsProcessingError as e:
            self.commit_log.append(CommitRecord(
                collection=unit.collection_name, keys=keys, committed=False, error=e.message
            ))
            raise
        
        timestamp = self.clock()
        documents = self.collections[unit.collection_name]
        for key, fields in unit.patches:
            documents[key].update(resolve_server_timestamps(fields, timestamp))
        
        self.commit_log.append(CommitRecord(collection=unit.collection_name, keys=keys, committed=True))
        logger.debug(f"Committed {len(keys)} patches to {unit.collection_name}")
    
    def _check_unit(self, attempt: int, unit: InMemoryWriteUnit) -> None:
        keys = [key for key, _ in unit.patches]
        
        if attempt in self.fail_commits:
            raise ChunkCommitFailure(self.fail_commits[attempt], keys, collection=unit.collection_name)
        
        if len(unit.patches) > self.max_operations_per_unit:
            raise ChunkCommitFailure(
                f"Write unit has {len(unit.patches)} operations; "
                f"maximum is {self.max_operations_per_unit}",
                keys,
                collection=unit.collection_name
            )
        
        if unit.collection_name not in self.collections:
            raise StoreAccessError(f"Collection not found: {unit.collection_name}",
                                   collection=unit.collection_name)
        
        documents = self.collections[unit.collection_name]
        for key in keys:
            if key not in documents:
                raise ChunkCommitFailure(f"No document to update: {unit.collection_name}/{key}", keys,
                                         collection=unit.collection_name)
