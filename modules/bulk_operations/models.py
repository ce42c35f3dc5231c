"""Data Models for Bulk Operations

Pydantic models for mutation items, per-chunk outcomes, aggregate batch
results, lifecycle state and export field specifications.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class MutationItem(BaseModel):
    """A partial field update addressed to one record of a collection."""
    key: str = Field(..., min_length=1, description="Record identifier within the collection")
    patch: Dict[str, Any] = Field(default_factory=dict, description="Partial field update")


class ChunkOutcome(BaseModel):
    """Outcome of committing one chunk as a single atomic write unit.
    
    Outcomes are binary because the write unit is all-or-nothing: either every
    item succeeded and there is no error, or every item failed and there is one.
    """
    index: int = Field(ge=0, description="Position of the chunk in the batch")
    keys: List[str] = Field(default_factory=list, description="Record keys in the chunk")
    succeeded: int = Field(ge=0, description="Items committed")
    failed: int = Field(ge=0, description="Items rejected")
    error: Optional[str] = Field(None, description="Commit error message for a failed chunk")
    
    @model_validator(mode="after")
    def _check_binary(self) -> "ChunkOutcome":
        if self.error is None and self.failed != 0:
            raise ValueError("A chunk without an error cannot have failed items")
        if self.error is not None and self.succeeded != 0:
            raise ValueError("A failed chunk cannot have succeeded items")
        return self
    
    @classmethod
    def success(cls, index: int, keys: List[str]) -> "ChunkOutcome":
        return cls(index=index, keys=list(keys), succeeded=len(keys), failed=0)
    
    @classmethod
    def failure(cls, index: int, keys: List[str], error: str) -> "ChunkOutcome":
        return cls(index=index, keys=list(keys), succeeded=0, failed=len(keys), error=error)
    
    @property
    def is_success(self) -> bool:
        return self.error is None


class FailedChunk(BaseModel):
    """A failed chunk tagged with the keys it contained."""
    index: int = Field(ge=0, description="Position of the chunk in the batch")
    keys: List[str] = Field(default_factory=list, description="Record keys that were not written")
    error: str = Field(..., description="Commit error message")


class AggregateResult(BaseModel):
    """Summary of a batch call.
    
    ``succeeded + failed`` equals the number of items in the call and
    ``errors`` holds one message per failed chunk, in chunk order.
    Mutator validation problems are reported in ``validation_errors`` with
    nothing submitted to the store.
    """
    succeeded: int = Field(0, ge=0, description="Items committed")
    failed: int = Field(0, ge=0, description="Items not committed")
    errors: List[str] = Field(default_factory=list, description="One message per failed chunk")
    failed_chunks: List[FailedChunk] = Field(default_factory=list, description="Failed chunks with their keys")
    validation_errors: List[str] = Field(default_factory=list, description="Validation messages; nothing was submitted")
    
    @classmethod
    def validation_failure(cls, item_count: int, errors: List[str]) -> "AggregateResult":
        return cls(succeeded=0, failed=item_count, validation_errors=list(errors))
    
    @property
    def total(self) -> int:
        return self.succeeded + self.failed
    
    def has_failures(self) -> bool:
        return self.failed > 0 or bool(self.validation_errors)
    
    def is_complete(self) -> bool:
        """True when every submitted item was committed."""
        return not self.has_failures()
    
    def get_success_rate(self) -> float:
        """Calculate batch success rate."""
        return self.succeeded / self.total if self.total > 0 else 0.0
    
    def failed_keys(self) -> List[str]:
        return [key for chunk in self.failed_chunks for key in chunk.keys]
    
    def summary(self) -> str:
        return f"{self.succeeded} succeeded, {self.failed} failed"


class LifecycleState(str, Enum):
    """Soft-delete lifecycle of a record, stored as three flag fields."""
    ACTIVE = "active"
    DELETED = "deleted"
    
    @classmethod
    def of(cls, record: Mapping[str, Any]) -> "LifecycleState":
        return cls.DELETED if record.get("isDeleted") else cls.ACTIVE


LIFECYCLE_FIELDS = ("isDeleted", "deletedBy", "deletedAt")


class ExportField(BaseModel):
    """One export column: a dot-separated field path and an optional header label."""
    path: str = Field(..., min_length=1, description="Dot-separated field path")
    label: Optional[str] = Field(None, description="Header text; defaults to the path")
    
    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field path cannot be blank")
        return value
    
    @property
    def header(self) -> str:
        return self.label or self.path
    
    @property
    def segments(self) -> List[str]:
        return self.path.split(".")
    
    @classmethod
    def coerce(cls, spec: Union["ExportField", str, Mapping[str, Any]]) -> "ExportField":
        """Build an ExportField from a model, a bare path, or a mapping.
        
        Mappings may use either ``path`` or the older ``key`` name.
        """
        if isinstance(spec, ExportField):
            return spec
        if isinstance(spec, str):
            return cls(path=spec)
        path = spec.get("path", spec.get("key"))
        return cls(path=path, label=spec.get("label"))
