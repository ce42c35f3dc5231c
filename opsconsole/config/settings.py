"""Typed settings for the bulk operations engine."""

from typing import Optional
from pydantic import BaseModel, Field

# Hard limit on operations per atomic write unit imposed by the hosted store
PLATFORM_MAX_UNIT_SIZE = 500


class BulkSettings(BaseModel):
    """Engine settings resolved from the ``bulk_operations`` config section."""
    max_unit_size: int = Field(
        PLATFORM_MAX_UNIT_SIZE, ge=1, le=PLATFORM_MAX_UNIT_SIZE,
        description="Maximum number of patches committed in one write unit"
    )
    commit_timeout_seconds: Optional[float] = Field(
        None, gt=0, description="Deadline for a single commit; None waits indefinitely"
    )
    export_dir: str = Field("exports", description="Directory export documents are written to")
