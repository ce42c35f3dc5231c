"""Chunk planning for atomic write units.

Splits a flat list of mutation items into ordered chunks no larger than the
store's maximum write unit size.
"""

import logging
from typing import Iterator, List, Sequence

from opsconsole.config import PLATFORM_MAX_UNIT_SIZE
from opsconsole.exceptions import OpsConfigurationError
from .models import MutationItem

logger = logging.getLogger(__name__)


def _check_unit_size(max_unit_size) -> int:
    if isinstance(max_unit_size, bool) or not isinstance(max_unit_size, int):
        raise OpsConfigurationError(
            f"Maximum unit size must be an integer, got {type(max_unit_size).__name__}"
        )
    if max_unit_size <= 0:
        raise OpsConfigurationError(
            f"Maximum unit size must be at least 1, got {max_unit_size}",
            {"max_unit_size": max_unit_size}
        )
    return max_unit_size


def iter_chunks(items: Sequence[MutationItem], max_unit_size: int) -> Iterator[List[MutationItem]]:
    """Yield consecutive slices of ``items`` of at most ``max_unit_size`` elements."""
    max_unit_size = _check_unit_size(max_unit_size)
    for i in range(0, len(items), max_unit_size):
        yield list(items[i:i + max_unit_size])


def plan_chunks(items: Sequence[MutationItem], max_unit_size: int = PLATFORM_MAX_UNIT_SIZE) -> List[List[MutationItem]]:
    """Split ``items`` into ``ceil(N / max_unit_size)`` ordered chunks.
    
    Concatenating the result reproduces ``items`` exactly. An empty input
    yields no chunks.
    
    Raises:
        OpsConfigurationError: If ``max_unit_size`` is not a positive integer
    """
    return list(iter_chunks(items, max_unit_size))


class ChunkPlanner:
    """Chunk planner bound to a fixed maximum unit size."""
    
    def __init__(self, max_unit_size: int = PLATFORM_MAX_UNIT_SIZE):
        self.max_unit_size = _check_unit_size(max_unit_size)
    
    def plan(self, items: Sequence[MutationItem]) -> List[List[MutationItem]]:
        chunks = plan_chunks(items, self.max_unit_size)
        logger.debug(f"Planned {len(chunks)} chunks for {len(items)} items (max {self.max_unit_size} per unit)")
        return chunks
