"""State module for desired, managed and listed buckets."""

from .manager import StateManager, StateNotFoundError
from .models import (
    PROVENANCE_TAG_KEY,
    DesiredItem,
    ListedBucket,
    ManagedItem,
    ManagedItemList,
    format_timestamp,
    normalize,
)

__all__ = [
    "PROVENANCE_TAG_KEY",
    "DesiredItem",
    "ListedBucket",
    "ManagedItem",
    "ManagedItemList",
    "StateManager",
    "StateNotFoundError",
    "format_timestamp",
    "normalize",
]
