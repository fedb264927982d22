"""Data models for desired, managed and listed buckets."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# Tag key the free-form tag string of a bucket is written under
PROVENANCE_TAG_KEY = "tfkey"

# Weekday, DD-Mon-YY HH:MM:SS ZONE
TIMESTAMP_FORMAT = "%A, %d-%b-%y %H:%M:%S %Z"
CREATION_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def normalize(value: str) -> str:
    """Strip the quoting the configuration layer leaves around string values."""
    return value.replace('"', "")


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Render a timestamp in the fixed human-readable state format."""
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


class DesiredItem(BaseModel):
    """A bucket as declared for the current pass."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Bucket name as declared")
    tags: Dict[str, str] = Field(default_factory=dict, description="Tags to write")

    @classmethod
    def from_declared(
        cls,
        name: str,
        tags: Union[str, Dict[str, str], None] = None,
        tag_key: str = PROVENANCE_TAG_KEY,
    ) -> "DesiredItem":
        """Build a desired item from configuration values.

        A plain string tag value is stored under ``tag_key``.
        """
        if tags is None:
            tags = {}
        elif isinstance(tags, str):
            tags = {tag_key: tags}
        return cls(name=name, tags=tags)

    def normalized_name(self) -> str:
        return normalize(self.name)

    def normalized_tags(self) -> Dict[str, str]:
        return {normalize(key): normalize(value) for key, value in self.tags.items()}


class ManagedItem(BaseModel):
    """A bucket the reconciler created or verified."""

    name: str = Field(..., description="Normalized bucket name")
    tags: Dict[str, str] = Field(
        default_factory=dict, description="Tags as last successfully written"
    )
    observed_at: str = Field(..., description="Time of last successful create/update")


class ManagedItemList(BaseModel):
    """Ordered managed state handed back to the host after each pass."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="List identifier")
    items: List[ManagedItem] = Field(default_factory=list)
    last_updated: Optional[str] = Field(None, description="Time of last create/update pass")

    def names(self) -> List[str]:
        """Get bucket names in list order."""
        return [item.name for item in self.items]

    def get(self, name: str) -> Optional[ManagedItem]:
        """Get a managed item by name."""
        for item in self.items:
            if item.name == name:
                return item
        return None

    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "last_updated": self.last_updated,
            "buckets": [
                {"name": item.name, "tags": item.tags, "date": item.observed_at}
                for item in self.items
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManagedItemList":
        """Create ManagedItemList from dictionary."""
        items = [
            ManagedItem(name=entry["name"], tags=entry.get("tags", {}), observed_at=entry["date"])
            for entry in data.get("buckets", [])
        ]
        return cls(id=data["id"], items=items, last_updated=data.get("last_updated"))


class ListedBucket(BaseModel):
    """Read-only projection of a bucket reported by the store."""

    name: str
    creation_date: str = Field(..., description="Creation time as YYYY-MM-DD HH:MM:SS")
    tags: Optional[str] = Field(None, description="Never populated by the list call")

    @classmethod
    def from_remote(cls, name: str, created: datetime) -> "ListedBucket":
        return cls(name=name, creation_date=created.strftime(CREATION_DATE_FORMAT))
