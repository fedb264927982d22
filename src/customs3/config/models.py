"""Pydantic models for configuration schema."""

import re
from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator

from ..state.models import PROVENANCE_TAG_KEY, DesiredItem, normalize

BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


class ProviderConfig(BaseModel):
    """Declared region and credentials; empty values fall back to the environment."""

    region: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = Field(None, repr=False)
    endpoint_url: Optional[str] = Field(None, description="S3-compatible endpoint override")


class BucketConfig(BaseModel):
    """A declared bucket."""

    name: str = Field(..., min_length=1)
    tags: Union[str, Dict[str, str]] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate bucket name follows S3 naming rules."""
        name = normalize(v)
        if not BUCKET_NAME_PATTERN.match(name):
            raise ValueError(
                f"Invalid bucket name '{name}': use 3-63 lowercase letters, digits, "
                "dots and hyphens, starting and ending with a letter or digit"
            )
        if ".." in name:
            raise ValueError(f"Invalid bucket name '{name}': consecutive dots are not allowed")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Union[str, Dict[str, str]]) -> Union[str, Dict[str, str]]:
        """Validate tag keys and values."""
        if isinstance(v, str):
            if len(v) > 256:
                raise ValueError("Tag value exceeds 256 characters")
            return v
        for key, value in v.items():
            if not key:
                raise ValueError("Tag key must be a non-empty string")
            if len(key) > 128:
                raise ValueError(f"Tag key exceeds 128 characters: {key}")
            if key.startswith("aws:"):
                raise ValueError(f"Tag key cannot start with 'aws:' (reserved): {key}")
            if len(value) > 256:
                raise ValueError(f"Tag value exceeds 256 characters for key '{key}'")
        return v


class ProjectConfig(BaseModel):
    """Complete configuration file."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    tag_key: str = Field(PROVENANCE_TAG_KEY, min_length=1, max_length=128)
    buckets: List[BucketConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_names(self):
        """Bucket names must be unique once normalized."""
        seen = set()
        for bucket in self.buckets:
            name = normalize(bucket.name)
            if name in seen:
                raise ValueError(f"Bucket '{name}' is declared more than once")
            seen.add(name)
        return self

    def desired_items(self) -> List[DesiredItem]:
        """Convert declared buckets into desired items, in declaration order."""
        return [
            DesiredItem.from_declared(bucket.name, bucket.tags, tag_key=self.tag_key)
            for bucket in self.buckets
        ]
