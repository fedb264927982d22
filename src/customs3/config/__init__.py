"""Configuration management for declared buckets."""

from .models import BucketConfig, ProjectConfig, ProviderConfig
from .parser import Config, ConfigValidationError

__all__ = [
    "BucketConfig",
    "ProjectConfig",
    "ProviderConfig",
    "Config",
    "ConfigValidationError",
]
