"""Remote bucket stores."""

from .base import RemoteStore
from .s3 import S3BucketStore

__all__ = [
    'RemoteStore',
    'S3BucketStore',
]
