"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

from customs3.state.models import DesiredItem
from customs3.store.base import RemoteStore

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
FIXED_STAMP = "Monday, 19-Oct-26 12:00:00 UTC"


def client_error(code: str, operation: str = "Operation", message: str = "boom") -> ClientError:
    """Build a botocore ClientError the way S3 returns one."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"RequestId": "req-123"},
        },
        operation,
    )


class FakeStore(RemoteStore):
    """In-memory bucket store with per-call failure injection."""

    def __init__(self):
        self.buckets: Dict[str, Dict[str, str]] = {}
        self.created: Dict[str, datetime] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.failures: Dict[Tuple[str, Optional[str]], Exception] = {}

    def add(self, name: str, created: Optional[datetime] = None, tags=None):
        self.buckets[name] = dict(tags or {})
        self.created[name] = created or FIXED_NOW

    def fail(self, operation: str, name: Optional[str] = None, error: Optional[Exception] = None):
        self.failures[(operation, name)] = error or client_error("InternalError", operation)

    def calls_for(self, operation: str) -> List[Optional[str]]:
        return [name for op, name in self.calls if op == operation]

    def _check(self, operation: str, name: Optional[str] = None):
        self.calls.append((operation, name))
        error = self.failures.get((operation, name))
        if error is not None:
            raise error

    def create(self, name):
        self._check("create", name)
        if name in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", "CreateBucket")
        self.add(name)

    def exists(self, name):
        self._check("exists", name)
        return name in self.buckets

    def tag(self, name, tags):
        self._check("tag", name)
        if name not in self.buckets:
            raise client_error("NoSuchBucket", "PutBucketTagging")
        self.buckets[name] = dict(tags)

    def delete(self, name):
        self._check("delete", name)
        if name not in self.buckets:
            raise client_error("NoSuchBucket", "DeleteBucket")
        del self.buckets[name]
        del self.created[name]

    def list(self):
        self._check("list")
        return [(name, self.created[name]) for name in self.buckets]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def desired_three():
    return [
        DesiredItem.from_declared("alpha-bucket", "team=a"),
        DesiredItem.from_declared("beta-bucket", "team=b"),
        DesiredItem.from_declared("gamma-bucket", "team=c"),
    ]
