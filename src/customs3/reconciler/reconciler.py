"""Bucket reconciler: applies desired-state transitions against a remote store."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .diagnostics import DiagnosticKind, Diagnostics
from ..state.models import DesiredItem, ManagedItem, ManagedItemList, format_timestamp
from ..store.base import RemoteStore
from ..utils.errors import (
    BucketError,
    ErrorCategory,
    ErrorContext,
    ValidationError,
    error_handler,
)
from ..utils.logging import get_logger, log_context

logger = get_logger(__name__)


class FailurePolicy(Enum):
    """What a fatal per-bucket failure does to the rest of a pass."""
    ABORT = "abort"  # Stop at the first fatal failure
    CONTINUE = "continue"  # Record it and attempt the remaining buckets


@dataclass
class PassResult:
    """Outcome of one reconciliation pass."""

    operation: str
    managed: ManagedItemList
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    aborted: bool = False
    skipped: List[str] = field(default_factory=list)  # never attempted after an abort

    def is_success(self) -> bool:
        """Check if the pass finished without error diagnostics."""
        return not self.diagnostics.has_error()

    def failed_buckets(self) -> List[str]:
        return self.diagnostics.failed_buckets()


class Reconciler:
    """Drives create/read/update/delete passes over a flat list of buckets.

    Buckets are processed strictly in list order, one remote call at a time,
    with no retries. The store handle is injected once and never replaced.
    """

    def __init__(
        self,
        store: RemoteStore,
        policy: FailurePolicy = FailurePolicy.ABORT,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize reconciler.

        Args:
            store: Remote bucket store shared by every pass
            policy: Failure policy for fatal per-bucket errors
            clock: Returns the current time (UTC aware), for observed_at stamps
        """
        self.store = store
        self.policy = policy
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def create(self, desired: Sequence[DesiredItem]) -> PassResult:
        """Create and tag every desired bucket.

        A create failure is fatal for the bucket. A tag failure right after a
        successful create is only a warning: the bucket is kept, recorded
        with empty tags, and the next update writes them.

        Args:
            desired: Desired buckets in declaration order

        Returns:
            PassResult whose managed list holds every bucket created in this pass

        Raises:
            ValidationError: If names are empty or duplicated after normalization
        """
        self._validate(desired)
        result = PassResult(operation='create', managed=ManagedItemList())
        logger.info(f"Creating {len(desired)} bucket(s)")

        for index, item in enumerate(desired):
            name = item.normalized_name()
            tags = item.normalized_tags()

            with log_context(bucket=name, operation='create'):
                try:
                    self.store.create(name)
                except Exception as e:
                    self._record_failure(result, DiagnosticKind.CREATE_FAILED, e, name)
                    if self._stop(result, desired, index):
                        break
                    continue

                written: Dict[str, str] = {}
                try:
                    self.store.tag(name, tags)
                    written = tags
                except Exception as e:
                    self._record_failure(
                        result, DiagnosticKind.TAG_FAILED, e, name, warning=True
                    )

                result.managed.items.append(
                    ManagedItem(name=name, tags=written, observed_at=self._now())
                )
                logger.info(f"Bucket {name} created successfully")

        result.managed.last_updated = self._now()
        self._log_summary(result, len(desired))
        return result

    def update(
        self,
        desired: Sequence[DesiredItem],
        previous: Optional[ManagedItemList] = None
    ) -> PassResult:
        """Rewrite tags for every desired bucket without creating anything.

        Existence is not checked first; tagging a missing bucket fails and is
        fatal for that bucket. Buckets that were not re-tagged keep their
        previous managed record, if any.

        Args:
            desired: Desired buckets in declaration order
            previous: Managed list from the last pass; its id is kept

        Returns:
            PassResult with the refreshed managed list

        Raises:
            ValidationError: If names are empty or duplicated after normalization
        """
        self._validate(desired)
        managed = ManagedItemList(id=previous.id) if previous else ManagedItemList()
        result = PassResult(operation='update', managed=managed)
        logger.info(f"Updating tags on {len(desired)} bucket(s)")

        for index, item in enumerate(desired):
            name = item.normalized_name()
            tags = item.normalized_tags()

            with log_context(bucket=name, operation='update'):
                try:
                    self.store.tag(name, tags)
                except Exception as e:
                    self._record_failure(result, DiagnosticKind.TAG_FAILED, e, name)
                    self._keep_previous(managed, previous, name)
                    if self._stop(result, desired, index):
                        for rest in desired[index + 1:]:
                            self._keep_previous(managed, previous, rest.normalized_name())
                        break
                    continue

                managed.items.append(
                    ManagedItem(name=name, tags=tags, observed_at=self._now())
                )

        self._report_undeclared(result, desired, previous)

        managed.last_updated = self._now()
        self._log_summary(result, len(desired))
        return result

    def apply(
        self,
        desired: Sequence[DesiredItem],
        previous: Optional[ManagedItemList] = None
    ) -> PassResult:
        """Bring the managed list in line with the declared buckets.

        Declared buckets absent from ``previous`` go through create, the ones
        already managed through update. Under ABORT a create failure also
        skips the update half, and those buckets keep their previous records.

        Args:
            desired: Desired buckets in declaration order
            previous: Managed list from the last pass, None on first apply

        Returns:
            PassResult whose managed list follows declaration order

        Raises:
            ValidationError: If names are empty or duplicated after normalization
        """
        self._validate(desired)
        known = set(previous.names()) if previous else set()
        missing = [item for item in desired if item.normalized_name() not in known]
        present = [item for item in desired if item.normalized_name() in known]

        managed = ManagedItemList(id=previous.id) if previous else ManagedItemList()
        result = PassResult(operation='apply', managed=managed)
        records: Dict[str, ManagedItem] = {}

        if missing:
            self._merge(result, self.create(missing), records)

        if present and not result.aborted:
            self._merge(result, self.update(present, previous=previous), records)
        else:
            for item in present:
                name = item.normalized_name()
                result.skipped.append(name)
                records[name] = previous.get(name)
            self._report_undeclared(result, desired, previous)

        managed.items = [
            records[item.normalized_name()]
            for item in desired
            if item.normalized_name() in records
        ]
        managed.last_updated = self._now()
        return result

    def read(self, managed: ManagedItemList) -> PassResult:
        """Verify every managed bucket still exists.

        A bucket the store reports missing is drift: it gets a diagnostic and
        is dropped from the returned list. Buckets whose check raised, or that
        were never checked after an abort, are kept unchanged.

        Args:
            managed: Managed list from the last pass

        Returns:
            PassResult with the verified managed list
        """
        refreshed = ManagedItemList(id=managed.id, last_updated=managed.last_updated)
        result = PassResult(operation='read', managed=refreshed)
        items = managed.items

        for index, item in enumerate(items):
            with log_context(bucket=item.name, operation='read'):
                try:
                    found = self.store.exists(item.name)
                except Exception as e:
                    self._record_failure(result, DiagnosticKind.EXISTS_CHECK_FAILED, e, item.name)
                    refreshed.items.append(item)
                    if self._stop(result, items, index):
                        refreshed.items.extend(items[index + 1:])
                        break
                    continue

                if found:
                    refreshed.items.append(item)
                    continue

                drift = BucketError(
                    f"Bucket {item.name} no longer exists",
                    category=ErrorCategory.PROVISIONING,
                    context=ErrorContext(bucket=item.name, operation='read'),
                    suggestions=[
                        'The bucket was deleted outside this tool',
                        'Apply again to recreate it from the declared configuration',
                    ]
                )
                self._record_failure(result, DiagnosticKind.EXISTS_CHECK_FAILED, drift, item.name)
                if self._stop(result, items, index):
                    refreshed.items.extend(items[index + 1:])
                    break

        self._log_summary(result, len(items))
        return result

    def delete(self, managed: ManagedItemList) -> PassResult:
        """Delete every managed bucket.

        Args:
            managed: Managed list from the last pass

        Returns:
            PassResult whose managed list holds the buckets that were not
            deleted; empty when the whole pass succeeded
        """
        remaining = ManagedItemList(id=managed.id, last_updated=managed.last_updated)
        result = PassResult(operation='delete', managed=remaining)
        items = managed.items
        logger.info(f"Deleting {len(items)} bucket(s)")

        for index, item in enumerate(items):
            with log_context(bucket=item.name, operation='delete'):
                try:
                    self.store.delete(item.name)
                except Exception as e:
                    self._record_failure(result, DiagnosticKind.DELETE_FAILED, e, item.name)
                    remaining.items.append(item)
                    if self._stop(result, items, index):
                        remaining.items.extend(items[index + 1:])
                        break

        self._log_summary(result, len(items))
        return result

    def _validate(self, desired: Sequence[DesiredItem]) -> None:
        """Reject empty or duplicate names before any remote call."""
        problems = []
        seen = set()

        for position, item in enumerate(desired):
            name = item.normalized_name()
            if not name:
                problems.append(f"bucket #{position + 1} has an empty name")
            elif name in seen:
                problems.append(f"bucket name '{name}' is declared more than once")
            seen.add(name)

        if problems:
            raise ValidationError(
                f"Invalid bucket list: {'; '.join(problems)}",
                suggestions=['Give every bucket a unique, non-empty name']
            )

    def _record_failure(
        self,
        result: PassResult,
        kind: DiagnosticKind,
        exc: Exception,
        name: str,
        warning: bool = False
    ) -> None:
        error = error_handler.handle_exception(
            exc, ErrorContext(bucket=name, operation=result.operation)
        )
        if warning:
            result.diagnostics.add_warning(kind, error)
        else:
            result.diagnostics.add_error(kind, error)

    def _stop(self, result: PassResult, items: Sequence, index: int) -> bool:
        """Apply the failure policy after a fatal failure at ``index``."""
        if self.policy == FailurePolicy.CONTINUE:
            return False

        result.aborted = True
        for rest in items[index + 1:]:
            name = rest.normalized_name() if isinstance(rest, DesiredItem) else rest.name
            result.skipped.append(name)

        if result.skipped:
            logger.warning(
                f"{result.operation} pass aborted, {len(result.skipped)} bucket(s) not attempted"
            )
        return True

    def _keep_previous(
        self,
        managed: ManagedItemList,
        previous: Optional[ManagedItemList],
        name: str
    ) -> None:
        if previous is None:
            return
        record = previous.get(name)
        if record is not None:
            managed.items.append(record)

    def _merge(
        self,
        result: PassResult,
        part: PassResult,
        records: Dict[str, ManagedItem]
    ) -> None:
        result.diagnostics.extend(part.diagnostics)
        result.aborted = result.aborted or part.aborted
        result.skipped.extend(part.skipped)
        for item in part.managed.items:
            records[item.name] = item

    def _report_undeclared(
        self,
        result: PassResult,
        desired: Sequence[DesiredItem],
        previous: Optional[ManagedItemList]
    ) -> None:
        """Warn about managed buckets that are no longer declared.

        They leave managed state but stay in the store untouched.
        """
        if previous is None:
            return

        declared = {item.normalized_name() for item in desired}
        for name in previous.names():
            if name in declared:
                continue
            with log_context(bucket=name, operation=result.operation):
                result.diagnostics.add_warning(
                    DiagnosticKind.NO_LONGER_DECLARED,
                    BucketError(
                        f"Bucket {name} is no longer declared and was not deleted",
                        category=ErrorCategory.STATE,
                        context=ErrorContext(bucket=name, operation=result.operation),
                        suggestions=['Delete the bucket by hand if it is no longer needed']
                    )
                )

    def _now(self) -> str:
        return format_timestamp(self.clock())

    def _log_summary(self, result: PassResult, total: int) -> None:
        failed = len(result.diagnostics.errors())
        if failed:
            logger.warning(
                f"{result.operation} pass finished with {failed} error(s) over {total} bucket(s)"
            )
        else:
            logger.info(f"{result.operation} pass finished for {total} bucket(s)")
