"""Diagnostics collected during a pass."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from ..utils.errors import BucketError, ErrorSeverity
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DiagnosticKind(Enum):
    """What failed."""
    MISSING_CREDENTIAL = "missing_credential"
    CREATE_FAILED = "create_failed"
    TAG_FAILED = "tag_failed"
    EXISTS_CHECK_FAILED = "exists_check_failed"
    DELETE_FAILED = "delete_failed"
    LIST_FAILED = "list_failed"
    NO_LONGER_DECLARED = "no_longer_declared"


SUMMARIES = {
    DiagnosticKind.MISSING_CREDENTIAL: "Missing credentials",
    DiagnosticKind.CREATE_FAILED: "Error creating bucket",
    DiagnosticKind.TAG_FAILED: "Error adding tags to bucket",
    DiagnosticKind.EXISTS_CHECK_FAILED: "Error getting bucket information",
    DiagnosticKind.DELETE_FAILED: "Failed to delete bucket",
    DiagnosticKind.LIST_FAILED: "Unable to read bucket data",
    DiagnosticKind.NO_LONGER_DECLARED: "Bucket left managed state but still exists",
}


@dataclass
class Diagnostic:
    """A structured error or warning surfaced to the host."""
    kind: DiagnosticKind
    severity: ErrorSeverity
    summary: str
    detail: str
    bucket: Optional[str] = None
    operation: Optional[str] = None
    error: Optional[BucketError] = None

    @classmethod
    def from_error(
        cls,
        kind: DiagnosticKind,
        error: BucketError,
        severity: ErrorSeverity = ErrorSeverity.ERROR
    ) -> "Diagnostic":
        """Build a diagnostic from a categorized error."""
        return cls(
            kind=kind,
            severity=severity,
            summary=SUMMARIES[kind],
            detail=error.message,
            bucket=error.context.bucket,
            operation=error.context.operation,
            error=error,
        )

    @property
    def is_error(self) -> bool:
        return self.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR)

    @property
    def suggestions(self) -> List[str]:
        return self.error.suggestions if self.error else []

    def to_user_message(self) -> str:
        """Format the diagnostic for display."""
        subject = f" {self.bucket}" if self.bucket else ""
        lines = [f"{self.severity.value.upper()}: {self.summary}{subject}", f"   {self.detail}"]
        for suggestion in self.suggestions:
            lines.append(f"   - {suggestion}")
        return "\n".join(lines)


@dataclass
class Diagnostics:
    """Ordered collection of diagnostics for one pass."""
    entries: List[Diagnostic] = field(default_factory=list)

    def append(self, diagnostic: Diagnostic) -> Diagnostic:
        """Record a diagnostic and log it."""
        self.entries.append(diagnostic)
        # bucket/operation come from the caller's log_context
        extra = {'kind': diagnostic.kind.value}
        message = f"{diagnostic.summary}: {diagnostic.detail}"
        if diagnostic.is_error:
            logger.error(message, extra=extra)
        else:
            logger.warning(message, extra=extra)
        return diagnostic

    def add_error(self, kind: DiagnosticKind, error: BucketError) -> Diagnostic:
        return self.append(Diagnostic.from_error(kind, error, ErrorSeverity.ERROR))

    def add_warning(self, kind: DiagnosticKind, error: BucketError) -> Diagnostic:
        return self.append(Diagnostic.from_error(kind, error, ErrorSeverity.WARNING))

    def extend(self, other: "Diagnostics") -> None:
        self.entries.extend(other.entries)

    def has_error(self) -> bool:
        return any(d.is_error for d in self.entries)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.is_error]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if not d.is_error]

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.entries if d.kind == kind]

    def failed_buckets(self) -> List[str]:
        """Names of buckets with an error diagnostic, in pass order."""
        return [d.bucket for d in self.entries if d.is_error and d.bucket]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)
