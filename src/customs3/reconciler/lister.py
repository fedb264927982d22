"""Read-only bucket inventory."""

from dataclasses import dataclass, field
from typing import List

from .diagnostics import DiagnosticKind, Diagnostics
from ..state.models import ListedBucket
from ..store.base import RemoteStore
from ..utils.errors import ErrorContext, error_handler
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ListResult:
    """Buckets reported by the store, plus any diagnostic."""

    buckets: List[ListedBucket] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def is_success(self) -> bool:
        return not self.diagnostics.has_error()


class Lister:
    """Projects the store's full bucket inventory into ListedBucket records."""

    def __init__(self, store: RemoteStore):
        self.store = store

    def list(self) -> ListResult:
        """List every bucket in remote order.

        A failing list call yields one LIST_FAILED diagnostic and an empty
        result; it never raises.
        """
        result = ListResult()

        try:
            remote = self.store.list()
        except Exception as e:
            error = error_handler.handle_exception(e, ErrorContext(operation='list'))
            result.diagnostics.add_error(DiagnosticKind.LIST_FAILED, error)
            return result

        result.buckets = [ListedBucket.from_remote(name, created) for name, created in remote]
        logger.info(f"Listed {len(result.buckets)} bucket(s)")
        return result
