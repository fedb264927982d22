"""Remote bucket store interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Tuple


class RemoteStore(ABC):
    """Per-bucket capability surface of an object storage account.

    Every call is synchronous and may fail independently by raising. There
    is no multi-bucket transaction.
    """

    @abstractmethod
    def create(self, name: str) -> None:
        """Create a bucket.

        Args:
            name: Normalized bucket name
        """
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a bucket exists.

        Args:
            name: Normalized bucket name

        Returns:
            True if the bucket exists, False if the store reports it missing
        """
        pass

    @abstractmethod
    def tag(self, name: str, tags: Dict[str, str]) -> None:
        """Replace the bucket's tag set.

        Args:
            name: Normalized bucket name
            tags: Complete tag set to write (overwrites, never appends);
                an empty mapping removes every tag
        """
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Delete a bucket.

        Args:
            name: Normalized bucket name
        """
        pass

    @abstractmethod
    def list(self) -> List[Tuple[str, datetime]]:
        """List every bucket in the account.

        Returns:
            (name, creation date) pairs in the order the store returns them
        """
        pass
