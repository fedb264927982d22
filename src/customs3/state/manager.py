"""State manager for loading and saving the managed bucket list."""

import json
from pathlib import Path
from typing import Optional

from .models import ManagedItemList
from ..utils.errors import StateError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class StateNotFoundError(StateError):
    """Exception raised when state file does not exist."""

    pass


class StateManager:
    """Persists the managed bucket list between passes."""

    def __init__(self, state_path: str):
        """
        Initialize StateManager.

        Args:
            state_path: Path to the state file
        """
        self.state_path = Path(state_path)
        self._current_state: Optional[ManagedItemList] = None

    def load(self) -> ManagedItemList:
        """
        Load managed state from file.

        Returns:
            ManagedItemList

        Raises:
            StateNotFoundError: If state file does not exist
            StateError: If state file is corrupted or invalid
        """
        if not self.state_path.exists():
            raise StateNotFoundError(f"State file not found: {self.state_path}")

        try:
            with open(self.state_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StateError(f"Failed to parse state file: {e}", cause=e)

        try:
            self._current_state = ManagedItemList.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise StateError(f"Invalid state file {self.state_path}: {e}", cause=e)

        logger.debug(f"Loaded {len(self._current_state.items)} managed bucket(s)")
        return self._current_state

    def save(self, state: ManagedItemList) -> None:
        """
        Save managed state to file.

        Args:
            state: ManagedItemList to save

        Raises:
            StateError: If state cannot be saved
        """
        self.state_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # Write to temporary file first
            temp_path = self.state_path.with_suffix(".tmp")
            with open(temp_path, "w") as f:
                json.dump(state.to_dict(), f, indent=2)

            # Atomic rename
            temp_path.replace(self.state_path)
            self._current_state = state
        except OSError as e:
            raise StateError(f"Failed to save state file: {e}", cause=e)

        logger.debug(f"Saved {len(state.items)} managed bucket(s) to {self.state_path}")

    def remove(self) -> None:
        """Discard the state file after a complete delete pass."""
        if self.state_path.exists():
            self.state_path.unlink()
            logger.info(f"Removed state file {self.state_path}")
        self._current_state = None

    def exists(self) -> bool:
        """Check if state file exists."""
        return self.state_path.exists()
