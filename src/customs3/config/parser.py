"""YAML configuration parser."""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import ProjectConfig
from ..state.models import DesiredItem
from ..utils.aws_client import CredentialContext
from ..utils.errors import ConfigurationError


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  - {location}: {msg}")

        return "\n".join(error_lines)


class Config:
    """Configuration manager for declared buckets."""

    def __init__(self, config_path: str):
        """Initialize configuration manager.

        Args:
            config_path: Path to customs3.yaml configuration file
        """
        self.config_path = Path(config_path)
        self.data: Dict = {}
        self.project: Optional[ProjectConfig] = None

    def load(self) -> "Config":
        """Load and validate configuration from YAML file.

        Returns:
            Self for method chaining

        Raises:
            ConfigValidationError: If configuration is invalid
            FileNotFoundError: If configuration file doesn't exist
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, "r") as f:
                self.data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Failed to parse YAML: {e}")

        if not isinstance(self.data, dict):
            raise ConfigValidationError(
                "Configuration validation failed with 1 error(s)",
                [{"loc": [], "msg": "Top level must be a mapping"}],
            )

        try:
            self.project = ProjectConfig(**self.data)
        except ValidationError as e:
            errors = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in e.errors()]
            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s)",
                errors,
            )

        return self

    def desired_items(self) -> List[DesiredItem]:
        """Get desired buckets in declaration order."""
        return self.project.desired_items()

    def credential_context(self) -> CredentialContext:
        """Build the credential context from the provider section."""
        provider = self.project.provider
        return CredentialContext(
            region=provider.region,
            access_key=provider.access_key,
            secret_key=provider.secret_key,
        )
