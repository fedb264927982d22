"""AWS credential resolution and session handling."""

import os
import boto3
from botocore.config import Config
from typing import Optional, Dict, Any, Mapping
from dataclasses import dataclass
from customs3.utils.errors import CredentialError
from customs3.utils.logging import get_logger

logger = get_logger(__name__)

# Environment variables consulted when a field is not declared
ENV_FALLBACKS = {
    'region': 'AWS_REGION',
    'access_key': 'AWS_ACCESS_KEY_ID',
    'secret_key': 'AWS_SECRET_ACCESS_KEY',
}


@dataclass(frozen=True)
class ResolvedCredentials:
    """Region and static access credentials for one configuration pass."""
    region: str
    access_key: str
    secret_key: str

    def __repr__(self) -> str:
        return f"ResolvedCredentials(region={self.region!r}, access_key={self.access_key!r})"


class CredentialContext:
    """Resolves region and credentials from declared configuration, then environment."""

    def __init__(
        self,
        region: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """Initialize credential context.

        Args:
            region: Declared AWS region
            access_key: Declared AWS access key ID
            secret_key: Declared AWS secret access key
            environ: Environment mapping to fall back on (defaults to os.environ)
        """
        self.declared = {
            'region': region,
            'access_key': access_key,
            'secret_key': secret_key,
        }
        self.environ = os.environ if environ is None else environ

    def resolve(self) -> ResolvedCredentials:
        """Resolve every credential field.

        A declared value wins over the environment. All empty fields are
        reported together.

        Returns:
            ResolvedCredentials

        Raises:
            CredentialError: If any of region, access_key or secret_key is empty
        """
        values: Dict[str, str] = {}
        missing = []

        for field, env_name in ENV_FALLBACKS.items():
            value = self.declared[field]
            if value is None:
                value = self.environ.get(env_name, '')
            if not value:
                missing.append(field)
            values[field] = value

        if missing:
            suggestions = [
                f"Set '{field}' in the provider configuration or export {ENV_FALLBACKS[field]}"
                for field in missing
            ]
            raise CredentialError(
                f"Missing or empty credential value(s): {', '.join(missing)}",
                missing_fields=missing,
                suggestions=suggestions
            )

        logger.debug(f"Resolved credentials for region {values['region']}")
        return ResolvedCredentials(**values)


class AWSClientManager:
    """Manages one boto3 session and its clients for a provider instance."""

    def __init__(
        self,
        credentials: ResolvedCredentials,
        max_pool_connections: int = 10,
        endpoint_url: Optional[str] = None
    ):
        """Initialize AWS client manager.

        Args:
            credentials: Resolved region and static credentials
            max_pool_connections: Maximum number of connections in the connection pool
            endpoint_url: Optional S3-compatible endpoint override
        """
        self.credentials = credentials
        self.endpoint_url = endpoint_url
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}

        # Timeouts and retries are owned by the client, not the reconciler
        self._boto_config = Config(
            max_pool_connections=max_pool_connections,
            retries={
                'mode': 'standard',
                'max_attempts': 3
            },
            connect_timeout=10,
            read_timeout=60
        )

    @property
    def session(self) -> boto3.Session:
        """Get or create boto3 session.

        Returns:
            Configured boto3 session
        """
        if self._session is None:
            self._session = boto3.Session(
                aws_access_key_id=self.credentials.access_key,
                aws_secret_access_key=self.credentials.secret_key,
                region_name=self.credentials.region
            )
            logger.info(f"Created AWS session - Region: {self._session.region_name}")

        return self._session

    def get_client(self, service_name: str):
        """Get a cached boto3 client for a service.

        Args:
            service_name: AWS service name (e.g., 's3')

        Returns:
            Boto3 client for the service
        """
        if service_name in self._clients:
            return self._clients[service_name]

        kwargs = {'config': self._boto_config}
        if self.endpoint_url:
            kwargs['endpoint_url'] = self.endpoint_url

        client = self.session.client(service_name, **kwargs)
        self._clients[service_name] = client

        logger.debug(f"Created {service_name} client")

        return client

    def get_region(self) -> str:
        """Get the AWS region.

        Returns:
            AWS region name
        """
        return self.session.region_name
