"""Utility modules for logging, AWS client management, and errors."""

from customs3.utils.aws_client import AWSClientManager, CredentialContext, ResolvedCredentials
from customs3.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    BucketError,
    ConfigurationError,
    CredentialError,
    NetworkError,
    PermissionError,
    RemoteStoreError,
    StateError,
    ValidationError,
    ErrorHandler,
    error_handler
)
from customs3.utils.logging import get_logger, setup_logging, log_context

__all__ = [
    # AWS Client
    'AWSClientManager',
    'CredentialContext',
    'ResolvedCredentials',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'BucketError',
    'ConfigurationError',
    'CredentialError',
    'NetworkError',
    'PermissionError',
    'RemoteStoreError',
    'StateError',
    'ValidationError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
    'log_context',
]
