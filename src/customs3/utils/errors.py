"""Error handling framework for bucket reconciliation."""

from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)
from customs3.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur while talking to the bucket store."""
    CONFIGURATION = "configuration"
    AWS = "aws"
    NETWORK = "network"
    STATE = "state"
    PROVISIONING = "provisioning"
    CREDENTIAL = "credential"
    PERMISSION = "permission"
    RESOURCE_LIMIT = "resource_limit"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Pass cannot start
    ERROR = "error"  # Bucket failed
    WARNING = "warning"  # Non-fatal issue
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    bucket: Optional[str] = None
    operation: Optional[str] = None
    aws_operation: Optional[str] = None
    request_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class BucketError(Exception):
    """Base exception for bucket reconciliation errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize bucket error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = [f"{self.severity.value.upper()}: {self.message}"]

        if self.context.bucket:
            lines.append(f"   Bucket: {self.context.bucket}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")

        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'bucket': self.context.bucket,
                'operation': self.context.operation,
                'aws_operation': self.context.aws_operation,
                'request_id': self.context.request_id,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConfigurationError(BucketError):
    """Error in configuration file or settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class CredentialError(BucketError):
    """Error related to AWS credentials.

    ``missing_fields`` lists the credential fields (region, access_key,
    secret_key) that were empty after checking configuration and environment.
    """

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CREDENTIAL,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )
        self.missing_fields = missing_fields or []


class NetworkError(BucketError):
    """Network-related error."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class PermissionError(BucketError):
    """The credentials are valid but not allowed to act on the bucket."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.PERMISSION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class RemoteStoreError(BucketError):
    """The bucket store rejected a request."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.AWS, **kwargs):
        super().__init__(
            message,
            category=category,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class StateError(BucketError):
    """Error related to managed state persistence."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class ValidationError(BucketError):
    """Desired bucket list failed validation."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class ErrorHandler:
    """Handles and categorizes errors raised by the bucket store."""

    # Mapping of S3 error codes to error categories and suggestions
    AWS_ERROR_MAPPING = {
        # Credential errors
        'InvalidAccessKeyId': {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'AWS access key does not exist',
            'suggestions': [
                'Check the access_key value in the provider configuration',
                'Verify AWS_ACCESS_KEY_ID if credentials come from the environment',
            ]
        },
        'SignatureDoesNotMatch': {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'AWS credential signature is invalid',
            'suggestions': [
                'Verify your AWS secret access key is correct',
                'Check for any special characters in credentials',
            ]
        },
        'ExpiredToken': {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'AWS session token has expired',
            'suggestions': [
                'Refresh your AWS session credentials',
            ]
        },

        # Permission errors
        'AccessDenied': {
            'category': ErrorCategory.PERMISSION,
            'message': 'Access denied - insufficient permissions',
            'suggestions': [
                'Check IAM policies attached to your user/role',
                'Verify the policy allows the s3 action for this bucket',
                'Check the bucket policy if the bucket already exists',
            ]
        },
        'AllAccessDisabled': {
            'category': ErrorCategory.PERMISSION,
            'message': 'All access to this bucket has been disabled',
            'suggestions': [
                'Contact AWS Support about the bucket',
            ]
        },

        # Resource limit errors
        'TooManyBuckets': {
            'category': ErrorCategory.RESOURCE_LIMIT,
            'message': 'Bucket limit for the account reached',
            'suggestions': [
                'Delete unused buckets',
                'Request a service quota increase for S3 buckets',
            ]
        },
        'SlowDown': {
            'category': ErrorCategory.RESOURCE_LIMIT,
            'message': 'S3 request rate exceeded',
            'suggestions': [
                'Reduce the request rate and retry the whole pass',
            ]
        },

        # Bucket errors
        'BucketAlreadyExists': {
            'category': ErrorCategory.PROVISIONING,
            'message': 'Bucket name is already taken by another account',
            'suggestions': [
                'Bucket names are global - choose a different name',
            ]
        },
        'BucketAlreadyOwnedByYou': {
            'category': ErrorCategory.PROVISIONING,
            'message': 'Bucket already exists in this account',
            'suggestions': [
                'Remove the bucket from the configuration or delete it first',
                'Buckets created outside this tool are never adopted automatically',
            ]
        },
        'NoSuchBucket': {
            'category': ErrorCategory.PROVISIONING,
            'message': 'Bucket does not exist',
            'suggestions': [
                'Check if the bucket was deleted outside this tool',
                'Run refresh to drop missing buckets from managed state',
            ]
        },
        'BucketNotEmpty': {
            'category': ErrorCategory.PROVISIONING,
            'message': 'Bucket is not empty',
            'suggestions': [
                'Empty the bucket (including object versions) before deleting it',
            ]
        },

        # Validation errors
        'InvalidBucketName': {
            'category': ErrorCategory.VALIDATION,
            'message': 'Invalid bucket name',
            'suggestions': [
                'Use 3-63 lowercase letters, digits, dots and hyphens',
            ]
        },
        'InvalidTag': {
            'category': ErrorCategory.VALIDATION,
            'message': 'Invalid tag',
            'suggestions': [
                'Tag keys are limited to 128 characters and values to 256',
                'Tag keys cannot start with aws:',
            ]
        },
        'IllegalLocationConstraintException': {
            'category': ErrorCategory.VALIDATION,
            'message': 'Bucket location does not match the configured region',
            'suggestions': [
                'Check the region value in the provider configuration',
            ]
        },

        # Network errors
        'RequestTimeout': {
            'category': ErrorCategory.NETWORK,
            'message': 'Request timed out',
            'suggestions': [
                'Check your network connectivity',
                'Retry the whole pass',
            ]
        },
        'ServiceUnavailable': {
            'category': ErrorCategory.NETWORK,
            'message': 'S3 temporarily unavailable',
            'suggestions': [
                'Wait a few moments and retry',
                'Check AWS Service Health Dashboard',
            ]
        }
    }

    # Mapped categories that have a dedicated exception class
    CATEGORY_ERRORS = {
        ErrorCategory.CREDENTIAL: CredentialError,
        ErrorCategory.PERMISSION: PermissionError,
        ErrorCategory.NETWORK: NetworkError,
    }

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> BucketError:
        """Handle an exception and convert to BucketError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            BucketError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, ClientError):
            return self._handle_aws_error(error, context)

        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return self._handle_credential_error(error, context)

        if isinstance(error, (EndpointConnectionError, ConnectionError, TimeoutError)):
            return self._handle_network_error(error, context)

        if isinstance(error, BucketError):
            return error

        if isinstance(error, BotoCoreError):
            return BucketError(
                message=f"AWS client error: {error}",
                category=ErrorCategory.AWS,
                severity=ErrorSeverity.ERROR,
                context=context,
                cause=error,
            )

        return BucketError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.ERROR,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_aws_error(
        self,
        error: ClientError,
        context: ErrorContext
    ) -> BucketError:
        """Handle AWS ClientError.

        Args:
            error: The ClientError
            context: Error context

        Returns:
            Categorized BucketError
        """
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        error_message = error.response.get('Error', {}).get('Message', str(error))
        request_id = error.response.get('ResponseMetadata', {}).get('RequestId')

        context.request_id = request_id
        context.aws_operation = getattr(error, 'operation_name', None)

        logger.debug(f"{context.aws_operation} failed with {error_code} (request {request_id})")

        error_info = self.AWS_ERROR_MAPPING.get(error_code)

        if error_info:
            message = f"{error_info['message']}: {error_message}"
            error_class = self.CATEGORY_ERRORS.get(error_info['category'])
            if error_class:
                return error_class(
                    message,
                    context=context,
                    cause=error,
                    suggestions=error_info['suggestions']
                )
            return RemoteStoreError(
                message,
                category=error_info['category'],
                context=context,
                cause=error,
                suggestions=error_info['suggestions']
            )

        return RemoteStoreError(
            message=f"AWS Error ({error_code}): {error_message}",
            context=context,
            cause=error,
            suggestions=[
                'Check AWS documentation for this error code',
                f'AWS Request ID: {request_id}',
            ]
        )

    def _handle_credential_error(
        self,
        error: Exception,
        context: ErrorContext
    ) -> CredentialError:
        """Handle credential-related errors.

        Args:
            error: The credential error
            context: Error context

        Returns:
            CredentialError
        """
        if isinstance(error, NoCredentialsError):
            return CredentialError(
                message='No AWS credentials found',
                context=context,
                cause=error,
                suggestions=[
                    'Set access_key and secret_key in the provider configuration',
                    'Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables',
                ]
            )

        return CredentialError(
            message='Incomplete AWS credentials',
            context=context,
            cause=error,
            suggestions=[
                'Ensure both access key ID and secret access key are provided',
            ]
        )

    def _handle_network_error(
        self,
        error: Exception,
        context: ErrorContext
    ) -> NetworkError:
        """Handle network-related errors.

        Args:
            error: The network error
            context: Error context

        Returns:
            NetworkError
        """
        return NetworkError(
            message=f'Network error: {str(error)}',
            context=context,
            cause=error,
            suggestions=[
                'Check your internet connection',
                'Verify the S3 endpoint for the configured region is reachable',
                'Check if VPN or proxy is interfering',
            ]
        )


# Global error handler instance
error_handler = ErrorHandler()
