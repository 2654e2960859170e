"""
Structured Exception Hierarchy

Provides the exception hierarchy used by the Consul configuration provider,
with error codes and contextual information for diagnostics.
"""

from typing import Dict, List, Any, Optional
import uuid
from datetime import datetime, timezone


class ConsulConfigException(Exception):
    """
    Base exception class for all provider-specific exceptions.

    Provides structured error information including error codes,
    context data, and correlation IDs for tracing.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(ConsulConfigException):
    """Raised when the provider is constructed with invalid options."""

    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_FOLDER = "INVALID_FOLDER"
    INVALID_OPTIONS = "INVALID_OPTIONS"

    def __init__(
        self,
        message: str,
        reason: str = INVALID_OPTIONS,
        config_path: Optional[str] = None,
        validation_errors: Optional[List[Any]] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context['reason'] = reason
        if config_path:
            context['config_path'] = config_path
        if validation_errors:
            context['validation_errors'] = validation_errors

        super().__init__(
            message=message,
            error_code=kwargs.pop('error_code', "CONFIG_ERROR"),
            context=context,
            **kwargs
        )
        self.reason = reason


class FormatError(ConsulConfigException):
    """Raised when a stored value cannot be flattened into configuration keys."""

    DUPLICATE_KEY = "DUPLICATE_KEY"
    UNSUPPORTED_TOKEN = "UNSUPPORTED_TOKEN"

    def __init__(
        self,
        message: str,
        reason: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context['reason'] = reason
        if path is not None:
            context['path'] = path
        if line is not None:
            context['line'] = line
        if column is not None:
            context['column'] = column

        super().__init__(
            message=message,
            error_code="FORMAT_ERROR",
            context=context,
            **kwargs
        )
        self.reason = reason
        self.path = path
        self.line = line
        self.column = column


class TransportError(ConsulConfigException):
    """Raised when the KV store cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if status_code:
            context['status_code'] = status_code
        if endpoint:
            context['endpoint'] = endpoint

        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            context=context,
            **kwargs
        )
        self.status_code = status_code
        self.endpoint = endpoint
