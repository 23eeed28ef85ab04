"""
Custom exception classes and error taxonomy for downstream collaborator failures.

This module provides the exception hierarchy raised by (or on behalf of) the
calendar and email collaborators, together with the fixed classification
taxonomy used by the error classifier and retry engine.

Taxonomy:
- ErrorKind: authentication, api, validation, network, business_logic, unknown
- ErrorSeverity: low, medium, high, critical
- ErrorInfo: the classified, loggable record produced for every handled failure

Exceptions:
- IntegrationError: base class carrying service/operation context
- CalendarApiError: typed calendar failure carrying the transport status code
- EmailDeliveryError: email transport failure
- RetryExhaustedError: raised when the retry engine gives up; str() is the
  sanitized user message, never the raw failure text
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union


class ErrorKind(str, Enum):
    """Fixed failure taxonomy. Retryability is decided per kind, not per severity."""
    AUTHENTICATION = "authentication"
    API = "api"
    VALIDATION = "validation"
    NETWORK = "network"
    BUSINESS_LOGIC = "business_logic"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Severity only drives log level and downstream alerting."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ErrorContext:
    """Where and when a failure happened."""
    operation: str = "unknown"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **extra: Any) -> "ErrorContext":
        merged = dict(self.metadata)
        merged.update(extra)
        return ErrorContext(operation=self.operation, timestamp=self.timestamp, metadata=merged)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'timestamp': self.timestamp.isoformat(),
            'metadata': dict(self.metadata),
        }


def generate_error_id() -> str:
    return f"err_{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class ErrorInfo:
    """
    Classified failure record.

    Attributes:
        id: Generated identifier for correlation in logs
        kind: Taxonomy kind
        severity: Severity level
        message: Internal message (operators only, never shown to users)
        user_message: Pre-approved message safe to return to the caller
        retryable: Whether the kind/status is transient by default
        retry_count: Zero-based attempt index at which the failure occurred
        max_retries: Retry budget in force when the failure was classified
        error_type: Class name of the raw failure value
        context: Operation, timestamp and metadata
    """
    id: str
    kind: ErrorKind
    severity: ErrorSeverity
    message: str
    user_message: str
    retryable: bool
    retry_count: int = 0
    max_retries: int = 0
    error_type: str = "Exception"
    context: ErrorContext = field(default_factory=ErrorContext)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for structured logging and monitoring."""
        return {
            'error_id': self.id,
            'kind': self.kind.value,
            'severity': self.severity.value,
            'message': self.message,
            'user_message': self.user_message,
            'retryable': self.retryable,
            'retry_count': self.retry_count,
            'max_retries': self.max_retries,
            'error_type': self.error_type,
            'context': self.context.to_dict(),
        }


class IntegrationError(Exception):
    """
    Base exception class for all downstream collaborator failures.

    Attributes:
        service_name: Name of the collaborator that failed
        operation: Specific operation that was being performed
        error_code: Service-specific error code or HTTP status code
        error_context: Additional context information about the error
        timestamp: When the error occurred
    """

    def __init__(
        self,
        message: str,
        service_name: str = "unknown",
        operation: str = "unknown",
        error_code: Optional[Union[str, int]] = None,
        error_context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.service_name = service_name
        self.operation = operation
        self.error_code = error_code
        self.error_context = error_context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'service_name': self.service_name,
            'operation': self.operation,
            'error_code': self.error_code,
            'error_context': self.error_context,
            'timestamp': self.timestamp.isoformat(),
        }


class CalendarApiError(IntegrationError):
    """
    Typed failure surfaced by the calendar client.

    The status code drives classification: 401/403 authentication, 429 rate
    limit, >=500 server error, 400 payload validation.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        operation: str = "create_event",
        **kwargs: Any,
    ):
        super().__init__(
            message=message,
            service_name="calendar",
            operation=operation,
            error_code=status_code if status_code is not None else code,
            **kwargs,
        )
        self.status_code = status_code
        self.code = code


class EmailDeliveryError(IntegrationError):
    """Exception for email transport failures."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault('service_name', 'email')
        kwargs.setdefault('operation', 'send')
        super().__init__(message=message, **kwargs)


class RetryExhaustedError(IntegrationError):
    """
    Raised by the retry engine when it gives up.

    Only the classified user message is exposed through ``str()``; the raw
    failure stays on ``error_info`` and the exception chain for operators.
    """

    def __init__(self, error_info: ErrorInfo, attempts: int, cancelled: bool = False):
        super().__init__(
            message=error_info.user_message,
            service_name="retry_engine",
            operation=error_info.context.operation,
            error_code=error_info.kind.value,
        )
        self.error_info = error_info
        self.attempts = attempts
        self.cancelled = cancelled

    @property
    def user_message(self) -> str:
        return self.error_info.user_message

    def __str__(self) -> str:
        return self.error_info.user_message
