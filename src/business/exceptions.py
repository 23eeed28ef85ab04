"""
Business Logic Exception Classes

Raised by submission rules and by configuration loading. A rule violation
carries a stable error code (returned in ``SubmissionResult.error``) and an
already user-safe message; it is never retried and classifies as
``ErrorKind.BUSINESS_LOGIC``.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional

from src.integrations.exceptions import ErrorSeverity

REDACTED = "[REDACTED]"
SENSITIVE_MARKERS = ('password', 'token', 'secret', 'credential', 'api_key')


def redact(details: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``details`` with values of credential-like keys masked."""
    return {
        key: REDACTED if any(marker in key.lower() for marker in SENSITIVE_MARKERS) else value
        for key, value in details.items()
    }


class BaseBusinessException(Exception):
    """
    Root of the business exception tree.

    Subclasses pick their HTTP status and severity through class attributes;
    both can still be overridden per instance.
    """

    default_status: ClassVar[int] = 400
    default_severity: ClassVar[ErrorSeverity] = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        error_code: str,
        http_status_code: Optional[int] = None,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.http_status_code = http_status_code or self.default_status
        self.severity = severity or self.default_severity
        self.context = redact(context or {})
        self.raised_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'exception': type(self).__name__,
            'error_code': self.error_code,
            'detail': self.message,
            'severity': self.severity.value,
            'context': self.context,
            'raised_at': self.raised_at.isoformat(),
        }


class BusinessRuleViolationError(BaseBusinessException):
    """
    A submission failed a business rule (missing field, past date, slot
    outside business hours).

    Example:
        raise BusinessRuleViolationError(
            message=messages.date_in_past,
            error_code='DATE_IN_PAST',
            rule_name='appointment_not_in_past',
            field_name='appointment_date',
        )
    """

    default_severity = ErrorSeverity.LOW

    def __init__(
        self,
        message: str,
        error_code: str,
        rule_name: Optional[str] = None,
        field_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> None:
        details = dict(context or {})
        details.update({k: v for k, v in (('rule', rule_name), ('field', field_name)) if v})
        super().__init__(message, error_code, context=details, **kwargs)
        self.rule_name = rule_name
        self.field_name = field_name


class ConfigurationError(BaseBusinessException):
    """Invalid or missing settings, raised at startup before any submission."""

    default_status = 500
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str, error_code: str, config_key: Optional[str] = None, **kwargs: Any) -> None:
        details = dict(kwargs.pop('context', None) or {})
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, error_code, context=details, **kwargs)
        self.config_key = config_key
