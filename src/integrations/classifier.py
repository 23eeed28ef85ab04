"""
Failure classification and bounded error log.

Maps any raised value to an ``ErrorInfo`` (kind, severity, retryable flag and
a pre-approved user message). Classification runs in tiers and the first
tier that matches wins:

0. Business rule violations (validation rejections raised by the submission
   pipeline)
1. Typed failures: ``CalendarApiError`` by HTTP status code, builtin
   ``TimeoutError``/``ConnectionError``
2. Keyword match on the lower-cased failure message
3. Unknown

``classify`` never raises. Each classified failure is appended to a
fixed-capacity ring buffer and logged through structlog at a level derived
from its severity.
"""

import threading
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

import structlog

from src.business.exceptions import BusinessRuleViolationError
from src.business.messages import DEFAULT_MESSAGES, UserMessages
from src.integrations.exceptions import (
    CalendarApiError,
    ErrorContext,
    ErrorInfo,
    ErrorKind,
    ErrorSeverity,
    generate_error_id,
)

logger = structlog.get_logger(__name__)

# (keywords, kind, severity, retryable), checked in order
KEYWORD_RULES: Tuple[Tuple[Tuple[str, ...], ErrorKind, ErrorSeverity, bool], ...] = (
    (('network', 'fetch', 'timeout', 'connection'), ErrorKind.NETWORK, ErrorSeverity.MEDIUM, True),
    (('validation', 'invalid', 'required'), ErrorKind.VALIDATION, ErrorSeverity.LOW, False),
    (('auth', 'unauthorized', 'forbidden'), ErrorKind.AUTHENTICATION, ErrorSeverity.HIGH, False),
)

RECENT_ERRORS_LIMIT = 10


class ErrorLog:
    """
    Fixed-capacity ring buffer of classified failures.

    Appends are lock-protected so one instance can be shared by concurrent
    submissions. The oldest entry is evicted first.
    """

    def __init__(self, capacity: int = 100):
        if capacity <= 0:
            raise ValueError("Error log capacity must be positive")
        self.capacity = capacity
        self._entries: Deque[ErrorInfo] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, info: ErrorInfo) -> None:
        with self._lock:
            self._entries.append(info)

    def snapshot(self) -> List[ErrorInfo]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ErrorClassifier:
    """
    Classifies failures into the fixed taxonomy and records them.

    Args:
        capacity: Maximum number of entries retained in the error log
        messages: User message catalog used for ``ErrorInfo.user_message``
    """

    def __init__(self, capacity: int = 100, messages: Optional[UserMessages] = None):
        self.error_log = ErrorLog(capacity)
        self.messages = messages or DEFAULT_MESSAGES

    def classify(
        self,
        error: Any,
        context: Optional[ErrorContext] = None,
        retry_count: int = 0,
        max_retries: int = 0,
    ) -> ErrorInfo:
        context = context or ErrorContext()
        message = self._safe_message(error)

        try:
            kind, severity, retryable, user_message = self._classify(error, message)
        except Exception:  # classify() never raises
            logger.exception("Error classification failed", operation=context.operation)
            kind, severity, retryable = ErrorKind.UNKNOWN, ErrorSeverity.MEDIUM, False
            user_message = self.messages.for_kind(ErrorKind.UNKNOWN)

        info = ErrorInfo(
            id=generate_error_id(),
            kind=kind,
            severity=severity,
            message=message,
            user_message=user_message,
            retryable=retryable,
            retry_count=retry_count,
            max_retries=max_retries,
            error_type=type(error).__name__,
            context=context,
        )

        self.error_log.append(info)
        self._log(info)
        return info

    def _classify(self, error: Any, message: str) -> Tuple[ErrorKind, ErrorSeverity, bool, str]:
        if isinstance(error, BusinessRuleViolationError):
            return ErrorKind.BUSINESS_LOGIC, ErrorSeverity.LOW, False, error.message

        if isinstance(error, CalendarApiError) and error.status_code is not None:
            return self._classify_status(error.status_code)

        if isinstance(error, (TimeoutError, ConnectionError)):
            return ErrorKind.NETWORK, ErrorSeverity.MEDIUM, True, self.messages.for_kind(ErrorKind.NETWORK)

        lowered = message.lower()
        for keywords, kind, severity, retryable in KEYWORD_RULES:
            if any(keyword in lowered for keyword in keywords):
                return kind, severity, retryable, self.messages.for_kind(kind)

        return ErrorKind.UNKNOWN, ErrorSeverity.MEDIUM, False, self.messages.for_kind(ErrorKind.UNKNOWN)

    def _classify_status(self, status_code: int) -> Tuple[ErrorKind, ErrorSeverity, bool, str]:
        if status_code in (401, 403):
            return ErrorKind.AUTHENTICATION, ErrorSeverity.HIGH, False, self.messages.calendar_unauthorized
        if status_code == 429:
            return ErrorKind.API, ErrorSeverity.MEDIUM, True, self.messages.calendar_rate_limited
        if status_code >= 500:
            return ErrorKind.API, ErrorSeverity.CRITICAL, True, self.messages.for_kind(ErrorKind.API)
        if status_code == 400:
            return ErrorKind.VALIDATION, ErrorSeverity.LOW, False, self.messages.for_kind(ErrorKind.VALIDATION)
        return ErrorKind.API, ErrorSeverity.LOW, False, self.messages.for_kind(ErrorKind.API)

    @staticmethod
    def _safe_message(error: Any) -> str:
        try:
            return str(error)
        except Exception:
            return f"<unprintable {type(error).__name__}>"

    @staticmethod
    def _log(info: ErrorInfo) -> None:
        fields = {
            'error_id': info.id,
            'kind': info.kind.value,
            'severity': info.severity.value,
            'error_type': info.error_type,
            'operation': info.context.operation,
            'retryable': info.retryable,
            'retry_count': info.retry_count,
            'error_message': info.message,
        }
        if info.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.HIGH):
            logger.error("Error classified", **fields)
        elif info.severity == ErrorSeverity.MEDIUM:
            logger.warning("Error classified", **fields)
        else:
            logger.info("Error classified", **fields)

    def stats(self) -> Dict[str, Any]:
        """Totals by kind and severity plus the ten most recent entries."""
        entries = self.error_log.snapshot()
        by_kind = Counter(info.kind.value for info in entries)
        by_severity = Counter(info.severity.value for info in entries)
        return {
            'total': len(entries),
            'by_kind': dict(by_kind),
            'by_severity': dict(by_severity),
            'recent': [info.to_dict() for info in entries[-RECENT_ERRORS_LIMIT:]],
        }

    def clear(self) -> None:
        self.error_log.clear()
        logger.info("Error log cleared")
