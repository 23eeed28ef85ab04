"""
Prometheus Metrics Collection

Implements the monitoring boundary consumed by the submission orchestrator
with prometheus-client counters and histograms, mirroring every event as a
structlog record for operators.

Metrics:
    contact_calendar_api_requests_total         calls by endpoint, method, status, outcome
    contact_calendar_api_duration_seconds       call latency by endpoint and method
    contact_form_submissions_total              submissions by kind and outcome
    contact_form_submission_duration_seconds    end-to-end submission latency by kind
    contact_form_submission_errors_total        error codes reported with failed submissions
    contact_security_events_total               security events by name and severity

A dedicated ``CollectorRegistry`` can be injected so tests and multiple
application instances never collide on the global registry.
"""

from typing import Any, Dict, List, Optional

import structlog
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = structlog.get_logger(__name__)

LATENCY_BUCKETS = [0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float('inf')]


class PrometheusMonitoringFacade:
    """
    Monitoring facade backed by prometheus-client.

    Args:
        registry: Registry for all metrics, the process-wide default if omitted
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY
        self._init_api_metrics()
        self._init_submission_metrics()
        self._init_security_metrics()

    def _init_api_metrics(self):
        self.api_requests_total = Counter(
            'contact_calendar_api_requests_total',
            'Total number of calendar API calls',
            ['endpoint', 'method', 'status_code', 'outcome'],
            registry=self.registry
        )

        self.api_duration_seconds = Histogram(
            'contact_calendar_api_duration_seconds',
            'Calendar API call duration in seconds',
            ['endpoint', 'method'],
            buckets=LATENCY_BUCKETS,
            registry=self.registry
        )

    def _init_submission_metrics(self):
        self.form_submissions_total = Counter(
            'contact_form_submissions_total',
            'Total number of contact form submissions',
            ['kind', 'outcome'],
            registry=self.registry
        )

        self.form_submission_duration_seconds = Histogram(
            'contact_form_submission_duration_seconds',
            'End-to-end contact form submission duration in seconds',
            ['kind'],
            buckets=LATENCY_BUCKETS,
            registry=self.registry
        )

        self.form_submission_errors_total = Counter(
            'contact_form_submission_errors_total',
            'Errors reported with failed contact form submissions',
            ['kind', 'error'],
            registry=self.registry
        )

    def _init_security_metrics(self):
        self.security_events_total = Counter(
            'contact_security_events_total',
            'Total number of security events',
            ['event', 'severity'],
            registry=self.registry
        )

    @staticmethod
    def _outcome(success: bool) -> str:
        return 'success' if success else 'failure'

    def record_api_call(
        self,
        endpoint: str,
        method: str,
        duration_ms: float,
        status_code: int,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        self.api_requests_total.labels(
            endpoint=endpoint,
            method=method,
            status_code=str(status_code),
            outcome=self._outcome(success),
        ).inc()
        self.api_duration_seconds.labels(endpoint=endpoint, method=method).observe(duration_ms / 1000)

        log = logger.info if success else logger.warning
        log(
            "Calendar API call",
            endpoint=endpoint,
            method=method,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
            success=success,
            error=error,
        )

    def record_form_submission(
        self,
        kind: str,
        duration_ms: float,
        success: bool,
        errors: Optional[List[Any]] = None,
    ) -> None:
        self.form_submissions_total.labels(kind=kind, outcome=self._outcome(success)).inc()
        self.form_submission_duration_seconds.labels(kind=kind).observe(duration_ms / 1000)
        for error in errors or []:
            self.form_submission_errors_total.labels(kind=kind, error=str(error)).inc()

        logger.info(
            "Form submission",
            kind=kind,
            duration_ms=round(duration_ms, 2),
            success=success,
            errors=errors or [],
        )

    def record_security_event(
        self,
        name: str,
        severity: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.security_events_total.labels(event=name, severity=severity).inc()
        logger.warning("Security event", security_event=name, severity=severity, details=details or {})

    def generate_metrics_output(self) -> bytes:
        """Prometheus text exposition of this facade's registry."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST
