"""
Global pytest Configuration and Fixtures

Provides in-memory fakes for every collaborator of the submission pipeline
(calendar client, email sender, monitoring facade), a fixed clock and a
recording sleep so retry backoff can be asserted without waiting.

Fixed clock: Wednesday 2026-10-14 10:00 UTC, which is 12:00 in
Europe/Paris (CEST). Handy dates relative to it:
    YESTERDAY    Tuesday 2026-10-13
    NEXT_MONDAY  Monday 2026-10-19
    SATURDAY     Saturday 2026-10-17
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from prometheus_client import CollectorRegistry

from src.business.models import AppointmentFormData, ContactFormData
from src.business.services import SubmissionOrchestrator
from src.config.settings import BusinessHoursConfig, SubmissionSettings
from src.integrations.contracts import CalendarEventPayload, EventHandle
from src.integrations.retry import RetryConfig
from src.monitoring.metrics import PrometheusMonitoringFacade

FIXED_NOW = datetime(2026, 10, 14, 10, 0, tzinfo=timezone.utc)
TODAY = date(2026, 10, 14)
YESTERDAY = date(2026, 10, 13)
NEXT_MONDAY = date(2026, 10, 19)
SATURDAY = date(2026, 10, 17)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeCalendarClient:
    """
    Calendar client fake.

    Raises ``error`` on the first ``fail_times`` calls (every call when
    ``fail_times`` is None), then returns an ``EventHandle``.
    """

    def __init__(self, error: Optional[Exception] = None, fail_times: Optional[int] = None,
                 event_id: str = 'evt-1', reachable: Any = True):
        self.error = error
        self.fail_times = fail_times
        self.event_id = event_id
        self.reachable = reachable
        self.calls: List[CalendarEventPayload] = []

    async def create_event(self, payload: CalendarEventPayload) -> EventHandle:
        self.calls.append(payload)
        if self.error is not None and (self.fail_times is None or len(self.calls) <= self.fail_times):
            raise self.error
        return EventHandle(id=self.event_id)

    async def test_connection(self) -> bool:
        if isinstance(self.reachable, Exception):
            raise self.reachable
        return self.reachable


class FakeEmailSender:
    def __init__(self, error: Optional[Exception] = None, fail_times: Optional[int] = None,
                 reachable: Any = True):
        self.error = error
        self.fail_times = fail_times
        self.reachable = reachable
        self.attempts = 0
        self.sent: List[Dict[str, str]] = []

    async def send(self, subject: str, body: str) -> None:
        self.attempts += 1
        if self.error is not None and (self.fail_times is None or self.attempts <= self.fail_times):
            raise self.error
        self.sent.append({'subject': subject, 'body': body})

    async def test_connection(self) -> bool:
        if isinstance(self.reachable, Exception):
            raise self.reachable
        return self.reachable


class RecordingMonitoring:
    """Monitoring facade fake recording every event."""

    def __init__(self):
        self.api_calls: List[Dict[str, Any]] = []
        self.form_submissions: List[Dict[str, Any]] = []
        self.security_events: List[Dict[str, Any]] = []

    def record_api_call(self, endpoint, method, duration_ms, status_code, success, error=None):
        self.api_calls.append({
            'endpoint': endpoint, 'method': method, 'duration_ms': duration_ms,
            'status_code': status_code, 'success': success, 'error': error,
        })

    def record_form_submission(self, kind, duration_ms, success, errors=None):
        self.form_submissions.append({
            'kind': kind, 'duration_ms': duration_ms, 'success': success, 'errors': errors,
        })

    def record_security_event(self, name, severity, details=None):
        self.security_events.append({'name': name, 'severity': severity, 'details': details})


class RecordingSleep:
    """Async sleep replacement recording requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def business_hours():
    return BusinessHoursConfig()


@pytest.fixture
def settings(business_hours):
    return SubmissionSettings(business_hours=business_hours, retry=RetryConfig())


@pytest.fixture
def calendar():
    return FakeCalendarClient()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def monitoring():
    return RecordingMonitoring()


@pytest.fixture
def sleep_recorder():
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(settings, calendar, email_sender, monitoring, sleep_recorder):
    """Factory building an orchestrator wired to the fakes; keyword overrides replace any part."""
    def factory(**overrides) -> SubmissionOrchestrator:
        options = {
            'calendar': calendar,
            'email_sender': email_sender,
            'monitoring': monitoring,
            'settings': settings,
            'clock': fixed_clock,
            'sleep': sleep_recorder,
        }
        options.update(overrides)
        return SubmissionOrchestrator(**options)
    return factory


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()


@pytest.fixture
def prometheus_monitoring():
    return PrometheusMonitoringFacade(registry=CollectorRegistry())


@pytest.fixture
def appointment_form():
    return AppointmentFormData(
        first_name='Marie',
        last_name='Curie',
        company='Radium SA',
        email='marie@example.com',
        phone='+33 1 23 45 67 89',
        message='Discuss a supply contract',
        appointment_date=NEXT_MONDAY,
        appointment_time='14:30',
    )


@pytest.fixture
def message_form():
    return ContactFormData(
        first_name='Pierre',
        last_name='Curie',
        email='pierre@example.com',
        message='Please send your catalogue',
    )
