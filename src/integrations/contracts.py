"""
Contracts for the collaborators the submission pipeline consumes.

Concrete calendar, email and monitoring implementations live outside this
package (apart from the Prometheus monitoring adapter in
``src.monitoring.metrics``) and are injected into the orchestrator. Any
object with matching methods satisfies these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable


LOCAL_DATETIME_FORMAT = '%Y-%m-%dT%H:%M:%S'


@dataclass(frozen=True)
class AttendeeInfo:
    first_name: str
    last_name: str
    message: str
    company: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'first_name': self.first_name,
            'last_name': self.last_name,
            'company': self.company,
            'message': self.message,
        }


@dataclass(frozen=True)
class CalendarEventPayload:
    """
    Calendar event request.

    ``start`` and ``end`` are timezone-aware datetimes in the business
    timezone; ``to_dict`` renders them as local wall-clock strings next to
    the timezone name, which is what calendar vendors expect.
    """
    subject: str
    start: datetime
    end: datetime
    timezone: str
    attendee: AttendeeInfo

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject': self.subject,
            'start': self.start.strftime(LOCAL_DATETIME_FORMAT),
            'end': self.end.strftime(LOCAL_DATETIME_FORMAT),
            'timezone': self.timezone,
            'attendee': self.attendee.to_dict(),
        }


@dataclass(frozen=True)
class EventHandle:
    """
    Handle returned by the calendar for a created event.

    ``status_code`` is the transport status of the create call; clients that
    do not expose one keep the nominal 201.
    """
    id: str
    web_link: Optional[str] = None
    status_code: int = 201


@runtime_checkable
class CalendarClient(Protocol):
    async def create_event(self, payload: CalendarEventPayload) -> EventHandle:
        """Create an event. Raises ``CalendarApiError`` with an HTTP status on failure."""
        ...

    async def test_connection(self) -> bool:
        ...


@runtime_checkable
class EmailSender(Protocol):
    async def send(self, subject: str, body: str) -> None:
        """Deliver a plain-text email to the site operator. Raises on failure."""
        ...

    async def test_connection(self) -> bool:
        ...


@runtime_checkable
class MonitoringFacade(Protocol):
    def record_api_call(
        self,
        endpoint: str,
        method: str,
        duration_ms: float,
        status_code: int,
        success: bool,
        error: Optional[str] = None,
    ) -> None:
        ...

    def record_form_submission(
        self,
        kind: str,
        duration_ms: float,
        success: bool,
        errors: Optional[list] = None,
    ) -> None:
        ...

    def record_security_event(
        self,
        name: str,
        severity: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...
