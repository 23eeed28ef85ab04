"""
Business Data Models

Pydantic v2 models for contact form submissions and their outcome.

Form models are deliberately lenient: required text fields default to an
empty string so the orchestrator can report *which* field is missing with a
field-specific message instead of a generic schema error. Structural
problems (a date that is not a real calendar date, a non-string name) still
fail model construction with ``pydantic.ValidationError``.

Models:
    ContactFormData: Simple message submission
    AppointmentFormData: Message plus requested appointment date and time
    SubmissionResult: Deterministic, user-safe outcome of a submission
"""

from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from src.config.settings import BusinessHoursConfig
from src.utils.datetime_utils import get_timezone, to_timezone

TIMEZONE_CONTEXT_KEY = 'timezone'


class BaseBusinessModel(BaseModel):
    """Shared configuration for submission models."""

    model_config = ConfigDict(
        str_strip_whitespace=True,  # Automatically strip whitespace
        extra='ignore',
        hide_input_in_errors=True,  # Security: hide user input in errors
    )


class ContactFormData(BaseBusinessModel):
    """
    Contact form payload.

    ``first_name``, ``last_name`` and ``message`` are required (non-empty
    after trimming); ``missing_fields`` lists the empty ones in form order.
    """

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ('first_name', 'last_name', 'message')

    first_name: str = ''
    last_name: str = ''
    message: str = ''
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator('company', 'email', 'phone')
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AppointmentFormData(ContactFormData):
    """Contact form payload with a requested appointment slot."""

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = (
        'first_name', 'last_name', 'message', 'appointment_date', 'appointment_time',
    )

    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None

    @field_validator('appointment_date', mode='before')
    @classmethod
    def parse_date_part(cls, value: Any, info: ValidationInfo) -> Any:
        """
        Accept a plain date or a full ISO timestamp.

        Browsers serialise the picked day as UTC (``2026-10-18T22:00:00.000Z``
        for midnight in Paris), so an aware timestamp is converted to the
        business timezone before its date is taken. The zone comes from the
        validation context key ``timezone``, the default business timezone
        otherwise.
        """
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not value:
            return None
        if 'T' not in value:
            return value
        try:
            moment = isoparse(value)
        except ValueError:
            return value
        if moment.tzinfo is None:
            return moment.date()
        zone = (info.context or {}).get(TIMEZONE_CONTEXT_KEY) or get_timezone(BusinessHoursConfig.timezone)
        return to_timezone(moment, zone).date()

    @field_validator('appointment_time')
    @classmethod
    def blank_time_to_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class SubmissionKind(str, Enum):
    APPOINTMENT = 'appointment'
    EMAIL_FALLBACK = 'email_fallback'
    MESSAGE = 'message'


class SubmissionResult(BaseModel):
    """
    Outcome of a submission.

    ``message`` is for humans and never parsed; ``error`` is a stable
    machine-readable code.
    """

    model_config = ConfigDict(frozen=True)

    kind: SubmissionKind
    success: bool
    message: str
    event_id: Optional[str] = None
    error: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', exclude_none=True)
