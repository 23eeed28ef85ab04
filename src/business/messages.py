"""
User-facing message catalog.

Every string a caller can see in a ``SubmissionResult`` or a
``RetryExhaustedError`` comes from here. Raw failure text never reaches
users; the classifier maps each failure kind (and a few calendar status
codes) to one of these pre-approved messages.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from src.integrations.exceptions import ErrorKind


DEFAULT_KIND_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.AUTHENTICATION: "Authentication problem. Please try again.",
    ErrorKind.API: "Service temporarily unavailable. Please try again.",
    ErrorKind.VALIDATION: "Invalid data. Please check your information.",
    ErrorKind.NETWORK: "Connection problem. Please check your internet connection.",
    ErrorKind.BUSINESS_LOGIC: "This action is not allowed.",
    ErrorKind.UNKNOWN: "An unexpected error occurred. Please try again.",
}


def describe_weekdays(names: Iterable[str], iso_days: Iterable[int]) -> str:
    """
    Render working days for a message.

    A contiguous run of two or more days reads as ``Monday to Friday``;
    anything else is listed.
    """
    names = list(names)
    days = sorted(iso_days)
    if len(days) > 1 and days == list(range(days[0], days[-1] + 1)):
        return f"{names[0]} to {names[-1]}"
    if len(names) > 1:
        return ", ".join(names[:-1]) + f" and {names[-1]}"
    return names[0] if names else ""


@dataclass(frozen=True)
class UserMessages:
    """Pre-approved user messages. Override fields to customize wording."""

    missing_first_name: str = "Please enter your first name."
    missing_last_name: str = "Please enter your last name."
    missing_message: str = "Please enter a message."
    missing_date: str = "Please select a date for your appointment."
    missing_time: str = "Please select a time for your appointment."
    missing_field: str = "Please fill in all required fields."

    date_in_past: str = "Appointments cannot be scheduled in the past."
    outside_business_hours: str = (
        "The selected slot is not available. Please choose a time between "
        "{start} and {end}, {days}."
    )

    appointment_booked: str = "Your appointment has been booked. A confirmation will follow."
    fallback_sent: str = (
        "Your appointment request has been sent. We will contact you shortly "
        "to confirm the slot."
    )
    fallback_failed: str = (
        "We could not process your request. Please try again later or contact "
        "us directly."
    )
    calendar_unavailable: str = (
        "Online booking is temporarily unavailable. Please try again later."
    )
    message_sent: str = "Your message has been sent. We will get back to you shortly."
    message_failed: str = (
        "Your message could not be sent. Please try again later or contact us directly."
    )

    calendar_rate_limited: str = "Too many simultaneous requests. Please wait a few moments."
    calendar_unauthorized: str = (
        "Authorization problem. The calendar service is temporarily unavailable."
    )

    by_kind: Dict[ErrorKind, str] = field(default_factory=lambda: dict(DEFAULT_KIND_MESSAGES))

    def for_kind(self, kind: ErrorKind) -> str:
        return self.by_kind.get(kind) or DEFAULT_KIND_MESSAGES.get(kind) or DEFAULT_KIND_MESSAGES[ErrorKind.UNKNOWN]

    def missing(self, field_name: str) -> str:
        return {
            'first_name': self.missing_first_name,
            'last_name': self.missing_last_name,
            'message': self.missing_message,
            'appointment_date': self.missing_date,
            'appointment_time': self.missing_time,
        }.get(field_name, self.missing_field)

    def outside_hours(self, start: str, end: str, days: str) -> str:
        return self.outside_business_hours.format(start=start, end=end, days=days)

    def with_kind_messages(self, overrides: Optional[Dict[ErrorKind, str]]) -> 'UserMessages':
        merged = dict(self.by_kind)
        merged.update(overrides or {})
        return UserMessages(**{**self.__dict__, 'by_kind': merged})


DEFAULT_MESSAGES = UserMessages()
