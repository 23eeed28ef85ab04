"""
Plain-text email formatting for submissions delivered by email.

Used for simple messages and for appointment requests that fall back to
email when the calendar path fails. The body carries the contact block,
the requested slot for appointment requests, the message and, for
appointment requests, the follow-up checklist for the site operator.
"""

from datetime import datetime
from typing import List, Optional

from src.business.models import AppointmentFormData, ContactFormData

APPOINTMENT_SUBJECT = "New appointment request - {name}"
MESSAGE_SUBJECT = "New message from the website - {name}"

APPOINTMENT_ACTIONS = (
    "Check availability of the requested slot",
    "Contact the client to confirm the appointment",
    "Add the event to the calendar once confirmed",
)


def _section(title: str) -> List[str]:
    return [title, '-' * len(title)]


def email_subject(form: ContactFormData, appointment_request: bool) -> str:
    template = APPOINTMENT_SUBJECT if appointment_request else MESSAGE_SUBJECT
    return template.format(name=form.full_name)


def format_email_body(
    form: ContactFormData,
    received_at: datetime,
    slot_duration: Optional[int] = None,
) -> str:
    """
    Render the operator email for a submission.

    An ``AppointmentFormData`` with both date and time set is rendered as an
    appointment request.
    """
    appointment = isinstance(form, AppointmentFormData) and bool(
        form.appointment_date and form.appointment_time
    )

    title = "NEW APPOINTMENT REQUEST" if appointment else "NEW MESSAGE FROM THE WEBSITE"
    lines = [title, '=' * len(title), '']
    lines.append(f"Received: {received_at.strftime('%Y-%m-%d %H:%M %Z').strip()}")
    lines.append('')

    lines.extend(_section("CONTACT DETAILS"))
    lines.append(f"First name: {form.first_name}")
    lines.append(f"Last name: {form.last_name}")
    if form.email:
        lines.append(f"Email: {form.email}")
    if form.phone:
        lines.append(f"Phone: {form.phone}")
    if form.company:
        lines.append(f"Company: {form.company}")

    if appointment:
        lines.append('')
        lines.extend(_section("REQUESTED APPOINTMENT"))
        lines.append(f"Date: {form.appointment_date.strftime('%A %d %B %Y')}")
        lines.append(f"Time: {form.appointment_time}")
        if slot_duration:
            lines.append(f"Duration: {slot_duration} minutes")

    lines.append('')
    lines.extend(_section("MESSAGE"))
    lines.append(form.message)
    lines.append('')

    if appointment:
        lines.extend(_section("ACTION REQUIRED"))
        lines.extend(f"- {action}" for action in APPOINTMENT_ACTIONS)
        lines.append('')

    lines.append('---')
    lines.append("Automated email sent by the website contact form.")
    lines.append("Do not reply directly to this email.")
    return '\n'.join(lines)
