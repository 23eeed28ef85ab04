"""
Submission orchestration service.

``SubmissionOrchestrator`` turns a contact form submission into a
deterministic, user-safe ``SubmissionResult``:

    appointment: validate -> calendar event (with retry) -> email fallback
    message:     validate -> email (with retry)

Validation always completes before any collaborator is called, and the
calendar path completes (success or give-up) before the email fallback
starts. Raw failures never reach the caller; results only carry catalogued
user messages and stable error codes. Every terminal branch reports exactly
one form submission event to monitoring and every calendar attempt reports
one API call event.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import structlog

from src.business.exceptions import BusinessRuleViolationError
from src.business.messages import DEFAULT_MESSAGES, UserMessages, describe_weekdays
from src.business.models import (
    AppointmentFormData,
    ContactFormData,
    SubmissionKind,
    SubmissionResult,
)
from src.business.utils import email_subject, format_email_body
from src.business.validators import BusinessHoursValidator, Clock
from src.config.settings import SubmissionSettings
from src.integrations.classifier import ErrorClassifier
from src.integrations.contracts import (
    AttendeeInfo,
    CalendarClient,
    CalendarEventPayload,
    EmailSender,
    EventHandle,
    MonitoringFacade,
)
from src.integrations.exceptions import ErrorContext, RetryExhaustedError
from src.integrations.retry import RetryEngine, SleepFunction
from src.utils.datetime_utils import parse_time_of_day

logger = structlog.get_logger(__name__)

EVENT_SUBJECT = "Appointment via the website"
CALENDAR_ENDPOINT = "calendar/events"

MISSING_REQUIRED_FIELD = 'MISSING_REQUIRED_FIELD'
DATE_IN_PAST = 'DATE_IN_PAST'
OUTSIDE_BUSINESS_HOURS = 'OUTSIDE_BUSINESS_HOURS'
EMAIL_FALLBACK_FAILED = 'EMAIL_FALLBACK_FAILED'
CALENDAR_UNAVAILABLE = 'CALENDAR_UNAVAILABLE'
EMAIL_DELIVERY_FAILED = 'EMAIL_DELIVERY_FAILED'


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class SubmissionOrchestrator:
    """
    Validates and delivers contact form submissions.

    Collaborators are injected; everything else is built from
    ``settings`` unless given explicitly.

    Args:
        calendar: Calendar client used to book appointments
        email_sender: Email transport for messages and the fallback path
        monitoring: Receives API call, form submission and security events
        settings: Business hours, retry policy, feature flags
        validator: Business hours validator (built from settings by default)
        classifier: Error classifier owning the bounded error log
        retry_engine: Retry engine (built from settings by default)
        messages: User message catalog
        clock: Current-instant source for the default validator
        sleep: Sleep coroutine for the default retry engine
    """

    def __init__(
        self,
        calendar: CalendarClient,
        email_sender: EmailSender,
        monitoring: MonitoringFacade,
        settings: Optional[SubmissionSettings] = None,
        validator: Optional[BusinessHoursValidator] = None,
        classifier: Optional[ErrorClassifier] = None,
        retry_engine: Optional[RetryEngine] = None,
        messages: Optional[UserMessages] = None,
        clock: Optional[Clock] = None,
        sleep: Optional[SleepFunction] = None,
    ):
        self.calendar = calendar
        self.email_sender = email_sender
        self.monitoring = monitoring
        self.settings = settings or SubmissionSettings()
        self.messages = messages or DEFAULT_MESSAGES
        self.validator = validator or BusinessHoursValidator(self.settings.business_hours, clock)
        self.classifier = classifier or ErrorClassifier(self.settings.error_log_capacity, self.messages)
        self.retry_engine = retry_engine or RetryEngine(self.classifier, self.settings.retry, sleep)

    @property
    def features(self):
        return self.settings.features

    async def submit_appointment(
        self,
        form: AppointmentFormData,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionResult:
        started = time.perf_counter()
        context = ErrorContext(
            operation='appointment_booking',
            metadata={
                'appointment_date': form.appointment_date.isoformat() if form.appointment_date else None,
                'appointment_time': form.appointment_time,
            },
        )

        try:
            self._validate_appointment(form)
        except BusinessRuleViolationError as violation:
            return self._reject(SubmissionKind.APPOINTMENT, violation, context, started)

        if not self.features.calendar_booking:
            logger.info("Calendar booking disabled", operation=context.operation)
            if self.features.email_fallback:
                return await self._email_fallback(form, context, started, cancel_event)
            return self._calendar_unavailable(started, ['calendar_booking_disabled'])

        payload = self._build_event_payload(form)
        try:
            handle = await self.retry_engine.with_retry(
                lambda: self._create_event(payload),
                ErrorContext(operation='calendar_event_creation', metadata=dict(context.metadata)),
                cancel_event=cancel_event,
            )
        except RetryExhaustedError as exhausted:
            logger.warning(
                "Calendar booking failed",
                error_id=exhausted.error_info.id,
                kind=exhausted.error_info.kind.value,
                attempts=exhausted.attempts,
                fallback_enabled=self.features.email_fallback,
            )
            if not self.features.email_fallback:
                return self._calendar_unavailable(started, [exhausted.error_info.kind.value])
            return await self._email_fallback(form, context, started, cancel_event)

        self._record_submission(SubmissionKind.APPOINTMENT, started, True)
        logger.info("Appointment booked", event_id=handle.id)
        return SubmissionResult(
            kind=SubmissionKind.APPOINTMENT,
            success=True,
            message=self.messages.appointment_booked,
            event_id=handle.id,
        )

    async def submit_message(
        self,
        form: ContactFormData,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionResult:
        started = time.perf_counter()
        context = ErrorContext(
            operation='message_submission',
            metadata={'has_company': bool(form.company), 'message_length': len(form.message)},
        )

        try:
            self._validate_required_fields(form)
        except BusinessRuleViolationError as violation:
            return self._reject(SubmissionKind.MESSAGE, violation, context, started)

        try:
            await self._send_email(form, context, appointment_request=False, cancel_event=cancel_event)
        except RetryExhaustedError as exhausted:
            self._record_submission(SubmissionKind.MESSAGE, started, False, [exhausted.error_info.kind.value])
            return SubmissionResult(
                kind=SubmissionKind.MESSAGE,
                success=False,
                message=self.messages.message_failed,
                error=EMAIL_DELIVERY_FAILED,
            )

        self._record_submission(SubmissionKind.MESSAGE, started, True)
        return SubmissionResult(
            kind=SubmissionKind.MESSAGE,
            success=True,
            message=self.messages.message_sent,
        )

    async def test_connectivity(self) -> Dict[str, bool]:
        """Probe both delivery paths independently."""
        results = {}
        for name, probe in (('calendar', self.calendar.test_connection),
                            ('email', self.email_sender.test_connection)):
            try:
                results[name] = bool(await probe())
            except Exception as e:
                logger.warning("Connectivity probe failed", service=name,
                               error_type=type(e).__name__, error=str(e))
                results[name] = False
        logger.info("Connectivity checked", **results)
        return results

    def _validate_required_fields(self, form: ContactFormData) -> None:
        missing = form.missing_fields()
        if missing:
            raise BusinessRuleViolationError(
                message=self.messages.missing(missing[0]),
                error_code=MISSING_REQUIRED_FIELD,
                rule_name='required_fields',
                field_name=missing[0],
                context={'missing_fields': missing},
            )

    def _validate_appointment(self, form: AppointmentFormData) -> None:
        self._validate_required_fields(form)

        day = form.appointment_date
        if parse_time_of_day(form.appointment_time) is not None:
            requested = self.validator.combine(day, form.appointment_time)
        else:
            requested = day

        if self.validator.is_in_past(requested):
            raise BusinessRuleViolationError(
                message=self.messages.date_in_past,
                error_code=DATE_IN_PAST,
                rule_name='appointment_not_in_past',
                field_name='appointment_date',
            )

        if not self.validator.is_valid_business_date_time(day, form.appointment_time):
            config = self.validator.get_config()
            raise BusinessRuleViolationError(
                message=self.messages.outside_hours(
                    start=config.start_time,
                    end=config.end_time,
                    days=describe_weekdays(config.working_day_names, config.working_days),
                ),
                error_code=OUTSIDE_BUSINESS_HOURS,
                rule_name='within_business_hours',
                field_name='appointment_time',
            )

    def _build_event_payload(self, form: AppointmentFormData) -> CalendarEventPayload:
        start = self.validator.combine(form.appointment_date, form.appointment_time)
        return CalendarEventPayload(
            subject=EVENT_SUBJECT,
            start=start,
            end=self.validator.slot_end(start),
            timezone=self.validator.get_config().timezone,
            attendee=AttendeeInfo(
                first_name=form.first_name,
                last_name=form.last_name,
                company=form.company,
                message=form.message,
            ),
        )

    async def _create_event(self, payload: CalendarEventPayload) -> EventHandle:
        started = time.perf_counter()
        try:
            handle = await self.calendar.create_event(payload)
        except Exception as e:
            status_code = getattr(e, 'status_code', None) or 0
            self.monitoring.record_api_call(
                CALENDAR_ENDPOINT, 'POST', _elapsed_ms(started), status_code, False, error=str(e),
            )
            if status_code in (401, 403):
                self.monitoring.record_security_event(
                    'calendar_authentication_failure',
                    'high',
                    {'status_code': status_code, 'endpoint': CALENDAR_ENDPOINT},
                )
            raise
        self.monitoring.record_api_call(
            CALENDAR_ENDPOINT, 'POST', _elapsed_ms(started), handle.status_code, True,
        )
        return handle

    async def _send_email(
        self,
        form: ContactFormData,
        context: ErrorContext,
        appointment_request: bool,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        subject = email_subject(form, appointment_request)
        body = format_email_body(
            form,
            received_at=self.validator.now(),
            slot_duration=self.validator.get_config().slot_duration if appointment_request else None,
        )
        await self.retry_engine.with_retry(
            lambda: self.email_sender.send(subject, body),
            ErrorContext(operation='email_delivery', metadata=dict(context.metadata)),
            cancel_event=cancel_event,
        )

    async def _email_fallback(
        self,
        form: AppointmentFormData,
        context: ErrorContext,
        started: float,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionResult:
        try:
            await self._send_email(form, context, appointment_request=True, cancel_event=cancel_event)
        except RetryExhaustedError as exhausted:
            logger.error(
                "Email fallback failed",
                error_id=exhausted.error_info.id,
                kind=exhausted.error_info.kind.value,
            )
            self._record_submission(
                SubmissionKind.EMAIL_FALLBACK, started, False, [exhausted.error_info.kind.value],
            )
            return SubmissionResult(
                kind=SubmissionKind.EMAIL_FALLBACK,
                success=False,
                message=self.messages.fallback_failed,
                error=EMAIL_FALLBACK_FAILED,
            )

        self._record_submission(SubmissionKind.EMAIL_FALLBACK, started, True)
        return SubmissionResult(
            kind=SubmissionKind.EMAIL_FALLBACK,
            success=True,
            message=self.messages.fallback_sent,
        )

    def _reject(
        self,
        kind: SubmissionKind,
        violation: BusinessRuleViolationError,
        context: ErrorContext,
        started: float,
    ) -> SubmissionResult:
        self.classifier.classify(violation, context.with_metadata(error_code=violation.error_code))
        self._record_submission(kind, started, False, [violation.error_code])
        return SubmissionResult(
            kind=kind,
            success=False,
            message=violation.message,
            error=violation.error_code,
        )

    def _calendar_unavailable(self, started: float, errors: List[str]) -> SubmissionResult:
        self._record_submission(SubmissionKind.APPOINTMENT, started, False, errors)
        return SubmissionResult(
            kind=SubmissionKind.APPOINTMENT,
            success=False,
            message=self.messages.calendar_unavailable,
            error=CALENDAR_UNAVAILABLE,
        )

    def _record_submission(
        self,
        kind: SubmissionKind,
        started: float,
        success: bool,
        errors: Optional[List[Any]] = None,
    ) -> None:
        self.monitoring.record_form_submission(kind.value, _elapsed_ms(started), success, errors)
