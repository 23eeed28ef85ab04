"""
Contact API Blueprint

HTTP surface for the website contact form. Each request body is parsed into
a form model and handed to the ``SubmissionOrchestrator`` stored in
``app.extensions['submission_orchestrator']``.

Endpoints (prefix ``/api/contact``):
    POST /appointments   Book an appointment (calendar, then email fallback)
    POST /messages       Send a simple message by email
    GET  /availability   Bookable slots for a date (?date=YYYY-MM-DD)
    GET  /connectivity   Probe the calendar and email paths

Status codes:
    201  Submission delivered (appointment booked, fallback email or message sent)
    400  Malformed body or a rejected submission (missing field, past date,
         outside business hours)
    503  Delivery failed on every available path

Submission endpoints are rate limited with Flask-Limiter
(``CONTACT_RATE_LIMIT``) and CORS-enabled with Flask-CORS.
"""

import asyncio
from datetime import date
from typing import Any, Dict, Tuple

import structlog
from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from pydantic import ValidationError

from src.business.models import (
    TIMEZONE_CONTEXT_KEY,
    AppointmentFormData,
    ContactFormData,
    SubmissionResult,
)
from src.business.services import (
    DATE_IN_PAST,
    MISSING_REQUIRED_FIELD,
    OUTSIDE_BUSINESS_HOURS,
    SubmissionOrchestrator,
)

logger = structlog.get_logger("api.contact")

ORCHESTRATOR_EXTENSION = 'submission_orchestrator'

REJECTION_CODES = frozenset({MISSING_REQUIRED_FIELD, DATE_IN_PAST, OUTSIDE_BUSINESS_HOURS})

INVALID_REQUEST = 'INVALID_REQUEST'


def get_orchestrator() -> SubmissionOrchestrator:
    return current_app.extensions[ORCHESTRATOR_EXTENSION]


def invalid_request(message: str, details: Any = None) -> Tuple[Any, int]:
    body: Dict[str, Any] = {'success': False, 'error': INVALID_REQUEST, 'message': message}
    if details:
        body['details'] = details
    return jsonify(body), 400


def submission_response(result: SubmissionResult) -> Tuple[Any, int]:
    if result.success:
        status_code = 201
    elif result.error in REJECTION_CODES:
        status_code = 400
    else:
        status_code = 503
    return jsonify(result.to_response()), status_code


def read_json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def validation_details(error: ValidationError) -> list:
    return [
        {'field': '.'.join(str(loc) for loc in item['loc']), 'message': item['msg']}
        for item in error.errors()
    ]


def create_contact_blueprint(rate_limiter: Limiter, rate_limit: str) -> Blueprint:
    """
    Build the contact blueprint with submission routes limited by
    ``rate_limiter``.
    """
    blueprint = Blueprint('contact', __name__, url_prefix='/api/contact')

    @blueprint.route('/appointments', methods=['POST'])
    @rate_limiter.limit(rate_limit)
    def submit_appointment():
        try:
            form = AppointmentFormData.model_validate(
                read_json_body(),
                context={TIMEZONE_CONTEXT_KEY: get_orchestrator().validator.get_config().tzinfo},
            )
        except ValueError as e:
            details = validation_details(e) if isinstance(e, ValidationError) else None
            logger.info("Rejected malformed appointment request", details=details)
            return invalid_request("Invalid appointment request.", details)

        result = asyncio.run(get_orchestrator().submit_appointment(form))
        logger.info("Appointment submission handled", kind=result.kind.value,
                    success=result.success, error=result.error)
        return submission_response(result)

    @blueprint.route('/messages', methods=['POST'])
    @rate_limiter.limit(rate_limit)
    def submit_message():
        try:
            form = ContactFormData(**read_json_body())
        except ValueError as e:
            details = validation_details(e) if isinstance(e, ValidationError) else None
            logger.info("Rejected malformed message request", details=details)
            return invalid_request("Invalid message request.", details)

        result = asyncio.run(get_orchestrator().submit_message(form))
        logger.info("Message submission handled", success=result.success, error=result.error)
        return submission_response(result)

    @blueprint.route('/availability', methods=['GET'])
    def availability():
        raw_date = request.args.get('date', '')
        try:
            day = date.fromisoformat(raw_date)
        except ValueError:
            return invalid_request("Query parameter 'date' must be YYYY-MM-DD.")

        validator = get_orchestrator().validator
        next_day = validator.get_next_business_day(day)
        return jsonify({
            'date': day.isoformat(),
            'business_day': validator.is_valid_business_day(day),
            'slots': [
                {'time': slot.time, 'available': slot.available, 'start': slot.start.isoformat()}
                for slot in validator.get_available_time_slots(day)
            ],
            'next_business_day': next_day.isoformat() if next_day else None,
        }), 200

    @blueprint.route('/connectivity', methods=['GET'])
    def connectivity():
        results = asyncio.run(get_orchestrator().test_connectivity())
        status_code = 200 if all(results.values()) else 503
        return jsonify(results), status_code

    return blueprint


def init_contact_api(app: Flask, rate_limiter: Limiter) -> Blueprint:
    """
    Register the contact blueprint on ``app`` with CORS and rate limiting.

    Args:
        app: Flask application with a submission orchestrator extension
        rate_limiter: Flask-Limiter instance bound to ``app``
    """
    blueprint = create_contact_blueprint(rate_limiter, app.config['CONTACT_RATE_LIMIT'])
    CORS(blueprint, origins=app.config.get('CORS_ORIGINS', ['*']), methods=['GET', 'POST', 'OPTIONS'])
    app.register_blueprint(blueprint)

    logger.info(
        "Contact API Blueprint initialized",
        url_prefix=blueprint.url_prefix,
        rate_limit=app.config['CONTACT_RATE_LIMIT'],
        rate_limiting_enabled=app.config.get('RATELIMIT_ENABLED', True),
    )
    return blueprint
