"""
Flask Application Factory

Builds the contact submission service: environment configuration,
structured logging, Flask-CORS, Flask-Limiter, the contact API blueprint,
JSON error handlers, a liveness probe and the Prometheus ``/metrics``
endpoint.

The submission orchestrator and its collaborators (calendar client, email
sender, monitoring facade) are created by the caller and injected:

    orchestrator = SubmissionOrchestrator(
        calendar=calendar_client,
        email_sender=email_sender,
        monitoring=PrometheusMonitoringFacade(),
        settings=SubmissionSettings.from_env(),
    )
    app = create_app('production', orchestrator=orchestrator)
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from src.blueprints.contact import ORCHESTRATOR_EXTENSION, init_contact_api
from src.business.exceptions import BaseBusinessException, ConfigurationError
from src.business.services import SubmissionOrchestrator
from src.config.settings import get_config
from src.monitoring.logging import init_request_logging, setup_structured_logging
from src.monitoring.metrics import PrometheusMonitoringFacade

logger = structlog.get_logger(__name__)

RATE_LIMITER_EXTENSION = 'contact_rate_limiter'


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_response(error: str, message: str, status_code: int, **extra: Any):
    body = {
        'success': False,
        'error': error,
        'message': message,
        'status_code': status_code,
        'timestamp': _timestamp(),
    }
    body.update(extra)
    return jsonify(body), status_code


def _configure_error_handlers(app: Flask) -> None:
    @app.errorhandler(400)
    def handle_bad_request(error):
        return _error_response('Bad Request', 'The request could not be understood.', 400)

    @app.errorhandler(404)
    def handle_not_found(error):
        return _error_response('Not Found', 'The requested resource was not found.', 404)

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return _error_response(
            'Method Not Allowed',
            f'The {request.method} method is not allowed for this resource',
            405,
        )

    @app.errorhandler(429)
    def handle_rate_limit_exceeded(error):
        """Handle 429 Too Many Requests errors from Flask-Limiter."""
        logger.warning(
            "Rate limit exceeded",
            endpoint=request.endpoint,
            method=request.method,
            remote_addr=request.remote_addr,
            limit=str(getattr(error, 'description', '')),
        )
        orchestrator = app.extensions.get(ORCHESTRATOR_EXTENSION)
        if orchestrator is not None:
            orchestrator.monitoring.record_security_event(
                'rate_limit_exceeded',
                'medium',
                {'endpoint': request.endpoint, 'remote_addr': request.remote_addr},
            )
        return _error_response(
            'Too Many Requests',
            'Rate limit exceeded. Please try again later.',
            429,
        )

    @app.errorhandler(BaseBusinessException)
    def handle_business_exception(error):
        logger.error("Business exception reached the request boundary", error=error.to_dict())
        return _error_response(error.error_code, error.message, error.http_status_code)

    @app.errorhandler(500)
    def handle_internal_server_error(error):
        logger.error("Internal server error", error=str(error), path=request.path)
        return _error_response('Internal Server Error', 'An unexpected error occurred.', 500)


def _configure_health_and_metrics(app: Flask) -> None:
    @app.route('/health/live')
    def liveness_probe():
        """Liveness probe endpoint."""
        return jsonify({'status': 'alive', 'timestamp': _timestamp()}), 200

    @app.route('/metrics')
    def metrics_endpoint():
        """Prometheus metrics endpoint."""
        monitoring = app.extensions[ORCHESTRATOR_EXTENSION].monitoring
        if isinstance(monitoring, PrometheusMonitoringFacade):
            return monitoring.generate_metrics_output(), 200, {'Content-Type': monitoring.content_type}
        return generate_latest(REGISTRY), 200, {'Content-Type': CONTENT_TYPE_LATEST}


def create_app(
    config_name: Optional[str] = None,
    orchestrator: Optional[SubmissionOrchestrator] = None,
    **config_overrides: Any,
) -> Flask:
    """
    Create the Flask application.

    Args:
        config_name: 'development', 'testing' or 'production' (FLASK_ENV by default)
        orchestrator: Submission orchestrator serving the contact API
        **config_overrides: Flask configuration overrides

    Raises:
        ConfigurationError: If no orchestrator is given or the environment is unknown
    """
    if orchestrator is None:
        raise ConfigurationError(
            "A SubmissionOrchestrator must be provided to create the application",
            error_code='ORCHESTRATOR_REQUIRED',
        )

    config_class = get_config(config_name)
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config.update(config_overrides)

    setup_structured_logging(app.config['LOG_LEVEL'], app.config['LOG_FORMAT'])
    init_request_logging(app)

    app.extensions[ORCHESTRATOR_EXTENSION] = orchestrator

    rate_limiter = Limiter(
        get_remote_address,
        app=app,
        storage_uri=app.config.get('RATELIMIT_STORAGE_URI', 'memory://'),
        headers_enabled=app.config.get('RATELIMIT_HEADERS_ENABLED', True),
        enabled=app.config.get('RATELIMIT_ENABLED', True),
    )
    app.extensions[RATE_LIMITER_EXTENSION] = rate_limiter
    init_contact_api(app, rate_limiter)

    _configure_error_handlers(app)
    _configure_health_and_metrics(app)

    logger.info(
        "Flask application created",
        environment=config_class.get_environment_name(),
        calendar_booking=orchestrator.features.calendar_booking,
        email_fallback=orchestrator.features.email_fallback,
    )
    return app
