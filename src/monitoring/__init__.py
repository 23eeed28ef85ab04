"""
Monitoring Package

Structured logging (structlog) and Prometheus metrics (prometheus-client).
"""

from src.monitoring.logging import init_request_logging, setup_structured_logging
from src.monitoring.metrics import PrometheusMonitoringFacade

__all__ = [
    'init_request_logging',
    'setup_structured_logging',
    'PrometheusMonitoringFacade',
]
