"""
Unit tests for the Prometheus monitoring facade.

Each test uses its own CollectorRegistry so counters start from zero.
"""

import pytest
from prometheus_client import CollectorRegistry

from src.integrations.contracts import MonitoringFacade
from src.monitoring.metrics import PrometheusMonitoringFacade


class TestPrometheusMonitoringFacade:

    def test_satisfies_monitoring_contract(self, prometheus_monitoring):
        assert isinstance(prometheus_monitoring, MonitoringFacade)

    def test_record_api_call(self, prometheus_monitoring):
        registry = prometheus_monitoring.registry
        prometheus_monitoring.record_api_call('calendar/events', 'POST', 120.0, 201, True)
        prometheus_monitoring.record_api_call('calendar/events', 'POST', 80.0, 503, False, error='busy')
        prometheus_monitoring.record_api_call('calendar/events', 'POST', 90.0, 503, False, error='busy')

        assert registry.get_sample_value('contact_calendar_api_requests_total', {
            'endpoint': 'calendar/events', 'method': 'POST', 'status_code': '201', 'outcome': 'success',
        }) == 1.0
        assert registry.get_sample_value('contact_calendar_api_requests_total', {
            'endpoint': 'calendar/events', 'method': 'POST', 'status_code': '503', 'outcome': 'failure',
        }) == 2.0
        assert registry.get_sample_value('contact_calendar_api_duration_seconds_count', {
            'endpoint': 'calendar/events', 'method': 'POST',
        }) == 3.0

    def test_record_form_submission(self, prometheus_monitoring):
        registry = prometheus_monitoring.registry
        prometheus_monitoring.record_form_submission('appointment', 350.0, True)
        prometheus_monitoring.record_form_submission('appointment', 12.0, False, ['DATE_IN_PAST'])

        assert registry.get_sample_value('contact_form_submissions_total',
                                         {'kind': 'appointment', 'outcome': 'success'}) == 1.0
        assert registry.get_sample_value('contact_form_submissions_total',
                                         {'kind': 'appointment', 'outcome': 'failure'}) == 1.0
        assert registry.get_sample_value('contact_form_submission_errors_total',
                                         {'kind': 'appointment', 'error': 'DATE_IN_PAST'}) == 1.0
        assert registry.get_sample_value('contact_form_submission_duration_seconds_sum',
                                         {'kind': 'appointment'}) == pytest.approx(0.362)

    def test_record_security_event(self, prometheus_monitoring):
        prometheus_monitoring.record_security_event('rate_limit_exceeded', 'medium', {'path': '/x'})
        assert prometheus_monitoring.registry.get_sample_value(
            'contact_security_events_total', {'event': 'rate_limit_exceeded', 'severity': 'medium'},
        ) == 1.0

    def test_metrics_output(self, prometheus_monitoring):
        prometheus_monitoring.record_form_submission('message', 5.0, True)
        output = prometheus_monitoring.generate_metrics_output()

        assert b'contact_form_submissions_total' in output
        assert prometheus_monitoring.content_type.startswith('text/plain')

    def test_separate_registries_do_not_collide(self):
        first = PrometheusMonitoringFacade(registry=CollectorRegistry())
        second = PrometheusMonitoringFacade(registry=CollectorRegistry())
        first.record_security_event('login_anomaly', 'low')

        assert second.registry.get_sample_value(
            'contact_security_events_total', {'event': 'login_anomaly', 'severity': 'low'},
        ) is None
