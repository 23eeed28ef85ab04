"""
Contact submission service.

Turns website appointment and message submissions into a durable outcome
despite an unreliable calendar API: business hours validation, failure
classification, bounded retries, email fallback and monitoring.

Packages:
- business: form models, validators, user messages and the orchestrator
- integrations: collaborator contracts, error taxonomy, classifier and retry engine
- monitoring: structlog setup and the Prometheus monitoring facade
- config: environment-driven settings
- blueprints: Flask contact API
- utils: date and time helpers

The Flask application factory lives in ``src.app``.
"""

__version__ = '1.0.0'
