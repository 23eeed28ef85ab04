"""
Business Logic Package

Modules:
- models: pydantic form models and ``SubmissionResult``
- validators: ``BusinessHoursValidator`` and ``TimeSlot``
- messages: user-facing message catalog
- exceptions: business rule and configuration exceptions
- utils: operator email formatting
- services: ``SubmissionOrchestrator``

Import from the modules directly, e.g.
``from src.business.services import SubmissionOrchestrator``.
"""
