"""
Integration layer for the downstream collaborators of the submission pipeline.

Modules:
- contracts: ``CalendarClient``, ``EmailSender`` and ``MonitoringFacade`` protocols
  plus the calendar event payload types
- exceptions: error taxonomy (``ErrorKind``, ``ErrorSeverity``, ``ErrorInfo``) and
  collaborator exceptions
- classifier: ``ErrorClassifier`` and its bounded ``ErrorLog``
- retry: ``RetryConfig`` and the tenacity-based ``RetryEngine``
"""
