"""
Error Taxonomy

Exceptions raised by the course monitor. Only ConfigurationError is allowed
to end the process; every other error ends the current cycle.
"""


class MonitorError(Exception):
    """Base class for all course monitor errors."""


class ConfigurationError(MonitorError):
    """Required configuration is missing or malformed."""

    def __init__(self, message, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


class AuthenticationError(MonitorError):
    """Login was rejected or the login page is still shown after submitting."""


class ExtractionError(MonitorError):
    """The content listing could not be read from the rendered page."""


class NotificationError(MonitorError):
    """The webhook sink refused an alert or could not be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(MonitorError):
    """A persisted document could not be written."""
