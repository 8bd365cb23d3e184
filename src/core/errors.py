"""
Error taxonomy for the intake pipeline.

Only AbuseRejected and ValidationFailed stop a request. The rest are raised
inside a component and absorbed there, turning into a degraded outcome.
"""


class HiringError(Exception):
    """Base class for every pipeline error."""


class AbuseRejected(HiringError):
    """Honeypot, wrong method, or failed challenge verification."""

    def __init__(self, reason: str):
        super().__init__(f"submission rejected: {reason}")
        self.reason = reason


class ValidationFailed(HiringError):
    """One or more form fields failed validation."""

    def __init__(self, fields: list):
        super().__init__("invalid fields: " + ",".join(fields))
        self.fields = list(fields)


class TemplateMissing(HiringError):
    """The application template PDF does not exist."""


class FontUnavailable(HiringError):
    """The bundled typeface could not be registered; Helvetica is used instead."""


class TemplateImportFailed(HiringError):
    """The template exists but could not be read; a blank page is used instead."""


class TransportFailed(HiringError):
    """SMTP authentication, connection, or protocol failure."""
