"""Exception taxonomy for the submission subsystem.

Only caller mistakes and unreadable inputs raise. Transport and protocol
failures are reported as ``SubmissionResult`` values (see
``core.models.SubmissionErrorCode``) so a batch loop can keep going.
"""


class IndexNowError(Exception):
    """Base class for all subsystem errors."""


class ConfigError(IndexNowError, ValueError):
    """Missing or invalid parameter, detected before any I/O. Never retry."""


class ValidationError(IndexNowError, ValueError):
    """Malformed credential or input value that cannot be submitted."""


class IoError(IndexNowError, OSError):
    """Sitemap or URL list could not be read."""
