"""Custom exception classes for the GeoMelody top-track service."""


class GeoMelodyError(Exception):
    """Base exception for all GeoMelody errors.

    ``status_code`` is the HTTP status the caller-facing layer responds with.
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GeoMelodyError):
    """Raised when the caller supplied an invalid or unknown region."""

    status_code = 400


class MalformedVendorResponseError(GeoMelodyError):
    """Raised when a required vendor field is present but has the wrong shape."""

    pass


class EmptyVendorResultError(GeoMelodyError):
    """Raised when a vendor legitimately has nothing for the query."""

    pass


class TransientFetchError(GeoMelodyError):
    """Raised on network errors, timeouts, non-2xx and vendor error payloads."""

    pass


class CacheUnavailableError(GeoMelodyError):
    """Raised by cache backends on read/write failure. Never surfaced to callers."""

    pass


class ServiceInitializationError(GeoMelodyError):
    """Raised when a service fails to initialize."""

    pass


class ConfigurationError(GeoMelodyError):
    """Raised when there's a configuration error."""

    pass
