"""Weather retrieval exceptions."""


class RetrievalError(Exception):
    """Base exception for weather retrieval failures."""

    status = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(RetrievalError):
    """Missing or malformed location input."""

    status = 400


class ConfigurationError(RetrievalError):
    """Provider credentials are missing or rejected."""

    status = 500


class NotFoundError(RetrievalError):
    """Provider has no data for the requested location."""

    status = 404


class UpstreamError(RetrievalError):
    """Transient or unclassified provider failure."""

    status = 502
