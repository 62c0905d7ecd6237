"""Service-layer exceptions. Cold start and empty candidate pools are not errors."""


class DJServiceError(Exception):
    """Base class for errors surfaced to callers of the DJ service."""

    status_code = 500
    retryable = False


class CatalogError(DJServiceError):
    """A track catalog request failed."""

    status_code = 502


class ProviderUnavailableError(CatalogError):
    """Every catalog mirror failed after retries. Callers may retry later."""

    status_code = 503
    retryable = True


class TrackNotFoundError(CatalogError):
    status_code = 404


class AdvisorError(Exception):
    """The session advisor produced no usable parameters. Always handled inside the service."""
