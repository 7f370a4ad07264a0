"""Domain-specific exceptions."""

from __future__ import annotations

import math


class ServiceError(Exception):
    pass


class TransportError(ServiceError):
    """Base class for failures raised by the transport client."""


class RateLimitExceeded(TransportError):
    def __init__(self, endpoint: str, retry_after: float) -> None:
        self.endpoint = endpoint
        self.retry_after = max(0.0, retry_after)
        super().__init__(
            f"Rate limit exceeded. Please wait {self.retry_after_seconds} seconds."
        )

    @property
    def retry_after_seconds(self) -> int:
        return math.ceil(self.retry_after)


class HttpError(TransportError):
    def __init__(self, status: int, url: str, reason: str = "") -> None:
        self.status = status
        self.url = url
        self.reason = reason
        super().__init__(f"API Error: {status} {reason}".rstrip())


class NetworkError(TransportError):
    pass


class ProviderResponseError(ServiceError):
    """Raised when a provider payload does not have the expected shape."""


class NoApiKeyConfigured(ServiceError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"No {provider} API key configured.")


class PartialEnrichmentFailure(ServiceError):
    """Metadata enrichment failed for a single title."""

    def __init__(self, title_id: str, cause: Exception) -> None:
        self.title_id = title_id
        self.cause = cause
        super().__init__(f"Enrichment failed for title {title_id}: {cause}")


__all__ = [
    "HttpError",
    "NetworkError",
    "NoApiKeyConfigured",
    "PartialEnrichmentFailure",
    "ProviderResponseError",
    "RateLimitExceeded",
    "ServiceError",
    "TransportError",
]
