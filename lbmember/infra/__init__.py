"""Internal machinery — HTTP transport."""

from .http import (
    APIKeyAuth,
    Auth,
    BearerAuth,
    HttpClient,
    kind_for_status,
)

__all__ = [
    "APIKeyAuth",
    "Auth",
    "BearerAuth",
    "HttpClient",
    "kind_for_status",
]
