"""Finance backend client."""

from .auth import TokenProvider
from .cancellation import CancellationToken
from .errors import (
    DashboardError,
    DashboardLoadError,
    MutationError,
    RequestCancelled,
    RequestError,
)
from .resource_client import ResourceClient

__all__ = [
    "CancellationToken",
    "DashboardError",
    "DashboardLoadError",
    "MutationError",
    "RequestCancelled",
    "RequestError",
    "ResourceClient",
    "TokenProvider",
]
