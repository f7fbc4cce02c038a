"""Exception hierarchy for backend access and dashboard loading."""

from typing import Optional

BODY_PREVIEW_LENGTH = 100


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class RequestError(DashboardError):
    """A backend request failed or returned a non-success status."""

    def __init__(self, message: str, status: Optional[int] = None, url: str = "", body: str = ""):
        self.status = status
        self.url = url
        self.body = (body or "")[:BODY_PREVIEW_LENGTH]
        super().__init__(message)


class RequestCancelled(DashboardError):
    """The caller cancelled the request before its result was delivered."""


class DashboardLoadError(DashboardError):
    """A critical fetch failed; the view cannot be rendered."""

    def __init__(self, view: str, message: str):
        self.view = view
        super().__init__(message)


class MutationError(DashboardError):
    """A create/update/delete request was rejected or could not be sent."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(message)
