# app/exceptions.py
"""
Error taxonomy shared by the services and the HTTP layer.
Handlers in app/main.py map these to 403 / 503 responses.
"""

from typing import Optional


class FleetError(Exception):
    """Base class for every error raised by the fleet services."""


class FetchError(FleetError):
    """Backend/network failure while retrieving one entity slice."""

    def __init__(self, entity: str, cause: Optional[BaseException] = None):
        self.entity = entity
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to fetch {entity}{detail}")


class ScopeResolutionError(FleetError):
    """The user holds no usable subsidiary grant. Access is denied, never widened."""

    def __init__(self, user_id, reason: str = "no active subsidiary access"):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"User {user_id}: {reason}")
