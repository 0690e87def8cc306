"""
errors.py

Error kinds surfaced by the bula pipeline.

Every stage separates two situations:
- the remote service call failed            -> InternalError
- the call worked but the content is unusable -> NotFoundError

The API layer turns these into HTTP responses with a stable
"code" so the mobile app can pick the right message
("retake the photo" vs "service unavailable").
"""

from fastapi import status


class BulaServiceError(Exception):
    """
    Base class for all pipeline errors.

    Attributes:
    - code: machine readable kind (invalid-argument, not-found, internal)
    - status_code: HTTP status used by the API layer
    - message: safe message that can be shown to the end user
    """

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidArgumentError(BulaServiceError):
    """Caller sent missing or malformed input. Never retried."""

    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BulaServiceError):
    """No text, no recognizable name, or no leaflet for the name."""

    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(BulaServiceError):
    """Service, configuration or parsing failure."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
