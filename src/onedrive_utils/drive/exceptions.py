"""OneDrive API exceptions and Graph error decoding."""

from __future__ import annotations

import json

# Microsoft Graph error responses and resource types
# https://learn.microsoft.com/en-us/graph/errors
ERROR_STATUS_CODES = frozenset(
    {
        400, 401, 403, 404, 405, 406, 409, 410, 411, 412, 413,
        415, 416, 422, 423, 429, 500, 501, 503, 504, 507, 509,
    }
)  # fmt: skip


def is_error_status(status_code: int) -> bool:
    """Check if a status code is a documented Graph error response."""
    return status_code in ERROR_STATUS_CODES


class OneDriveError(Exception):
    """Base exception for OneDrive API errors."""

    pass


class TransportError(OneDriveError):
    """Raised when the request could not be sent or the response not read."""

    pass


class DecodeError(OneDriveError, ValueError):
    """Raised when a response body is not the expected JSON."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class GraphAPIError(OneDriveError):
    """Raised when Microsoft Graph returns a structured error response."""

    def __init__(
        self,
        status_code: int,
        code: str = "",
        message: str = "",
        request_id: str = "",
        date: str = "",
    ):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.request_id = request_id
        self.date = date
        super().__init__(
            f"Code: {code} Message: {message} RequestId: {request_id} Date: {date}"
        )

    @classmethod
    def from_response(cls, status_code: int, body: bytes) -> GraphAPIError:
        """Decode a Graph error body.

        Body shape::

            {"error": {"code": ..., "message": ...,
                       "innerError": {"request-id": ..., "date": ...}}}

        Raises:
            DecodeError: If the body is not valid JSON.
        """
        try:
            data = json.loads(body)
        except ValueError as e:
            raise DecodeError(
                f"HTTP {status_code} with undecodable error body: {e}",
                status_code=status_code,
            ) from e

        error = data.get("error") if isinstance(data, dict) else None
        if not isinstance(error, dict):
            return cls(status_code)

        inner = error.get("innerError")
        if not isinstance(inner, dict):
            inner = {}
        return cls(
            status_code,
            code=str(error.get("code") or ""),
            message=str(error.get("message") or ""),
            request_id=str(inner.get("request-id") or ""),
            date=str(inner.get("date") or ""),
        )
