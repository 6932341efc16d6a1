"""Errors raised by the Neon client.

Transport failures (connection errors, timeouts) are not wrapped: they surface as the
``httpx.TransportError`` raised by the transport. Everything else derives from ``NeonError``.
"""

import json
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError, field_validator


class NeonError(Exception):
    """Base exception for all errors raised by this package."""


class ClientConfigError(NeonError):
    """The client could not be constructed, e.g. because no API key could be resolved."""


class RequestEncodeError(NeonError):
    """The request payload could not be serialized to JSON. No request was sent."""


class ResponseDecodeError(NeonError):
    """A successful response body could not be decoded into the expected type."""


class ErrorResponse(BaseModel):
    """The error body returned by the Neon API for non-2xx responses.

    :param code: An API specific error code. Frequently empty.
    :param message: A human readable description of the failure.
    """

    code: str = ""
    message: str = ""

    @field_validator("code", "message", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v


class APIError(NeonError):
    """A failed API call: the HTTP status code plus the decoded ``{code, message}`` body.

    No retry classification is attached. Callers decide what to do based on ``http_code``.
    """

    def __init__(self, http_code: int, code: str = "", message: str = "") -> None:
        self.http_code = http_code
        self.code = code
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"[HTTP Code: {self.http_code}][Error Code: {self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"APIError(http_code={self.http_code!r}, code={self.code!r}, "
            f"message={self.message!r})"
        )

    def error_response(self) -> ErrorResponse:
        return ErrorResponse(code=self.code, message=self.message)

    def to_response(self, request: Optional[httpx.Request] = None) -> httpx.Response:
        """Render this error as the HTTP response the API would have sent for it."""

        return httpx.Response(
            status_code=self.http_code,
            headers={"Content-Type": "application/json"},
            content=self.error_response().model_dump_json().encode("utf-8"),
            request=request,
        )


def convert_error_response(response: httpx.Response) -> APIError:
    """Decode a non-2xx response into an ``APIError``. The response status code is always kept,
    even when the body cannot be read or parsed.
    """

    try:
        content = response.read()
    except (httpx.StreamError, httpx.TransportError):
        return APIError(response.status_code, message="cannot read response bytes")

    try:
        body = ErrorResponse.model_validate(json.loads(content))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        return APIError(response.status_code, message=str(e))

    return APIError(response.status_code, code=body.code, message=body.message)
