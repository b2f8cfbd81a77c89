from __future__ import annotations

from typing import Any

METHOD_NOT_ALLOWED_TEXT = "Method Not Allowed"
MSG_NO_IMAGE = "No image data received."
MSG_INVALID_IMAGE = "Image data is not a valid image."
MSG_SERVER_FAILED = "Server processing failed"


class ProxyError(Exception):
    """Tagged failure raised by one pipeline step and mapped to an HTTP response."""

    kind = "proxy_error"

    def __init__(self, status_code: int, error: str, details: str | None = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    @property
    def payload(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class MissingInput(ProxyError):
    kind = "missing_input"

    def __init__(self):
        super().__init__(400, MSG_NO_IMAGE)


class InvalidImage(ProxyError):
    kind = "invalid_image"

    def __init__(self):
        super().__init__(400, MSG_INVALID_IMAGE)


class PayloadTooLarge(ProxyError):
    kind = "payload_too_large"

    def __init__(self, limit: int):
        super().__init__(413, f"Image payload exceeds limit {limit} bytes")
        self.limit = limit


class UpstreamFailure(ProxyError):
    kind = "upstream_failure"

    def __init__(self, status_code: int, text: str):
        super().__init__(status_code, f"OpenAI Error: {status_code}", text)


class UnexpectedFailure(ProxyError):
    kind = "unexpected_failure"

    def __init__(self, message: str):
        super().__init__(500, MSG_SERVER_FAILED, message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "UnexpectedFailure":
        return cls(str(exc) or exc.__class__.__name__)
