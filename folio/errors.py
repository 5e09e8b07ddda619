"""Error taxonomy shared by services and routers.

Every error carries the HTTP status it maps to, a short label used as the
``error`` field of the JSON body, and a human-readable message. Routers let
these propagate; ``folio.main`` turns them into responses.
"""


class BlogError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    label = "Internal Server Error"

    def __init__(self, message: str, *, headers: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.headers = headers or {}

    def to_dict(self) -> dict[str, str | int]:
        return {"error": self.label, "message": self.message}


class BadRequest(BlogError):
    status_code = 400
    label = "Bad Request"


class ValidationError(BlogError):
    """One or more field constraints failed; message lists all of them."""

    status_code = 400
    label = "Validation Error"

    def __init__(self, errors: list[str]):
        super().__init__(", ".join(errors))
        self.errors = errors


class Unauthorized(BlogError):
    status_code = 401
    label = "Unauthorized"


class Forbidden(BlogError):
    status_code = 403
    label = "Forbidden"


class NotFound(BlogError):
    status_code = 404
    label = "Not Found"


class RequestTimeout(BlogError):
    status_code = 408
    label = "Request Timeout"


class Conflict(BlogError):
    status_code = 409
    label = "Conflict"


class PayloadTooLarge(BlogError):
    status_code = 413
    label = "Request Entity Too Large"


class ContentRejected(BlogError):
    status_code = 422
    label = "Content Rejected"


class RateLimited(BlogError):
    status_code = 429
    label = "Rate Limit Exceeded"

    def __init__(
        self,
        message: str,
        *,
        headers: dict[str, str] | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, headers=headers)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, str | int]:
        body: dict[str, str | int] = dict(super().to_dict())
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


class InternalError(BlogError):
    status_code = 500
    label = "Internal Server Error"


class ServiceUnavailable(BlogError):
    status_code = 503
    label = "Service Unavailable"
