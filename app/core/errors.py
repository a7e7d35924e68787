"""
Domain errors raised by the repository facade and the AI client.

Each error carries the HTTP status the API layer renders it with, so routers
can simply let them propagate to the handler registered in ``app.main``.
"""


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "error": type(self).__name__}


class NotFound(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 422

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))

    def to_dict(self) -> dict:
        return {**super().to_dict(), "errors": self.errors}


class StoreReadFailure(AppError):
    status_code = 503


class StoreWriteFailure(AppError):
    status_code = 503


class AIRequestFailed(AppError):
    """Network failure, non-2xx status or an unreadable body from the AI endpoint."""
    status_code = 502

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status

    def to_dict(self) -> dict:
        return {**super().to_dict(), "upstream_status": self.upstream_status}


class AIResponseMalformed(AppError):
    """The endpoint answered 2xx but produced no usable candidate text."""
    status_code = 502
