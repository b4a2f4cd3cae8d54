"""Typed application errors carrying an HTTP status.

Every domain failure is raised as an ``AppError`` (or one of its subclasses)
and serialized by the single global handler in ``rxreturns.api.app`` as
``{"status": "fail" | "error", "message": ...}``.
"""


class AppError(Exception):
    """Domain error with an HTTP status code and a caller-facing message."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict[str, str]:
        return {"status": self.status, "message": self.message}


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ConfigError(AppError):
    status_code = 500
