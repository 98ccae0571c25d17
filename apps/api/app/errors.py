"""Application exception types."""

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(error=message)
        super().__init__(message)


def not_authorized() -> ApiError:
    """Uniform rejection for every bearer-token failure."""
    return ApiError(status_code=401, message="Not authorized")


__all__ = ["ApiError", "not_authorized"]
