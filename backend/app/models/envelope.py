"""Error response envelope."""

from pydantic import BaseModel


class ApiError(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    field: str | None = None


def error_response(errors: list[ApiError]) -> dict:
    """Build an error envelope dict. Carries no partial data."""
    return {
        "status": "error",
        "data": None,
        "errors": [e.model_dump() for e in errors],
        "meta": {},
    }
