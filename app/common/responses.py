"""Standard API response formats."""
from typing import Any


def success_response(data: Any) -> dict[str, Any]:
    """Create a success response."""
    return {"success": True, "data": data}


def error_response(
    error: str,
    message: str | None = None,
    data: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Create an error response."""
    response = {"success": False, "error": error}
    if message:
        response["message"] = message
    if data:
        response["data"] = data
    return response
