"""Success envelope shared by every route."""

from typing import Any


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return body
