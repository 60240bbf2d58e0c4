"""Typed failures raised by services and guards.

Routes never catch these; the exception handlers in ``portfolio_api.api.errors``
render them as the JSON error envelope.
"""

from __future__ import annotations

from typing import List, Union


class AppError(Exception):
    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: Union[str, List[str]] = "") -> None:
        self.message = message or self.error
        super().__init__(message if isinstance(message, str) else "; ".join(message))


class Unauthenticated(AppError):
    status_code = 401
    error = "Unauthorized"


class AlreadyExists(AppError):
    # 401 rather than 409: kept for compatibility with existing clients.
    status_code = 401
    error = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    error = "Forbidden"


class NotFound(AppError):
    status_code = 404
    error = "Not Found"


class ValidationFailed(AppError):
    status_code = 400
    error = "Bad Request"


def not_found(label: str, doc_id: object) -> NotFound:
    return NotFound(f"{label} with ID {doc_id} not found")
