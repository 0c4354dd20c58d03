"""
Typed application errors.

Use cases raise these; ``facegroup.main`` renders them as ``{"detail": ...}``
with the matching status code.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400

    def __init__(self, message: str = "Bad Request"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)


class DependencyFailureError(AppError):
    status_code = 502

    def __init__(self, message: str = "Upstream dependency failed"):
        super().__init__(message)


class FaceSearchError(DependencyFailureError):
    """A single similarity query failed; callers treat it as "no neighbours"."""


class CollectionNotFoundError(DependencyFailureError):
    """The oracle collection is missing; the whole run must stop."""


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
