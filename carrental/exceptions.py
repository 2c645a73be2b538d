"""
Error taxonomy shared by services and routers.
Every error is an HTTPException so FastAPI renders it as {"detail": ...}.
"""

from fastapi import HTTPException, status


class AppError(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class InvalidInputError(AppError):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class NotFoundError(AppError):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(AppError):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class IllegalStateTransitionError(AppError):
    def __init__(self, detail: str = "Operation not allowed in current state"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class EntityValidationError(AppError):
    """An entity invariant was violated. The message is returned verbatim."""

    def __init__(self, detail: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class AuthenticationError(AppError):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class PermissionDeniedError(AppError):
    def __init__(self, detail: str = "Access denied"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)
