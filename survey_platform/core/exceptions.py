"""
Custom Exceptions

Centralized exception definitions for better error handling.
FastAPI automatically converts these to appropriate HTTP responses.
"""
from fastapi import HTTPException, status


class ResourceNotFoundError(HTTPException):
    """Raised when an entity cannot be found."""

    def __init__(self, resource_type: str, resource_id: str = ""):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type} not found: {resource_id}" if resource_id else f"{resource_type} not found"
        )


class DuplicateResourceError(HTTPException):
    """Raised when a write would violate a uniqueness rule."""

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class DatabaseError(HTTPException):
    """
    Raised when a database operation fails.

    Wraps SQLAlchemy errors so the driver message never reaches the client.
    """

    def __init__(self, detail: str = "Database operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class RateLimitExceeded(HTTPException):
    """Raised when rate limit is exceeded."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)}
        )


class InvalidInputError(HTTPException):
    """Raised when input validation fails."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class OperationNotAllowedError(HTTPException):
    """Raised for writes that are structurally forbidden, e.g. editing automatic action classes."""

    def __init__(self, detail: str = "Operation not allowed"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
