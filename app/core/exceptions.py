# app/core/exceptions.py

from fastapi import HTTPException, status

# Base Exception
class BaseAPIException(HTTPException):
    """Base class for all custom API exceptions."""
    def __init__(self, status_code: int, detail: str, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


# Authentication & Authorization Exceptions
class UnauthorizedAccessException(BaseAPIException):
    """Exception raised for unauthorized access attempts."""
    def __init__(self, detail="Access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class InvalidRoomPasswordException(UnauthorizedAccessException):
    """Exception raised when a room password is missing or does not match."""
    def __init__(self, detail="Invalid room password"):
        super().__init__(detail=detail)

class InvalidTokenException(BaseAPIException):
    """Exception raised when a token is invalid."""
    def __init__(self, detail="Invalid token"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


# User Exceptions
class UserNotFoundException(BaseAPIException):
    """Exception raised when a user is not found."""
    def __init__(self, detail="User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# Room Exceptions
class RoomNotFoundException(BaseAPIException):
    """Exception raised when a room is not found."""
    def __init__(self, detail="Room not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# Database & System Exceptions
class InternalServerErrorException(BaseAPIException):
    """Exception raised for internal server errors."""
    def __init__(self, detail="Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
