from fastapi import status


class SuaGranaException(Exception):
    """Base exception for the SuaGrana API"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationException(SuaGranaException):
    """Raised for business rule violations"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class UnauthorizedException(SuaGranaException):
    """Raised when credentials or tokens are missing or invalid"""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_ERROR"


class ForbiddenException(SuaGranaException):
    """Raised when the user's tenant role does not allow the operation"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTHORIZATION_ERROR"


class NotFoundException(SuaGranaException):
    """Raised when a resource does not exist in the current tenant"""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictException(SuaGranaException):
    """Raised when a resource clashes with an existing one"""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT_ERROR"
