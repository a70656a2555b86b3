from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR      = "VALIDATION_ERROR"
    INVALID_INPUT         = "INVALID_INPUT"
    UNAUTHORIZED          = "UNAUTHORIZED"
    TOKEN_EXPIRED         = "TOKEN_EXPIRED"
    FORBIDDEN             = "FORBIDDEN"
    NOT_FOUND             = "NOT_FOUND"
    CONFLICT              = "CONFLICT"
    REFERENTIAL_CONFLICT  = "REFERENTIAL_CONFLICT"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })
        self.message    = message
        self.error_code = error_code


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class InvalidInputException(AppException):
    def __init__(self, message: str = "Invalid input", field: str | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_INPUT, field=field)


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class ConflictException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.CONFLICT, field=field)


class ReferentialConflictException(AppException):
    def __init__(self, resource: str = "Record"):
        super().__init__(
            status.HTTP_409_CONFLICT,
            f"Cannot delete {resource.lower()} with existing trips",
            ErrorCode.REFERENTIAL_CONFLICT,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# DATABASE CONSTRAINT VIOLATIONS
# ═══════════════════════════════════════════════════════════════════════════════
# SQLSTATE class 23 codes reported by psycopg2 as ``pgcode``.
_PG_UNIQUE_VIOLATION      = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"


def from_integrity_error(exc) -> AppException:
    """
    Map a SQLAlchemy ``IntegrityError`` a service did not translate itself:
    unique violation -> Conflict, foreign key violation -> ReferentialConflict,
    anything else (NOT NULL, CHECK) -> InvalidInput.
    """
    orig = getattr(exc, "orig", exc)
    pgcode = getattr(orig, "pgcode", None)
    text = str(orig).upper()

    if pgcode == _PG_UNIQUE_VIOLATION or "UNIQUE" in text:
        return ConflictException("The request conflicts with existing data")
    if pgcode == _PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY" in text:
        return AppException(
            status.HTTP_409_CONFLICT,
            "The record is still referenced by other data",
            ErrorCode.REFERENTIAL_CONFLICT,
        )
    return InvalidInputException("The request contains invalid or missing values")
