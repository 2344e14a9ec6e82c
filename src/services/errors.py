"""
Service error taxonomy

Every storage failure is converted to one of these before it leaves the
service layer. utils.error_handling maps them to HTTP responses.
"""

from typing import Optional


class UsuariosError(Exception):
    """Base class for errors raised by the usuarios service"""

    status_code: int = 500
    category: str = "internal_error"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def detail(self) -> Optional[str]:
        """Text of the underlying storage error, if any"""
        return str(self.cause) if self.cause is not None else None


class ValidationError(UsuariosError):
    """Incomplete or malformed client input, detected before any storage call"""

    status_code = 400
    category = "validation_error"


class NotFound(UsuariosError):
    """No record matches the requested id_expediente"""

    status_code = 404
    category = "not_found"


class InternalError(UsuariosError):
    """Storage-layer failure or unexpected affected-row count"""

    status_code = 500
    category = "internal_error"
