"""
Inventory Server - Error Taxonomy
Erros de validacao local, de acesso a dados e de servicos externos
"""
from typing import Dict, Optional


class AppError(Exception):
    """Base error carrying the HTTP status it maps to."""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message}


# ============================================
# VALIDACAO (local ao formulario)
# ============================================

class FieldError(AppError):
    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class RequiredFieldError(FieldError):
    pass


class InvalidFormatError(FieldError):
    pass


class ClientFormError(AppError):
    """All field errors found in one validation pass."""
    status_code = 422

    def __init__(self, errors: Dict[str, FieldError]):
        super().__init__("Invalid client form")
        self.errors = errors

    @property
    def messages(self) -> Dict[str, str]:
        return {field: err.message for field, err in self.errors.items()}

    def to_dict(self) -> dict:
        return {"error": self.message, "fields": self.messages}


# ============================================
# ACESSO A DADOS / NEGOCIO
# ============================================

class UnauthorizedError(AppError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ValidationError(AppError):
    status_code = 400


class ConfigurationError(AppError):
    status_code = 500


# ============================================
# SERVICOS EXTERNOS
# ============================================

class ExternalServiceError(AppError):
    """Third-party failure; status_code is the upstream status verbatim."""
    status_code = 502
