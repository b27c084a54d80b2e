# app/core/errors.py
#
# Domain errors raised by the service layer.
# app/main.py maps each one to an HTTP status code.


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed required input."""

    status_code = 400


class ImportFileError(ValidationError):
    """The uploaded spreadsheet is empty or cannot be read."""


class ConflictError(AppError):
    """Uniqueness violation on a named field (email or tax_id)."""

    status_code = 409

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class NotFoundError(AppError):
    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class TransientStoreError(AppError):
    """Unexpected storage failure. The message is safe to show to callers."""

    status_code = 500
