"""
Registration error taxonomy

Every error a registration can surface maps to one of these, each carrying
the HTTP status and the short message shown to the caller.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError


class RegistrationError(Exception):
    """Base class for errors surfaced by the admin registration flow"""

    status_code: int = 500
    stage: Optional[str] = None
    default_message: str = "Internal server error. Please try again."

    def __init__(self, message: Optional[str] = None, stage: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.stage = stage or self.stage
        self.field = field
        super().__init__(self.message)


class RequestValidationFailed(RegistrationError):
    status_code = 400
    stage = "validate"
    default_message = "Invalid registration request"


class UnverifiedPhoneError(RegistrationError):
    status_code = 400
    stage = "verify_phone"
    default_message = "Phone number has not been verified. Please verify your phone number first."


class ConflictError(RegistrationError):
    status_code = 409
    default_message = "Resource already exists"


class NamespaceExistsError(ConflictError):
    stage = "create_schema"
    default_message = "Schema name already exists. Please try again."

    def __init__(self, schema_name: str):
        super().__init__(field="namespace")
        self.schema_name = schema_name


class NamespaceCreationError(RegistrationError):
    stage = "create_schema"
    default_message = "Failed to create schema. Please contact system administrator."


class StructureApplicationError(RegistrationError):
    stage = "apply_structure"
    default_message = "Failed to set up schema structure. Please contact system administrator."

    def __init__(self, detail: str):
        super().__init__()
        self.detail = detail

    def __str__(self):
        return f"{self.message} ({self.detail})"


class ConnectivityError(RegistrationError):
    status_code = 503
    stage = "connect"
    default_message = "Database connection failed. Please check your database configuration."


class DeliveryError(Exception):
    """Confirmation email could not be delivered; never fails a registration"""


def classify_error(exc: Exception) -> RegistrationError:
    """Map an exception raised while provisioning to a registration error"""
    if isinstance(exc, RegistrationError):
        return exc

    if isinstance(exc, IntegrityError):
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        if "schema_name" in detail:
            return ConflictError("Schema name already exists. Please try again.", field="namespace")
        if "email" in detail:
            return ConflictError("Admin with this email already exists", field="email")
        return ConflictError()

    if isinstance(exc, (OperationalError, InterfaceError, ConnectionError)):
        return ConnectivityError()

    return RegistrationError()
