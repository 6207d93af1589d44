"""
Service-layer exceptions.

Services raise these when a business rule fails; the FastAPI app turns
any ``ServiceError`` into a JSON response using the class's
``status_code`` and ``code`` so API consumers can tell the kinds apart.
"""

USER_ALREADY_EXIST = "A user with this email already exists"
EMAIL_NOT_FOUND = "Email not found"
USER_DOES_NOT_EXIST = "User does not exist"
PRODUCT_NOT_FOUND = "Product not found"
PROVIDED_WRONG_PASSWORD = "Provided password is incorrect"
PASSWORD_TOO_LONG = "Password must be at most 72 bytes when UTF-8 encoded"


class ServiceError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AlreadyExists(ServiceError):
    status_code = 409
    code = "already_exists"


class UserAlreadyExists(AlreadyExists):
    """Registration attempted with an email that is already taken."""

    def __init__(self, message: str = USER_ALREADY_EXIST) -> None:
        super().__init__(message)


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"


class EmailNotFound(NotFound):
    def __init__(self, message: str = EMAIL_NOT_FOUND) -> None:
        super().__init__(message)


class UserNotFound(NotFound):
    def __init__(self, message: str = USER_DOES_NOT_EXIST) -> None:
        super().__init__(message)


class ProductNotFound(NotFound):
    def __init__(self, message: str = PRODUCT_NOT_FOUND) -> None:
        super().__init__(message)


class InvalidPassword(ServiceError):
    """A plaintext password the codec cannot hash."""

    status_code = 422
    code = "invalid_password"

    def __init__(self, message: str = PASSWORD_TOO_LONG) -> None:
        super().__init__(message)


class InvalidCredential(ServiceError):
    """Password verification failed at login."""

    status_code = 401
    code = "invalid_credential"

    def __init__(self, message: str = PROVIDED_WRONG_PASSWORD) -> None:
        super().__init__(message)
