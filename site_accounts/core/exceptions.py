"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppException):
    """Missing or malformed required input."""

    def __init__(self, message: str = "Validation error", details: dict | None = None):
        """Initialize with 422 status code and optional per-field details."""
        super().__init__(message, status_code=422)
        self.details = details or {}


class DuplicateEmailError(AppException):
    """An account with this email already exists."""

    def __init__(self, message: str = "This email is already registered"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class UserNotFoundError(AppException):
    """No account matches the lookup."""

    def __init__(self, message: str = "User does not exist"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class InvalidCredentialsError(AppException):
    """The supplied password does not match."""

    def __init__(self, message: str = "Incorrect password"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class NotAuthenticatedError(AppException):
    """The operation needs an active session."""

    def __init__(self, message: str = "User is not logged in"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class FederatedLoginError(AppException):
    """Third-party login failed. Never carries the underlying cause."""

    def __init__(self, message: str = "Google login failed, please try again later"):
        """Initialize with 502 status code."""
        super().__init__(message, status_code=502)


class ProviderError(AppException):
    """A hosted identity or document service call failed."""

    def __init__(self, message: str, code: str | None = None, status_code: int = 400):
        """Initialize with the provider's error code."""
        super().__init__(message, status_code=status_code)
        self.code = code


class UnsupportedOperationError(AppException):
    """The configured account backend does not implement this operation."""

    def __init__(self, message: str = "Operation not supported by this account backend"):
        """Initialize with 501 status code."""
        super().__init__(message, status_code=501)
