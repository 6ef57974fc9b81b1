"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Each exception maps to exactly one HTTP status in the API layer:
- 400: InvalidURLError, InvalidExpiryError, InvalidShortCodeError, ShortCodeTakenError
- 401: InvalidTokenError
- 403: ForbiddenError
- 404: ShortCodeNotFoundError
- 500: CodeGenerationExhaustedError, StoreUnavailableError
- 503: ServiceUnavailableError

Expired and missing links on the redirect path are not exceptions; see
shortlinks.services.redirect_service.ResolutionStatus.
"""


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidExpiryError(URLShortenerException):
    """Raised when an expiration timestamp is unparseable or not in the future."""

    def __init__(self, value, reason: str = "Invalid expiration"):
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value}")


class InvalidShortCodeError(URLShortenerException):
    """Raised when a requested custom code is outside the allowed alphabet or length."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(
            f"Invalid short code '{short_code}'. Use 1-32 characters from [A-Za-z0-9_-]"
        )


class ShortCodeTakenError(URLShortenerException):
    """Raised when a custom short code is already in use."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' is already taken")


class CodeGenerationExhaustedError(URLShortenerException):
    """Raised when every generated code collided with an existing one."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique short code after {attempts} attempts")


class ShortCodeNotFoundError(URLShortenerException):
    """Raised when a short code is not found in the database."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' not found")


class ForbiddenError(URLShortenerException):
    """Raised when an identity acts on a short code it does not own."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Not allowed to modify short code '{short_code}'")


class StoreUnavailableError(URLShortenerException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class InvalidTokenError(URLShortenerException):
    """Raised when the Auth Service rejects a bearer token or none was sent."""

    def __init__(self, reason: str = "Invalid or missing bearer token"):
        self.reason = reason
        super().__init__(reason)


class ServiceUnavailableError(URLShortenerException):
    """Raised when a required service is unavailable."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Service '{service_name}' is unavailable")
