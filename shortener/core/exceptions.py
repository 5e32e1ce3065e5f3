"""
Custom Exceptions

This module defines custom exceptions for better error handling
and more specific error messages.

Benefits:
- More specific error types for different failure scenarios
- Better error messages for API consumers
- Endpoints map each type to one HTTP status code
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class ShortCodeNotFoundError(URLShortenerException):
    """Raised when a short code is not found in the database."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' not found")


class ShortCodeExpiredError(URLShortenerException):
    """Raised when a short code exists but its expiration time has passed."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short URL '{short_code}' expired")


class CodeAlreadyExists(URLShortenerException):
    """Raised when a caller-specified short code is already taken."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Custom short code '{short_code}' already exists")


class GenerationExhausted(URLShortenerException):
    """Raised when no unique short code could be produced."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique short code after {attempts} attempts")


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class ServiceUnavailableError(URLShortenerException):
    """Raised when a required service is unavailable."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Service '{service_name}' is unavailable")


class CacheUnavailable(ServiceUnavailableError):
    """
    Raised when the rate-limit cache fails or returns no entry.

    Callers must fail closed: treat this as a denial, never as an allowance.
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__("rate-limit cache")
        if reason:
            self.args = (f"Service 'rate-limit cache' is unavailable: {reason}",)
