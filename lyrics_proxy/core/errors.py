"""
Error types raised by the proxy pipeline and the upstream client.
Each carries the HTTP status the pipeline answers with.
"""

from typing import Optional


class ProxyError(Exception):
    """Base class for errors that map directly to an HTTP response."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """A required setting (e.g. the upstream token) is missing."""
    status_code = 500


class AuthError(ProxyError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class RateLimitError(ProxyError):
    status_code = 429

    def __init__(self, message: str = "Too Many Requests"):
        super().__init__(message)


class NotFoundError(ProxyError):
    status_code = 404

    def __init__(self, message: str = "Not found. Use /song/{id} or /artist/{id}"):
        super().__init__(message)


class MethodNotAllowedError(ProxyError):
    status_code = 405

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class UpstreamError(ProxyError):
    """
    Non-2xx (or unreadable) response from the Genius API.
    Surfaced to the client as a 500 with the upstream status in the message.
    """
    status_code = 500

    def __init__(self, upstream_status: int, reason: str, message: Optional[str] = None):
        self.upstream_status = upstream_status
        self.reason = reason
        super().__init__(message or f"Genius API error: {upstream_status} {reason}")
