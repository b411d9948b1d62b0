"""
Custom exceptions for TeraBox SDK.

This module defines all the exception classes used throughout the SDK
for proper error handling and user feedback.
"""

from typing import Optional


class TeraBoxError(Exception):
    """Base exception for all TeraBox SDK errors."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(TeraBoxError):
    """Raised when the credential bundle is missing or malformed."""

    def __init__(self, message: str = "Invalid configuration", config_key: str = None, **kwargs):
        super().__init__(message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key


class ValidationError(TeraBoxError):
    """Raised when an operation receives an argument of the wrong shape."""

    def __init__(self, message: str = "Validation failed", field: str = None, **kwargs):
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)
        self.field = field


class ApiError(TeraBoxError):
    """Raised when the upstream envelope reports a non-zero ``errno``."""

    def __init__(self, errno: int, errmsg: Optional[str] = None, **kwargs):
        message = f"{errno} {errmsg or ''}".rstrip()
        super().__init__(message, error_code="API_ERROR", **kwargs)
        self.errno = errno
        self.errmsg = errmsg


class ProtocolError(TeraBoxError):
    """Raised when a response lacks a field the protocol requires."""

    def __init__(self, message: str = "Unexpected response", error_code: str = "PROTOCOL_ERROR", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class UploadError(ProtocolError):
    """Raised when the binary transfer step returns no block checksum."""

    def __init__(self, message: str = "Unable to upload file", filename: str = None, **kwargs):
        super().__init__(message, error_code="UPLOAD_ERROR", **kwargs)
        self.filename = filename


class DownloadError(ProtocolError):
    """Raised when a successful download request yields no links."""

    def __init__(self, message: str = "Unable to fetch download link", file_ids: list = None, **kwargs):
        super().__init__(message, error_code="DOWNLOAD_ERROR", **kwargs)
        self.file_ids = file_ids or []


class NetworkError(TeraBoxError):
    """Raised when network operations fail."""

    def __init__(self, message: str = "Network operation failed", status_code: int = None, **kwargs):
        super().__init__(message, error_code="NETWORK_ERROR", **kwargs)
        self.status_code = status_code
