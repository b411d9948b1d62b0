"""
TeraBox SDK - Python client for the unofficial TeraBox web API.

This package provides:
- Quota retrieval and directory listing
- Single-block upload and direct download links
- Batched move/rename and delete
- HLS playlists for video streaming
- Sync and async/await clients
- A CLI for scripting
"""

from loguru import logger

__version__ = "1.0.0"

from .auth import Credentials
from .client import TeraBoxClient
from .async_client import AsyncTeraBoxClient
from .models import (
    DirEntry,
    AsyncDirEntry,
    Quota,
    DownloadLink,
    HomeInfo,
    Signature,
    StreamQuality,
)
from .exceptions import (
    TeraBoxError,
    ConfigurationError,
    ValidationError,
    ApiError,
    ProtocolError,
    UploadError,
    DownloadError,
    NetworkError,
)

# silent unless the application calls logger.enable("terabox_sdk")
logger.disable("terabox_sdk")

__all__ = [
    # Main clients
    "TeraBoxClient",
    "AsyncTeraBoxClient",
    "Credentials",

    # Data models
    "DirEntry",
    "AsyncDirEntry",
    "Quota",
    "DownloadLink",
    "HomeInfo",
    "Signature",
    "StreamQuality",

    # Exceptions
    "TeraBoxError",
    "ConfigurationError",
    "ValidationError",
    "ApiError",
    "ProtocolError",
    "UploadError",
    "DownloadError",
    "NetworkError",
]
