"""
Utility functions for TeraBox SDK.

This module provides the helpers shared by the sync and async clients:
envelope checking, argument normalization, request body encoding and
size formatting.
"""

import io
import json
import math
import posixpath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .exceptions import ApiError, ProtocolError, ValidationError
from .models import DirEntry, StreamQuality


def check_response(data: Any) -> Dict[str, Any]:
    """
    Raise ``ApiError`` unless the envelope reports ``errno == 0``.

    Args:
        data: Parsed JSON body

    Returns:
        The same body
    """
    if not isinstance(data, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")
    errno = data.get("errno")
    if errno is None:
        raise ProtocolError("Response has no errno field")
    if errno != 0:
        raise ApiError(errno, data.get("errmsg"))
    return data


def parse_json(text: str) -> Any:
    """Decode a JSON body, raising ``ProtocolError`` on garbage."""
    try:
        return json.loads(text)
    except ValueError as e:
        raise ProtocolError(f"Invalid JSON response: {e}")


def envelope_error(text: str) -> Optional[ApiError]:
    """Return the ``ApiError`` carried by a JSON body with a non-zero ``errno``, if any."""
    if not text.lstrip().startswith("{"):
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("errno", 0) != 0:
        return ApiError(data["errno"], data.get("errmsg"))
    return None


def upload_checksum(text: str) -> Optional[str]:
    """Pull the block ``md5`` out of a transfer response body."""
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("md5") or None
    return None


def parse_stream(text: str) -> str:
    """
    Interpret a ``/api/streaming`` body.

    The endpoint answers with an M3U8 playlist, or with a JSON envelope when
    something went wrong. A JSON object with a non-zero ``errno`` raises
    ``ApiError``; anything else is returned untouched.
    """
    if text.startswith("{"):
        error = envelope_error(text)
        if error is not None:
            raise error
    return text


def dumps_compact(value: Any) -> str:
    """JSON without whitespace, as the web frontend sends it."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def normalize_file_ids(file_ids: Union[DirEntry, int, str, Iterable[Union[DirEntry, int, str]]]) -> List[int]:
    """
    Resolve entries, ints and numeric strings to integer file ids.

    Args:
        file_ids: One id-like value or a list/tuple of them

    Returns:
        List of integer ids
    """
    ids = []
    for file_id in _as_list(file_ids):
        if isinstance(file_id, DirEntry):
            ids.append(file_id.id)
        elif isinstance(file_id, int) and not isinstance(file_id, bool):
            ids.append(file_id)
        elif isinstance(file_id, str) and file_id.strip().isdecimal():
            ids.append(int(file_id))
        else:
            raise ValidationError(
                'The "file_ids" argument must be DirEntry instances, ints or numeric strings. '
                f"Received {file_id!r}",
                field="file_ids",
            )
    if not ids:
        raise ValidationError('The "file_ids" argument must not be empty', field="file_ids")
    return ids


def normalize_paths(files: Union[DirEntry, str, Iterable[Union[DirEntry, str]]]) -> List[str]:
    """
    Resolve entries and strings to remote paths.

    Args:
        files: One path-like value or a list/tuple of them

    Returns:
        List of paths
    """
    paths = []
    for item in _as_list(files):
        if isinstance(item, DirEntry):
            paths.append(item.path)
        elif isinstance(item, str):
            paths.append(item)
        else:
            raise ValidationError(
                'The "files" argument must be DirEntry instances or strings. '
                f"Received {type(item).__name__}",
                field="files",
            )
    if not paths:
        raise ValidationError('The "files" argument must not be empty', field="files")
    return paths


def normalize_path(file_path: Union[DirEntry, str], name: str = "file_path") -> str:
    """Single path argument, as accepted by ``stream``."""
    if isinstance(file_path, DirEntry):
        return file_path.path
    if not isinstance(file_path, str):
        raise ValidationError(
            f'The "{name}" argument must be of type str. Received {type(file_path).__name__}',
            field=name,
        )
    return file_path


def quality_value(quality: Union[StreamQuality, str]) -> str:
    """Wire value of a stream quality tier; unknown strings pass through."""
    if isinstance(quality, StreamQuality):
        return quality.value
    if not isinstance(quality, str):
        raise ValidationError(
            f'The "quality" argument must be of type str. Received {type(quality).__name__}',
            field="quality",
        )
    return quality


def split_target(target_path: str) -> Tuple[str, str]:
    """
    Split a move target into ``(dest, newname)``.

    The API wants an empty ``dest`` for the root directory.
    """
    dest = posixpath.dirname(target_path)
    if dest == "/":
        dest = ""
    return dest, posixpath.basename(target_path)


def move_filelist(mapping: Mapping[str, str]) -> str:
    """Encode a source -> target mapping as the ``filelist`` form field."""
    if not isinstance(mapping, Mapping):
        raise ValidationError(
            f'The "files" argument must be a mapping. Received {type(mapping).__name__}',
            field="files",
        )
    if not mapping:
        raise ValidationError('The "files" argument must not be empty', field="files")

    entries = []
    for source, target in mapping.items():
        if not isinstance(source, str) or not isinstance(target, str):
            raise ValidationError("Move sources and targets must be strings", field="files")
        dest, newname = split_target(target)
        entries.append({"path": source, "dest": dest, "newname": newname})
    return dumps_compact(entries)


def upload_target_dir(file_path: str) -> str:
    """Parent directory of an upload target, with a trailing slash."""
    target = posixpath.dirname(file_path)
    if not target.endswith("/"):
        target += "/"
    return target


def read_body(file_body: Any) -> bytes:
    """
    Accept bytes-like objects or binary file objects as upload content.

    Args:
        file_body: bytes, bytearray, memoryview or an object with ``read()``

    Returns:
        File content as bytes
    """
    if isinstance(file_body, (bytes, bytearray, memoryview)):
        return bytes(file_body)
    if isinstance(file_body, io.IOBase) or hasattr(file_body, "read"):
        data = file_body.read()
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
    raise ValidationError(
        f'The "file_body" argument must be bytes or a binary file. Received {type(file_body).__name__}',
        field="file_body",
    )


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    if size_bytes <= 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
    i = int(math.floor(math.log(size_bytes, 1024)))

    if i >= len(size_names):
        i = len(size_names) - 1

    p = math.pow(1024, i)
    size = round(size_bytes / p, 2)

    return f"{size} {size_names[i]}"
