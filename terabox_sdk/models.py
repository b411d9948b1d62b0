"""
Data models for TeraBox SDK.

This module defines the records returned by the clients: directory entries,
quota figures, download links and the signing material for downloads.
"""

import posixpath
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Union
from dataclasses import dataclass, field
from enum import Enum

from .exceptions import ProtocolError, ValidationError


class StreamQuality(str, Enum):
    """Known quality tiers of ``/api/streaming``."""
    P480 = "M3U8_FLV_264_480"
    P360 = "M3U8_FLV_264_360"


DEFAULT_STREAM_QUALITY = StreamQuality.P480


def _timestamp_ms(data: Dict[str, Any], name: str) -> Optional[int]:
    """First present of ``server_<name>``/``<name>`` in milliseconds."""
    seconds = data.get(f"server_{name}") or data.get(name)
    if seconds is None:
        return None
    return int(seconds) * 1000


def _from_ms(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class DirEntry:
    """
    Snapshot of a remote file or directory.

    Entries are built from ``/api/list`` and ``/api/create`` records and
    never refresh themselves. The client reference is only used to forward
    ``download``, ``move``, ``delete`` and ``stream``.
    """

    id: int
    size: int
    name: str
    path: str
    parent_path: str
    atime_ms: Optional[int] = None
    ctime_ms: Optional[int] = None
    mtime_ms: Optional[int] = None
    birthtime_ms: Optional[int] = None
    _isdir: bool = field(default=False, repr=False)
    _client: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], client: Any = None) -> "DirEntry":
        """Create a DirEntry from an API record."""
        try:
            path = data["path"]
            fs_id = data["fs_id"]
        except KeyError as e:
            raise ProtocolError(f"Directory entry is missing {e.args[0]!r}")

        return cls(
            id=int(fs_id),
            size=int(data.get("size") or 0),
            name=data.get("server_filename") or posixpath.basename(path),
            path=path,
            parent_path=posixpath.dirname(path),
            atime_ms=_timestamp_ms(data, "atime"),
            ctime_ms=_timestamp_ms(data, "ctime"),
            mtime_ms=_timestamp_ms(data, "mtime"),
            birthtime_ms=_timestamp_ms(data, "ctime"),
            _isdir=bool(int(data.get("isdir") or 0)),
            _client=client,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert DirEntry to dictionary."""
        return {
            "id": self.id,
            "size": self.size,
            "name": self.name,
            "path": self.path,
            "parentPath": self.parent_path,
            "isDir": self._isdir,
            "atimeMs": self.atime_ms,
            "ctimeMs": self.ctime_ms,
            "mtimeMs": self.mtime_ms,
            "birthtimeMs": self.birthtime_ms,
        }

    def is_file(self) -> bool:
        return not self._isdir

    def is_dir(self) -> bool:
        return self._isdir

    @property
    def atime(self) -> Optional[datetime]:
        """Last access time."""
        return _from_ms(self.atime_ms)

    @property
    def ctime(self) -> Optional[datetime]:
        """Last change time."""
        return _from_ms(self.ctime_ms)

    @property
    def mtime(self) -> Optional[datetime]:
        """Last modification time."""
        return _from_ms(self.mtime_ms)

    @property
    def birthtime(self) -> Optional[datetime]:
        """Creation time."""
        return _from_ms(self.birthtime_ms)

    def _require_client(self):
        if self._client is None:
            raise ValidationError(f"{self.path} is not bound to a client")
        return self._client

    def download(self) -> str:
        """Return the direct download link of this file."""
        return self._require_client().download(self.id)[0].link

    def move(self, target_path: str) -> bool:
        """Move or rename this entry to ``target_path``."""
        if not isinstance(target_path, str):
            raise ValidationError(
                f'The "target_path" argument must be of type str. Received {type(target_path).__name__}',
                field="target_path",
            )
        return self._require_client().move({self.path: target_path})

    def delete(self) -> bool:
        """Delete this entry."""
        return self._require_client().delete(self.path)

    def stream(self, quality: Union[StreamQuality, str] = DEFAULT_STREAM_QUALITY) -> str:
        """Return the HLS playlist of this video."""
        return self._require_client().stream(self.path, quality)


@dataclass(frozen=True)
class AsyncDirEntry(DirEntry):
    """DirEntry produced by the async client; delegates are coroutines."""

    async def download(self) -> str:
        links = await self._require_client().download(self.id)
        return links[0].link

    async def move(self, target_path: str) -> bool:
        if not isinstance(target_path, str):
            raise ValidationError(
                f'The "target_path" argument must be of type str. Received {type(target_path).__name__}',
                field="target_path",
            )
        return await self._require_client().move({self.path: target_path})

    async def delete(self) -> bool:
        return await self._require_client().delete(self.path)

    async def stream(self, quality: Union[StreamQuality, str] = DEFAULT_STREAM_QUALITY) -> str:
        return await self._require_client().stream(self.path, quality)


@dataclass
class Quota:
    """Storage quota in bytes."""

    used: int
    total: int
    free: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quota":
        """Create Quota from API response dictionary."""
        try:
            used = int(data["used"])
            total = int(data["total"])
        except KeyError as e:
            raise ProtocolError(f"Quota response is missing {e.args[0]!r}")
        return cls(used=used, total=total, free=total - used)

    @property
    def usage_percentage(self) -> float:
        """Used quota as percentage."""
        if self.total == 0:
            return 0.0
        return (self.used / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {"used": self.used, "total": self.total, "free": self.free}


@dataclass
class DownloadLink:
    """Direct link for one file id. Fetching it requires the ndus cookie."""

    id: int
    link: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DownloadLink":
        return cls(id=int(data["fs_id"]), link=data["dlink"])


@dataclass
class HomeInfo:
    """Signing material returned by ``/api/home/info``."""

    sign1: str
    sign2: str
    sign3: str
    timestamp: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HomeInfo":
        """Create HomeInfo from the ``data`` object of the response."""
        if not data or not all(data.get(key) for key in ("sign1", "sign2", "sign3", "timestamp")):
            raise ProtocolError("Unable to fetch home information")
        return cls(
            sign1=data["sign1"],
            sign2=data["sign2"],
            sign3=data["sign3"],
            timestamp=int(data["timestamp"]),
        )


@dataclass
class Signature:
    """Download signature and the timestamp it was issued for."""

    sign: str
    timestamp: int


def entries_from_list(records: List[Dict[str, Any]], client: Any, entry_class: type = DirEntry) -> List[DirEntry]:
    """Build entries in the order the API returned them."""
    return [entry_class.from_dict(record, client) for record in records]
