import asyncio
from datetime import datetime, timezone

import pytest

from terabox_sdk import (
    AsyncDirEntry, DirEntry, DownloadLink, HomeInfo, ProtocolError, Quota,
    StreamQuality, ValidationError,
)


class RecordingClient:
    """Stands in for TeraBoxClient and records delegated calls."""

    def __init__(self):
        self.calls = []

    def download(self, file_ids):
        self.calls.append(("download", file_ids))
        return [DownloadLink(id=file_ids, link="https://d.terabox.com/file")]

    def move(self, files):
        self.calls.append(("move", files))
        return True

    def delete(self, files):
        self.calls.append(("delete", files))
        return True

    def stream(self, file_path, quality):
        self.calls.append(("stream", file_path, quality))
        return "#EXTM3U"


class AsyncRecordingClient(RecordingClient):

    async def download(self, file_ids):
        return RecordingClient.download(self, file_ids)

    async def move(self, files):
        return RecordingClient.move(self, files)

    async def delete(self, files):
        return RecordingClient.delete(self, files)

    async def stream(self, file_path, quality):
        return RecordingClient.stream(self, file_path, quality)


def test_from_dict(file_record):
    entry = DirEntry.from_dict(file_record)
    assert entry.id == 111
    assert entry.size == 2048
    assert entry.name == "movie.mp4"
    assert entry.path == "/videos/movie.mp4"
    assert entry.parent_path == "/videos"


def test_timestamps_are_milliseconds(file_record):
    entry = DirEntry.from_dict(file_record)
    assert entry.atime_ms == 1700000000 * 1000
    assert entry.ctime_ms == 1690000000 * 1000
    assert entry.mtime_ms == 1695000000 * 1000
    assert entry.birthtime_ms == entry.ctime_ms


def test_timestamp_properties(file_record):
    entry = DirEntry.from_dict(file_record)
    assert entry.atime == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert entry.mtime == datetime.fromtimestamp(1695000000, tz=timezone.utc)
    assert entry.ctime == entry.birthtime
    assert int(entry.atime.timestamp() * 1000) == entry.atime_ms


def test_timestamp_falls_back_to_plain_alias(dir_record):
    entry = DirEntry.from_dict(dir_record)
    assert entry.atime_ms == 1600000000000
    assert entry.mtime_ms == 1600000002000


def test_missing_timestamp_is_none():
    entry = DirEntry.from_dict({"fs_id": 1, "path": "/a.txt", "ctime": 10, "mtime": 20})
    assert entry.atime_ms is None
    assert entry.atime is None
    assert entry.ctime_ms == 10000


def test_name_falls_back_to_basename():
    entry = DirEntry.from_dict({"fs_id": 1, "path": "/dir/a.txt"})
    assert entry.name == "a.txt"
    assert entry.size == 0


def test_missing_path_raises():
    with pytest.raises(ProtocolError):
        DirEntry.from_dict({"fs_id": 1})


def test_file_and_dir_are_exclusive(file_record, dir_record):
    for record in (file_record, dir_record):
        entry = DirEntry.from_dict(record)
        assert entry.is_file() != entry.is_dir()
    assert DirEntry.from_dict(file_record).is_file()
    assert DirEntry.from_dict(dir_record).is_dir()


def test_entries_are_frozen(file_record):
    entry = DirEntry.from_dict(file_record)
    with pytest.raises(AttributeError):
        entry.path = "/elsewhere"


def test_to_dict(dir_record):
    data = DirEntry.from_dict(dir_record).to_dict()
    assert data["id"] == 222
    assert data["isDir"] is True
    assert data["parentPath"] == "/"


def test_download_unwraps_single_link(file_record):
    client = RecordingClient()
    entry = DirEntry.from_dict(file_record, client)
    assert entry.download() == "https://d.terabox.com/file"
    assert client.calls == [("download", 111)]


def test_move_delegates_with_own_path(file_record):
    client = RecordingClient()
    entry = DirEntry.from_dict(file_record, client)
    assert entry.move("/archive/movie.mp4") is True
    assert client.calls == [("move", {"/videos/movie.mp4": "/archive/movie.mp4"})]


def test_move_rejects_non_string(file_record):
    client = RecordingClient()
    entry = DirEntry.from_dict(file_record, client)
    with pytest.raises(ValidationError):
        entry.move(42)
    assert client.calls == []


def test_delete_and_stream_delegate(file_record):
    client = RecordingClient()
    entry = DirEntry.from_dict(file_record, client)
    assert entry.delete() is True
    assert entry.stream(StreamQuality.P360) == "#EXTM3U"
    assert client.calls == [
        ("delete", "/videos/movie.mp4"),
        ("stream", "/videos/movie.mp4", StreamQuality.P360),
    ]


def test_unbound_entry_raises(file_record):
    with pytest.raises(ValidationError):
        DirEntry.from_dict(file_record).delete()


def test_async_entry_delegates(file_record):
    client = AsyncRecordingClient()
    entry = AsyncDirEntry.from_dict(file_record, client)

    async def run():
        link = await entry.download()
        moved = await entry.move("/b.mp4")
        playlist = await entry.stream()
        return link, moved, playlist

    link, moved, playlist = asyncio.run(run())
    assert link == "https://d.terabox.com/file"
    assert moved is True
    assert playlist == "#EXTM3U"
    assert client.calls[-1] == ("stream", "/videos/movie.mp4", StreamQuality.P480)


def test_quota_free():
    quota = Quota.from_dict({"used": 300, "total": 1000})
    assert quota.free == 700
    assert quota.usage_percentage == 30.0


def test_quota_missing_field():
    with pytest.raises(ProtocolError):
        Quota.from_dict({"used": 1})


def test_home_info_requires_all_fields(home_payload):
    info = HomeInfo.from_dict(home_payload["data"])
    assert info.sign3 == "Key"
    assert info.timestamp == 1700000000

    for key in ("sign1", "sign2", "sign3", "timestamp"):
        data = dict(home_payload["data"])
        del data[key]
        with pytest.raises(ProtocolError):
            HomeInfo.from_dict(data)
    with pytest.raises(ProtocolError):
        HomeInfo.from_dict(None)
