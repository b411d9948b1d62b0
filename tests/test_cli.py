import json

import pytest
from click.testing import CliRunner

from terabox_sdk import ApiError, DirEntry, DownloadLink, Quota
from terabox_sdk import cli as cli_module
from terabox_sdk.cli import cli


class StubClient:

    def __init__(self, entries=None):
        self.entries = entries or []
        self.calls = []

    def quota(self):
        return Quota(used=512, total=2048, free=1536)

    def list(self, directory):
        self.calls.append(("list", directory))
        return self.entries

    def upload(self, path, body):
        self.calls.append(("upload", path, body))
        return DirEntry.from_dict({"fs_id": 5, "path": path, "size": len(body)})

    def download(self, ids):
        self.calls.append(("download", ids))
        return [DownloadLink(id=int(i), link=f"https://d/{i}") for i in ids]

    def move(self, mapping):
        self.calls.append(("move", mapping))
        return True

    def delete(self, paths):
        self.calls.append(("delete", paths))
        return True

    def stream(self, path, quality):
        self.calls.append(("stream", path, quality))
        if path == "/missing.mp4":
            raise ApiError(31024, "no video")
        return "#EXTM3U\n"


@pytest.fixture
def stub(monkeypatch, tmp_path, file_record, dir_record):
    client = StubClient([DirEntry.from_dict(dir_record), DirEntry.from_dict(file_record)])
    monkeypatch.setattr(cli_module.cli_context, "config_file", tmp_path / "config.json")
    monkeypatch.setattr(cli_module.cli_context, "get_client", lambda: client)
    return client


@pytest.fixture
def runner():
    return CliRunner()


def test_quota(runner, stub):
    result = runner.invoke(cli, ["quota"])
    assert result.exit_code == 0
    assert "1.5 KB" in result.output


def test_list_json(runner, stub):
    result = runner.invoke(cli, ["list", "/videos", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [item["id"] for item in data] == [222, 111]
    assert stub.calls == [("list", "/videos")]


def test_list_table(runner, stub):
    result = runner.invoke(cli, ["list"])
    assert result.exit_code == 0
    assert "movie.mp4" in result.output
    assert stub.calls == [("list", "/")]


def test_upload(runner, stub, tmp_path):
    local = tmp_path / "notes.txt"
    local.write_bytes(b"hello")

    result = runner.invoke(cli, ["upload", str(local), "--remote-dir", "/docs/"])

    assert result.exit_code == 0
    assert stub.calls == [("upload", "/docs/notes.txt", b"hello")]


def test_download(runner, stub):
    result = runner.invoke(cli, ["download", "1", "2"])
    assert result.exit_code == 0
    assert result.output.splitlines() == ["1\thttps://d/1", "2\thttps://d/2"]


def test_move(runner, stub):
    result = runner.invoke(cli, ["move", "/a.txt", "/b/a.txt"])
    assert result.exit_code == 0
    assert stub.calls == [("move", {"/a.txt": "/b/a.txt"})]


def test_delete_requires_confirmation(runner, stub):
    result = runner.invoke(cli, ["delete", "/a.txt"], input="n\n")
    assert result.exit_code != 0
    assert stub.calls == []

    result = runner.invoke(cli, ["delete", "/a.txt", "/b.txt", "--yes"])
    assert result.exit_code == 0
    assert stub.calls == [("delete", ["/a.txt", "/b.txt"])]


def test_stream_to_file(runner, stub, tmp_path):
    output = tmp_path / "movie.m3u8"
    result = runner.invoke(cli, ["stream", "/movie.mp4", "-q", "M3U8_FLV_264_360", "-o", str(output)])
    assert result.exit_code == 0
    assert output.read_text(encoding="utf-8") == "#EXTM3U\n"
    assert stub.calls == [("stream", "/movie.mp4", "M3U8_FLV_264_360")]


def test_api_error_exits_nonzero(runner, stub):
    result = runner.invoke(cli, ["stream", "/missing.mp4"])
    assert result.exit_code == 1
    assert "no video" in result.output


def test_config_saves_file(runner, monkeypatch, tmp_path):
    config_file = tmp_path / "config.json"
    monkeypatch.setattr(cli_module.cli_context, "config_file", config_file)
    monkeypatch.setattr(cli_module.cli_context, "config", {})
    monkeypatch.setattr(cli_module.cli_context, "get_client", lambda: StubClient())

    result = runner.invoke(cli, ["config", "--ndus", "secret", "--lang", "ja"])

    assert result.exit_code == 0
    assert json.loads(config_file.read_text()) == {"ndus": "secret", "lang": "ja"}


def test_unknown_config_key_is_reported(runner, monkeypatch, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"ndus": "secret", "token": "x"}))
    monkeypatch.setattr(cli_module.cli_context, "config_file", config_file)
    monkeypatch.setattr(cli_module.cli_context, "client", None)
    monkeypatch.setattr(cli_module.cli_context, "config", {})

    result = runner.invoke(cli, ["quota"])

    assert result.exit_code == 1
    assert "Unknown credential field(s): token" in result.output
