from urllib.parse import parse_qs, urlsplit

import pytest

from terabox_sdk import Credentials

HOST = "https://terabox.com"
UPLOAD_HOST = "https://c-jp.terabox.com"


def query_of(url):
    """Flatten the query string of ``url`` into a dict."""
    return {k: v[0] for k, v in parse_qs(urlsplit(str(url)).query).items()}


def form_of(body):
    """Flatten an urlencoded request body into a dict."""
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    return {k: v[0] for k, v in parse_qs(body).items()}


@pytest.fixture
def credentials():
    return Credentials(ndus="test-ndus", browser_id="browser-1", js_token="JS")


@pytest.fixture
def file_record():
    return {
        "fs_id": 111,
        "size": 2048,
        "server_filename": "movie.mp4",
        "path": "/videos/movie.mp4",
        "isdir": 0,
        "server_atime": 1700000000,
        "server_ctime": 1690000000,
        "server_mtime": 1695000000,
    }


@pytest.fixture
def dir_record():
    return {
        "fs_id": 222,
        "size": 0,
        "server_filename": "docs",
        "path": "/docs",
        "isdir": 1,
        "atime": 1600000000,
        "ctime": 1600000001,
        "mtime": 1600000002,
    }


@pytest.fixture
def home_payload():
    return {
        "errno": 0,
        "data": {
            "sign1": "Plaintext",
            "sign2": "function s(j,r){}",
            "sign3": "Key",
            "timestamp": 1700000000,
        },
    }
