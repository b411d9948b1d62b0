"""
Synchronous TeraBox client implementation.

This module provides the main synchronous client for the TeraBox web API.
Every operation is a plain request/response exchange; nothing is retried.
"""

import posixpath
import time
from typing import Optional, List, Dict, Any, Mapping, Union, BinaryIO

import requests
from loguru import logger

from .auth import Credentials
from .crypto import sign_download
from .exceptions import NetworkError, ProtocolError, UploadError, DownloadError
from .models import (
    DirEntry, Quota, DownloadLink, HomeInfo, Signature, StreamQuality,
    DEFAULT_STREAM_QUALITY, entries_from_list,
)
from .utils import (
    check_response, parse_json, parse_stream, dumps_compact, normalize_file_ids,
    normalize_paths, normalize_path, quality_value, move_filelist,
    upload_target_dir, read_body, envelope_error, upload_checksum,
)

UPLOAD_ORIGIN = "https://www.1024terabox.com"


class TeraBoxClient:
    """
    Synchronous client for the TeraBox web API.

    Wraps quota, listing, upload, download-link, move, delete and streaming
    endpoints. Holds one ``requests.Session`` carrying the session cookie.
    """

    entry_class = DirEntry

    def __init__(
        self,
        credentials: Union[Credentials, Mapping[str, Any], str, None] = None,
        timeout: int = 30,
    ):
        """
        Initialize the TeraBox client.

        Args:
            credentials: Credentials, a mapping of credential fields, a bare
                ndus token, or None to read TERABOX_* environment variables
            timeout: Request timeout in seconds
        """
        self.credentials = Credentials.coerce(credentials)
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update(self.credentials.headers())

    def _request(self, method: str, url: str, raw: bool = False, check_status: bool = True, **kwargs) -> Any:
        """
        Send a request and return the decoded JSON body (or text when ``raw``).

        An error status whose body is a JSON envelope with a non-zero
        ``errno`` raises that ``ApiError``; other error statuses raise
        ``NetworkError``. ``check_status=False`` leaves the status to the caller.
        """
        logger.debug("{} {}", method, url)
        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
            if check_status:
                response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            error = envelope_error(e.response.text)
            if error is not None:
                raise error
            raise NetworkError(f"HTTP error: {e}", status_code=e.response.status_code)
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {e}")
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request timeout: {e}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}")

        if raw:
            return response.text
        return parse_json(response.text)

    def _api(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
        """POST to an ``/api`` endpoint and check the envelope."""
        url = self.credentials.url(path)
        data = self._request("POST", url, params=self.credentials.params(**(params or {})), **kwargs)
        return check_response(data)

    def quota(self) -> Quota:
        """Get used, total and free storage in bytes."""
        return Quota.from_dict(self._api("/api/quota"))

    def list(self, directory: str = "/") -> List[DirEntry]:
        """
        List a remote directory.

        Args:
            directory: Remote directory path

        Returns:
            List of DirEntry objects in the order returned by the API
        """
        directory = normalize_path(directory, "directory")
        data = self._api("/api/list", {"dir": directory})
        return entries_from_list(data.get("list") or [], self, self.entry_class)

    def upload(self, file_path: str, file_body: Union[bytes, BinaryIO]) -> DirEntry:
        """
        Upload content to ``file_path``, replacing any existing file.

        The content is sent as a single block: precreate, transfer to the
        regional upload host, then create.

        Args:
            file_path: Remote destination path
            file_body: File content as bytes or a binary file object

        Returns:
            DirEntry of the created file
        """
        file_path = normalize_path(file_path)
        body = read_body(file_body)
        size = len(body)
        target_path = upload_target_dir(file_path)

        logger.debug("Precreating {} ({} bytes)", file_path, size)
        precreate = self._api(
            "/api/precreate",
            data={
                "path": file_path,
                "autoinit": 1,
                "target_path": target_path,
                "block_list": dumps_compact([self.credentials.block_id]),
                "size": size,
                "file_limit_switch_v34": "true",
                "local_mtime": int(time.time()),
            },
        )
        upload_id = precreate.get("uploadid")
        if not upload_id:
            raise ProtocolError("Precreate response has no uploadid")

        logger.debug("Transferring {} with uploadid {}", file_path, upload_id)
        transfer = self._request(
            "POST",
            f"{self.credentials.upload_host}/rest/2.0/pcs/superfile2",
            params={
                "app_id": self.credentials.app_id,
                "web": 1,
                "channel": "dubox",
                "clienttype": 0,
                "method": "upload",
                "path": file_path,
                "uploadid": upload_id,
                "uploadsign": 0,
                "partseq": 0,
            },
            headers={"Origin": UPLOAD_ORIGIN},
            files={"file": (posixpath.basename(file_path), body)},
            raw=True,
            check_status=False,
        )
        md5 = upload_checksum(transfer)
        if not md5:
            raise UploadError(filename=file_path)

        logger.debug("Creating {} from block {}", file_path, md5)
        created = self._api(
            "/api/create",
            {"isdir": 0, "rtype": 1},
            data={
                "path": file_path,
                "size": size,
                "uploadid": upload_id,
                "target_path": target_path,
                "block_list": dumps_compact([md5]),
                "local_mtime": int(time.time()),
            },
        )
        return self.entry_class.from_dict(created, self)

    def download(self, file_ids: Union[DirEntry, int, str, List[Union[DirEntry, int, str]]]) -> List[DownloadLink]:
        """
        Get direct download links.

        Args:
            file_ids: A DirEntry, int id or numeric string, or a list of them

        Returns:
            List of DownloadLink objects in the order returned by the API
        """
        ids = normalize_file_ids(file_ids)
        signature = self.sign()
        data = self._api(
            "/api/download",
            {
                "fidlist": dumps_compact(ids),
                "type": "dlink",
                "vip": 2,
                "sign": signature.sign,
                "timestamp": signature.timestamp,
                "need_speed": 0,
            },
        )
        dlink = data.get("dlink")
        if not dlink:
            raise DownloadError(file_ids=ids)
        return [DownloadLink.from_dict(item) for item in dlink]

    def move(self, files: Mapping[str, str]) -> bool:
        """
        Move or rename entries in one request.

        Args:
            files: Mapping of source path to target path

        Returns:
            True when the batch was accepted
        """
        filelist = move_filelist(files)
        self._api(
            "/api/filemanager",
            {"async": 2, "onnest": "fail", "opera": "move"},
            data={"filelist": filelist},
        )
        return True

    def delete(self, files: Union[DirEntry, str, List[Union[DirEntry, str]]]) -> bool:
        """
        Delete files or directories in one request.

        Args:
            files: A DirEntry or path, or a list of them

        Returns:
            True when the batch was accepted
        """
        paths = normalize_paths(files)
        self._api(
            "/api/filemanager",
            {"async": 2, "onnest": "fail", "opera": "delete"},
            data={"filelist": dumps_compact(paths)},
        )
        return True

    def stream(
        self,
        file_path: Union[DirEntry, str],
        quality: Union[StreamQuality, str] = DEFAULT_STREAM_QUALITY,
    ) -> str:
        """
        Get the HLS playlist of a video.

        Args:
            file_path: Remote path or DirEntry of the video
            quality: Stream quality tier

        Returns:
            M3U8 playlist text; the segment URLs cannot be hotlinked
        """
        file_path = normalize_path(file_path)
        params = {
            "app_id": self.credentials.app_id,
            "clienttype": 0,
            "path": file_path,
            "type": quality_value(quality),
            "vip": 0,
        }
        text = self._request("POST", self.credentials.url("/api/streaming"), raw=True, params=params)
        return parse_stream(text)

    def home_info(self) -> HomeInfo:
        """Fetch the signing material used by ``download``."""
        data = self._api("/api/home/info")
        return HomeInfo.from_dict(data.get("data"))

    def sign(self) -> Signature:
        """Create a signature for ``/api/download``."""
        home = self.home_info()
        return Signature(sign=sign_download(home.sign1, home.sign3), timestamp=home.timestamp)

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
