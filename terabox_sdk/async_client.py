"""
Asynchronous TeraBox client implementation.

This module provides an async/await compatible client with the same
operations as TeraBoxClient. Calls may be issued concurrently from one
instance; the client keeps no mutable state besides its HTTP session.
"""

import asyncio
import posixpath
import time
from typing import Optional, List, Dict, Any, Mapping, Union, BinaryIO

import aiohttp
from loguru import logger

from .auth import Credentials
from .client import UPLOAD_ORIGIN
from .crypto import sign_download
from .exceptions import NetworkError, ProtocolError, UploadError, DownloadError
from .models import (
    AsyncDirEntry, DirEntry, Quota, DownloadLink, HomeInfo, Signature, StreamQuality,
    DEFAULT_STREAM_QUALITY, entries_from_list,
)
from .utils import (
    check_response, parse_json, parse_stream, dumps_compact, normalize_file_ids,
    normalize_paths, normalize_path, quality_value, move_filelist,
    upload_target_dir, read_body, envelope_error, upload_checksum,
)


def _form(data: Dict[str, Any]) -> Dict[str, str]:
    return {key: str(value) for key, value in data.items()}


class AsyncTeraBoxClient:
    """
    Asynchronous client for the TeraBox web API.

    Provides the same functionality as TeraBoxClient with async/await.
    Entries it returns are AsyncDirEntry objects whose delegates are
    coroutines.
    """

    entry_class = AsyncDirEntry

    def __init__(
        self,
        credentials: Union[Credentials, Mapping[str, Any], str, None] = None,
        timeout: int = 30,
    ):
        """
        Initialize the async TeraBox client.

        Args:
            credentials: Credentials, a mapping of credential fields, a bare
                ndus token, or None to read TERABOX_* environment variables
            timeout: Request timeout in seconds
        """
        self.credentials = Credentials.coerce(credentials)
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        # Session will be created when needed
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.credentials.headers(),
                timeout=self.timeout,
            )
        return self._session

    async def _request(self, method: str, url: str, raw: bool = False, check_status: bool = True, **kwargs) -> Any:
        """
        Send a request and return the decoded JSON body (or text when ``raw``).

        Error statuses are handled as in ``TeraBoxClient._request``.
        """
        session = await self._get_session()
        logger.debug("{} {}", method, url)
        try:
            async with session.request(method, url, **kwargs) as response:
                text = await response.text()
                if check_status and response.status >= 400:
                    error = envelope_error(text)
                    if error is not None:
                        raise error
                    response.raise_for_status()
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f"HTTP error: {e.status} {e.message}", status_code=e.status)
        except aiohttp.ClientError as e:
            raise NetworkError(f"Connection error: {e}")
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request timeout: {e}")

        if raw:
            return text
        return parse_json(text)

    async def _api(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Dict[str, Any]:
        """POST to an ``/api`` endpoint and check the envelope."""
        url = self.credentials.url(path)
        data = await self._request("POST", url, params=self.credentials.params(**(params or {})), **kwargs)
        return check_response(data)

    async def quota(self) -> Quota:
        """Get used, total and free storage in bytes."""
        return Quota.from_dict(await self._api("/api/quota"))

    async def list(self, directory: str = "/") -> List[AsyncDirEntry]:
        """List a remote directory, in the order returned by the API."""
        directory = normalize_path(directory, "directory")
        data = await self._api("/api/list", {"dir": directory})
        return entries_from_list(data.get("list") or [], self, self.entry_class)

    async def upload(self, file_path: str, file_body: Union[bytes, BinaryIO]) -> AsyncDirEntry:
        """
        Upload content to ``file_path`` asynchronously.

        The three steps run strictly in sequence; each needs the output of
        the previous one.

        Args:
            file_path: Remote destination path
            file_body: File content as bytes or a binary file object

        Returns:
            AsyncDirEntry of the created file
        """
        file_path = normalize_path(file_path)
        body = read_body(file_body)
        size = len(body)
        target_path = upload_target_dir(file_path)

        logger.debug("Precreating {} ({} bytes)", file_path, size)
        precreate = await self._api(
            "/api/precreate",
            data=_form({
                "path": file_path,
                "autoinit": 1,
                "target_path": target_path,
                "block_list": dumps_compact([self.credentials.block_id]),
                "size": size,
                "file_limit_switch_v34": "true",
                "local_mtime": int(time.time()),
            }),
        )
        upload_id = precreate.get("uploadid")
        if not upload_id:
            raise ProtocolError("Precreate response has no uploadid")

        form_data = aiohttp.FormData()
        form_data.add_field(
            "file", body,
            filename=posixpath.basename(file_path),
            content_type="application/octet-stream",
        )

        logger.debug("Transferring {} with uploadid {}", file_path, upload_id)
        transfer = await self._request(
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
            data=form_data,
            raw=True,
            check_status=False,
        )
        md5 = upload_checksum(transfer)
        if not md5:
            raise UploadError(filename=file_path)

        logger.debug("Creating {} from block {}", file_path, md5)
        created = await self._api(
            "/api/create",
            {"isdir": 0, "rtype": 1},
            data=_form({
                "path": file_path,
                "size": size,
                "uploadid": upload_id,
                "target_path": target_path,
                "block_list": dumps_compact([md5]),
                "local_mtime": int(time.time()),
            }),
        )
        return self.entry_class.from_dict(created, self)

    async def download(self, file_ids: Union[DirEntry, int, str, List[Union[DirEntry, int, str]]]) -> List[DownloadLink]:
        """Get direct download links for one or more file ids."""
        ids = normalize_file_ids(file_ids)
        signature = await self.sign()
        data = await self._api(
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

    async def move(self, files: Mapping[str, str]) -> bool:
        """Move or rename entries given a source -> target mapping."""
        filelist = move_filelist(files)
        await self._api(
            "/api/filemanager",
            {"async": 2, "onnest": "fail", "opera": "move"},
            data={"filelist": filelist},
        )
        return True

    async def delete(self, files: Union[DirEntry, str, List[Union[DirEntry, str]]]) -> bool:
        """Delete one or more entries."""
        paths = normalize_paths(files)
        await self._api(
            "/api/filemanager",
            {"async": 2, "onnest": "fail", "opera": "delete"},
            data={"filelist": dumps_compact(paths)},
        )
        return True

    async def stream(
        self,
        file_path: Union[DirEntry, str],
        quality: Union[StreamQuality, str] = DEFAULT_STREAM_QUALITY,
    ) -> str:
        """Get the HLS playlist of a video."""
        file_path = normalize_path(file_path)
        params = {
            "app_id": self.credentials.app_id,
            "clienttype": 0,
            "path": file_path,
            "type": quality_value(quality),
            "vip": 0,
        }
        text = await self._request("POST", self.credentials.url("/api/streaming"), raw=True, params=params)
        return parse_stream(text)

    async def home_info(self) -> HomeInfo:
        """Fetch the signing material used by ``download``."""
        data = await self._api("/api/home/info")
        return HomeInfo.from_dict(data.get("data"))

    async def sign(self) -> Signature:
        """Create a signature for ``/api/download``."""
        home = await self.home_info()
        return Signature(sign=sign_download(home.sign1, home.sign3), timestamp=home.timestamp)

    async def close(self):
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
