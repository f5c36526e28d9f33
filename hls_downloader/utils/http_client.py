"""Shared HTTP helpers for playlists and media segments."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import aiohttp
import requests

from ..playlist.tags import CONTENT_TYPE
from .file_utils import remove_partial_file

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36"
)

CDN_HEADERS: Dict[str, str] = {
    "user-agent": USER_AGENT,
    "accept": f"{CONTENT_TYPE}, */*",
    "accept-language": "en-US,en;q=0.9",
}

CHUNK_SIZE = 1 << 14


class TransportError(Exception):
    """Raised when a resource cannot be fetched: non-OK status or broken transfer."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class SegmentResponse:
    """Status and streamed body of one segment request."""

    def __init__(self, response: aiohttp.ClientResponse, chunk_size: int = CHUNK_SIZE) -> None:
        self._response = response
        self._chunk_size = chunk_size

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def ok(self) -> bool:
        return 200 <= self._response.status < 300

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(self._chunk_size):
                if chunk:
                    yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"transfer of {self._response.url} broke off: {exc}", url=str(self._response.url)) from exc


class HttpClient:
    """Fetches playlists with ``requests`` and streams segments with ``aiohttp``."""

    def __init__(self, timeout: int = 30, headers: Optional[Dict[str, str]] = None) -> None:
        self.timeout = timeout
        self._cdn_headers = CDN_HEADERS.copy()
        if headers:
            self._cdn_headers.update(headers)

        self._cdn_session = requests.Session()
        self._cdn_session.headers.update(self._cdn_headers)

        self._cdn_async_session: Optional[aiohttp.ClientSession] = None
        self._cdn_async_lock: Optional[asyncio.Lock] = None
        self._cdn_loop: Optional[asyncio.AbstractEventLoop] = None

    def fetch_cdn_text(self, url: str) -> str:
        """Fetch a CDN resource as text (e.g., m3u8)."""

        try:
            response = self._cdn_session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logging.error("CDN text download failed: %s", exc)
            status = exc.response.status_code if exc.response is not None else None
            raise TransportError(f"GET {url} failed: {exc}", url=url, status=status) from exc
        response.encoding = response.encoding or "utf-8"
        return response.text

    def download_cdn_file(self, url: str, dest_path: str) -> None:
        """Download a CDN file (the playlist itself) to disk verbatim."""

        try:
            with self._cdn_session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with open(dest_path, "wb") as file_obj:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            file_obj.write(chunk)
        except requests.RequestException as exc:
            logging.error("CDN file download failed from %s: %s", url, exc)
            remove_partial_file(dest_path)
            status = exc.response.status_code if exc.response is not None else None
            raise TransportError(f"GET {url} failed: {exc}", url=url, status=status) from exc

    @asynccontextmanager
    async def open_cdn_stream(self, url: str) -> AsyncIterator[SegmentResponse]:
        """Open a streamed GET for a segment; the body is read via ``iter_chunks``."""

        session = await self._get_cdn_async_session()
        try:
            response = await session.get(url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc
        try:
            yield SegmentResponse(response)
        finally:
            response.release()

    async def _get_cdn_async_session(self) -> aiohttp.ClientSession:
        current_loop = asyncio.get_running_loop()
        if self._cdn_async_session:
            if (
                self._cdn_async_session.closed
                or not self._cdn_loop
                or self._cdn_loop.is_closed()
                or self._cdn_loop is not current_loop
            ):
                if self._cdn_loop is current_loop:
                    await self.aclose()
                else:
                    # Sessions cannot be closed from a foreign loop; drop it.
                    self._cdn_async_session = None
                    self._cdn_async_lock = None
                    self._cdn_loop = None

        if self._cdn_async_lock is None:
            self._cdn_async_lock = asyncio.Lock()

        async with self._cdn_async_lock:
            if self._cdn_async_session and not self._cdn_async_session.closed:
                return self._cdn_async_session
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            connector = aiohttp.TCPConnector(limit=0)
            self._cdn_async_session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers=self._cdn_headers.copy(),
            )
            self._cdn_loop = current_loop
        return self._cdn_async_session

    async def aclose(self) -> None:
        """Close the aiohttp session; must run on the loop that created it."""

        session = self._cdn_async_session
        self._cdn_async_session = None
        self._cdn_loop = None
        self._cdn_async_lock = None
        if session and not session.closed:
            await session.close()

    def close(self) -> None:
        self._cdn_session.close()
        if self._cdn_async_session and not self._cdn_async_session.closed:
            logging.debug("Async CDN session still open at close(); it belongs to a finished loop")
        self._cdn_async_session = None
        self._cdn_loop = None

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
