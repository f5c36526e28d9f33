"""Test configuration and fixtures"""

import asyncio
import io
import os
from contextlib import asynccontextmanager

import pytest

from hls_downloader.utils.http_client import TransportError

MEDIA_PLAYLIST = (
    "#EXTM3U\n"
    "#EXTINF:9.009,\n"
    "seg0.ts\n"
    "#EXTINF:9.009,\n"
    "seg1.ts\n"
    "#EXT-X-ENDLIST\n"
)

MASTER_PLAYLIST = (
    "#EXTM3U\n"
    "#EXT-X-VERSION:4\n"
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",NAME="English",LANGUAGE="en",DEFAULT=YES,URI="audio/en.m3u8"\n'
    '#EXT-X-STREAM-INF:BANDWIDTH=1280000,CODECS="avc1.4d401f,mp4a.40.2",RESOLUTION=640x360,AUDIO="aud"\n'
    "low/index.m3u8\n"
    '#EXT-X-STREAM-INF:BANDWIDTH=2560000,RESOLUTION=1280x720,AUDIO="aud",CLOSED-CAPTIONS=NONE\n'
    "high/index.m3u8\n"
    '#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=86000,URI="low/iframe.m3u8"\n'
)


class FakeSegmentResponse:
    """Stands in for the streamed response of one segment request."""

    def __init__(self, status=200, chunks=(b"data",), fail_after=None, delay=0):
        self.status = status
        self._chunks = list(chunks)
        self._fail_after = fail_after
        self._delay = delay

    @property
    def ok(self):
        return 200 <= self.status < 300

    async def iter_chunks(self):
        for index, chunk in enumerate(self._chunks):
            if self._fail_after is not None and index >= self._fail_after:
                raise TransportError("connection reset mid-transfer")
            if self._delay:
                await asyncio.sleep(self._delay)
            yield chunk


class FakeHttpClient:
    """Records every fetch; ``responses`` maps a URL suffix to a response factory."""

    def __init__(self, playlist_text=MEDIA_PLAYLIST):
        self.playlist_text = playlist_text
        self.responses = {}
        self.fetched = []
        self.closed = False

    def fetch_cdn_text(self, url):
        self.fetched.append(url)
        return self.playlist_text

    def download_cdn_file(self, url, dest_path):
        self.fetched.append(url)
        with open(dest_path, "wb") as file_obj:
            file_obj.write(self.playlist_text.encode("utf-8"))

    @asynccontextmanager
    async def open_cdn_stream(self, url):
        self.fetched.append(url)
        for suffix, factory in self.responses.items():
            if url.endswith(suffix):
                yield factory()
                return
        yield FakeSegmentResponse(chunks=(url.encode("utf-8"),))

    async def aclose(self):
        self.closed = True


class ChunkedStream:
    """Binary stream that hands out at most ``step`` bytes per read."""

    def __init__(self, data, step):
        self._buffer = io.BytesIO(data)
        self._step = step

    def read(self, size=-1):
        if size < 0 or size > self._step:
            size = self._step
        return self._buffer.read(size)


class BrokenStream:
    """Binary stream whose reads fail after the first ``good`` bytes."""

    def __init__(self, good=b""):
        self._good = good

    def read(self, size=-1):
        if self._good:
            data, self._good = self._good, b""
            return data
        raise OSError("device not ready")


@pytest.fixture
def fake_client():
    return FakeHttpClient()


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "out"
    os.makedirs(path)
    return str(path)


@pytest.fixture
def media_playlist_text():
    return MEDIA_PLAYLIST


@pytest.fixture
def master_playlist_text():
    return MASTER_PLAYLIST
