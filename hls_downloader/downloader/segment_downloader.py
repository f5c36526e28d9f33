"""Asynchronous downloader that fetches every segment of a media playlist."""

from __future__ import annotations

import asyncio
import logging
import os
from enum import Enum
from typing import Any, Optional, Tuple

from ..models import DownloadReport
from ..playlist.reader import LineReader
from ..utils.file_utils import ensure_directory, remove_partial_file
from ..utils.http_client import HttpClient, TransportError
from ..utils.url_utils import playlist_base_url, resolve_reference, segment_filename
from .segment_extractor import SegmentExtractor

MAX_RETRY_DELAY = 5.0

_END = object()
_STOP = object()


class PoolState(Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownSignal:
    """One-shot stop flag shared by the producer and every worker.

    The first :meth:`trigger` records its error and wakes all waiters; later
    calls change nothing.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.error: Optional[BaseException] = None

    def trigger(self, error: Optional[BaseException] = None) -> bool:
        if self._event.is_set():
            return False
        self.error = error
        self._event.set()
        if error is not None:
            logging.error("Stopping download: %s", error)
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class SegmentDownloader:
    """Downloads segments concurrently into one directory.

    A producer feeds segment references from the playlist into a bounded
    queue; ``workers`` tasks take them off, skip files already present, and
    stream the rest to disk. The first failure on either side stops the run;
    fetches already in flight are allowed to finish.
    """

    def __init__(
        self,
        http_client: HttpClient,
        workers: int = 5,
        queue_size: Optional[int] = None,
        retries: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self.workers = max(1, workers)
        self.queue_size = queue_size if queue_size and queue_size > 0 else self.workers
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self.state = PoolState.STOPPED
        self._http_client = http_client

    def download(self, playlist_url: str, output_dir: str, playlist_text: Optional[str] = None) -> DownloadReport:
        """Saves the playlist into ``output_dir`` and fetches all of its segments.

        Pass ``playlist_text`` when the playlist has already been fetched; it is
        saved and used as is, so a live playlist is not fetched a second time.
        """

        ensure_directory(output_dir)
        base_url = playlist_base_url(playlist_url)
        playlist_path = os.path.join(output_dir, segment_filename(playlist_url))
        if playlist_text is None:
            self._http_client.download_cdn_file(playlist_url, playlist_path)
        else:
            with open(playlist_path, "w", encoding="utf-8", newline="") as playlist_file:
                playlist_file.write(playlist_text)
        logging.info("Saved playlist %s to %s", playlist_url, playlist_path)

        with open(playlist_path, "rb") as playlist_file:
            report = asyncio.run(self._run_and_close(LineReader(playlist_file), base_url, output_dir))
        logging.info(
            "Finished %s: %s downloaded, %s already present",
            playlist_url,
            len(report.downloaded),
            len(report.skipped),
        )
        return report

    async def _run_and_close(self, reader: LineReader, base_url: str, output_dir: str) -> DownloadReport:
        try:
            return await self.run(reader, base_url, output_dir)
        finally:
            await self._http_client.aclose()

    async def run(self, reader: LineReader, base_url: str, output_dir: str) -> DownloadReport:
        """Runs the producer and the worker pool until the playlist is exhausted or a task fails."""

        shutdown = ShutdownSignal()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self.state = PoolState.RUNNING

        producer = asyncio.ensure_future(self._produce(reader, queue, shutdown))
        workers = [
            asyncio.ensure_future(self._work(index, queue, shutdown, base_url, output_dir))
            for index in range(self.workers)
        ]

        stop_waiter = asyncio.ensure_future(shutdown.wait())
        await asyncio.wait({producer, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        stop_waiter.cancel()
        self.state = PoolState.DRAINING
        logging.debug("Segment pool draining")

        results = await asyncio.gather(producer, *workers)
        self.state = PoolState.STOPPED

        if shutdown.error is not None:
            raise shutdown.error
        return DownloadReport.combine(results[1:])

    async def _produce(self, reader: LineReader, queue: asyncio.Queue, shutdown: ShutdownSignal) -> int:
        extractor = SegmentExtractor(reader)
        references = iter(extractor)
        loop = asyncio.get_running_loop()
        try:
            while True:
                # Playlist reads block; keep them off the event loop.
                reference = await loop.run_in_executor(None, next, references, _END)
                if reference is _END:
                    break
                if not await self._put(queue, reference, shutdown):
                    return extractor.count
        except Exception as exc:
            shutdown.trigger(exc)
            return extractor.count

        logging.debug("Playlist yielded %s segment references", extractor.count)
        for _ in range(self.workers):
            if not await self._put(queue, _END, shutdown):
                break
        return extractor.count

    async def _work(
        self,
        index: int,
        queue: asyncio.Queue,
        shutdown: ShutdownSignal,
        base_url: str,
        output_dir: str,
    ) -> DownloadReport:
        report = DownloadReport()
        while not shutdown.is_set():
            reference = await self._next_task(queue, shutdown)
            if reference is _END or reference is _STOP:
                break
            try:
                name, fetched = await self._fetch(reference, base_url, output_dir, shutdown)
            except Exception as exc:
                logging.debug("Worker %s failed on %s", index, reference)
                shutdown.trigger(exc)
                break
            if fetched:
                report.downloaded.append(name)
            else:
                report.skipped.append(name)
        logging.debug("Worker %s exiting", index)
        return report

    async def _put(self, queue: asyncio.Queue, item: Any, shutdown: ShutdownSignal) -> bool:
        if shutdown.is_set():
            return False
        put = asyncio.ensure_future(queue.put(item))
        stop = asyncio.ensure_future(shutdown.wait())
        await asyncio.wait({put, stop}, return_when=asyncio.FIRST_COMPLETED)
        stop.cancel()
        if put.done():
            return True
        put.cancel()
        return False

    async def _next_task(self, queue: asyncio.Queue, shutdown: ShutdownSignal) -> Any:
        get = asyncio.ensure_future(queue.get())
        stop = asyncio.ensure_future(shutdown.wait())
        await asyncio.wait({get, stop}, return_when=asyncio.FIRST_COMPLETED)
        stop.cancel()
        if shutdown.is_set():
            if not get.done():
                get.cancel()
            return _STOP
        return get.result()

    async def _fetch(
        self,
        reference: str,
        base_url: str,
        output_dir: str,
        shutdown: ShutdownSignal,
    ) -> Tuple[str, bool]:
        url = resolve_reference(base_url, reference)
        name = segment_filename(url)
        dest_path = os.path.join(output_dir, name)
        if os.path.exists(dest_path):
            logging.debug("Skipping existing segment %s", name)
            return name, False

        for attempt in range(1, self.retries + 1):
            try:
                await self._download_single(url, dest_path)
                logging.debug("Downloaded segment %s", name)
                return name, True
            except TransportError as exc:
                if attempt == self.retries or shutdown.is_set():
                    raise
                delay = min(self.retry_delay * 2 ** (attempt - 1), MAX_RETRY_DELAY)
                logging.warning("Segment %s download failed (attempt %s/%s): %s", name, attempt, self.retries, exc)
                await asyncio.sleep(delay)

    async def _download_single(self, url: str, dest_path: str) -> None:
        async with self._http_client.open_cdn_stream(url) as response:
            if not response.ok:
                raise TransportError(f"GET {url} returned status {response.status}", url=url, status=response.status)
            try:
                with open(dest_path, "wb") as file_obj:
                    async for chunk in response.iter_chunks():
                        file_obj.write(chunk)
            except OSError as exc:
                remove_partial_file(dest_path)
                raise TransportError(f"writing {dest_path} failed: {exc}", url=url) from exc
            except (Exception, asyncio.CancelledError):
                remove_partial_file(dest_path)
                raise


