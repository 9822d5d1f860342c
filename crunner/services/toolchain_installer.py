"""
Toolchain Installer
===================
Fetch-and-unpack utility that provisions a compiler into the storage root
the Toolchain Locator reads.

Lifecycle:
    1. Create the storage root
    2. Stream the archive to <storage_root>/compiler.zip (progress in %)
    3. Extract the archive into the storage root
    4. Delete the archive

Failure handling:
    - Any transport, extraction or unexpected error removes the partial
      archive and raises ToolchainInstallError.
    - Setting the cancel event stops the transfer at the next chunk,
      removes the partial archive and raises DownloadCancelled.
    - Task cancellation (a stalled transfer) also removes the partial
      archive, then propagates.

The compile pipeline never calls this module; only the HTTP API does, on an
explicit user request.
"""
import os
import asyncio
import logging
import zipfile
from typing import Callable, Optional

import httpx

from crunner.core.config import STORAGE_ROOT, TOOLCHAIN_URL
from crunner.core.constants import TOOLCHAIN_ARCHIVE_NAME, DOWNLOAD_CHUNK_SIZE

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Optional[int], str], None]


class ToolchainInstallError(Exception):
    """Download or extraction of the toolchain archive failed."""


class DownloadCancelled(ToolchainInstallError):
    """The user cancelled the transfer."""


def _extract(archive_path: str, destination: str) -> None:
    with zipfile.ZipFile(archive_path) as archive:
        archive.extractall(destination)


def _content_length(headers: httpx.Headers) -> int:
    """Declared body size, or 0 when the header is missing or malformed."""
    try:
        return max(0, int(headers.get("content-length") or 0))
    except ValueError:
        return 0


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


class ToolchainInstaller:

    def __init__(
        self,
        storage_root: str = STORAGE_ROOT,
        url: str = TOOLCHAIN_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.storage_root = storage_root
        self.url = url
        self._transport = transport

    @property
    def archive_path(self) -> str:
        return os.path.join(self.storage_root, TOOLCHAIN_ARCHIVE_NAME)

    async def install(
        self,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        url: Optional[str] = None,
    ) -> str:
        """
        Download and extract the toolchain archive.

        Parameters
        ----------
        progress : callable | None
            Receives (percent or None when the size is unknown, message).
        cancel_event : asyncio.Event | None
            Set it to abort the transfer.
        url : str | None
            Archive URL for this install only; defaults to the configured one.

        Returns
        -------
        str
            The storage root the archive was extracted into.
        """
        url = url or self.url
        if not url:
            raise ToolchainInstallError("No toolchain URL configured (set CRUNNER_TOOLCHAIN_URL)")

        def report(percent: Optional[int], message: str) -> None:
            if progress is not None:
                progress(percent, message)

        os.makedirs(self.storage_root, exist_ok=True)
        archive_path = self.archive_path

        try:
            report(0, "Connecting...")
            await self._download(url, archive_path, report, cancel_event)

            report(90, "Download complete, extracting...")
            await asyncio.to_thread(_extract, archive_path, self.storage_root)

            report(98, "Cleaning up temporary files...")
            _remove_quietly(archive_path)

        except DownloadCancelled:
            _remove_quietly(archive_path)
            logger.info("Toolchain download cancelled")
            raise
        except (httpx.HTTPError, zipfile.BadZipFile, OSError) as e:
            _remove_quietly(archive_path)
            logger.error("Toolchain install failed: %s", e)
            raise ToolchainInstallError(f"Compiler download or extraction failed: {e}") from e
        except asyncio.CancelledError:
            _remove_quietly(archive_path)
            logger.info("Toolchain download task cancelled")
            raise
        except Exception as e:
            _remove_quietly(archive_path)
            logger.exception("Unexpected toolchain install error")
            raise ToolchainInstallError(f"Compiler install failed: {type(e).__name__}: {e}") from e

        report(100, "Install complete")
        logger.info("Toolchain installed into %s", self.storage_root)
        return self.storage_root

    async def _download(
        self,
        url: str,
        archive_path: str,
        report: ProgressCallback,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            timeout=httpx.Timeout(30.0, read=120.0),
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                total = _content_length(response.headers)
                downloaded = 0
                last_percent = -1

                with open(archive_path, "wb") as f:
                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                        if cancel_event is not None and cancel_event.is_set():
                            raise DownloadCancelled("Download cancelled")
                        f.write(chunk)
                        downloaded += len(chunk)
                        if total:
                            # Download spans 0-90%; extraction owns the rest
                            percent = min(89, downloaded * 90 // total)
                            if percent != last_percent:
                                report(percent, f"Downloaded {downloaded * 100 // total}%")
                                last_percent = percent
                        else:
                            report(None, f"Downloaded {downloaded // 1024} KiB")


class InstallJob:
    """
    Tracks the single in-flight toolchain download for the API.

    state: idle | running | done | failed | cancelled
    """

    def __init__(self, installer: ToolchainInstaller) -> None:
        self.installer = installer
        self.state = "idle"
        self.percent: Optional[int] = None
        self.message = ""
        self.error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None
        self._cancel = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, url: Optional[str] = None) -> asyncio.Task:
        """Launch one install; `url` overrides the configured URL for this run only."""
        if self.running:
            raise RuntimeError("A toolchain download is already running")
        self._cancel = asyncio.Event()
        self.state = "running"
        self.percent = 0
        self.message = ""
        self.error = None
        self._task = asyncio.create_task(self._run(url))
        self._task.add_done_callback(self._on_done)
        return self._task

    def cancel(self) -> bool:
        if not self.running:
            return False
        self._cancel.set()
        # A stalled read never reaches the next chunk check
        self._task.cancel()
        return True

    def _on_done(self, task: asyncio.Task) -> None:
        # Cancelled before _run got to execute
        if task.cancelled() and self.state == "running":
            self._mark_cancelled()

    def _mark_cancelled(self) -> None:
        self.state = "cancelled"
        self.message = "Download cancelled"

    def _on_progress(self, percent: Optional[int], message: str) -> None:
        if percent is not None:
            self.percent = percent
        self.message = message

    async def _run(self, url: Optional[str]) -> None:
        try:
            await self.installer.install(
                progress=self._on_progress, cancel_event=self._cancel, url=url
            )
            self.state = "done"
        except (DownloadCancelled, asyncio.CancelledError):
            self._mark_cancelled()
        except ToolchainInstallError as e:
            self.state = "failed"
            self.error = str(e)
        except Exception as exc:
            logger.exception("Toolchain install job crashed")
            self.state = "failed"
            self.error = f"{type(exc).__name__}: {exc}"

    def snapshot(self) -> dict:
        return {
            "state": self.state,
            "percent": self.percent,
            "message": self.message,
            "error": self.error,
        }
