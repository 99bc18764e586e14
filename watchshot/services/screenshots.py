#!/usr/bin/env python3
"""
Screenshot Source

Finds screenshots whose pixel size matches a known watch size, newest
first, and loads them off the owning thread with per-slot cancellation.
"""

import datetime
import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Optional, Tuple

from PIL import Image

from watchshot.config.compose_config import PathConfig
from watchshot.services.dispatch import MainQueue


@dataclass(frozen=True)
class ScreenshotAsset:
    """A screenshot file of a size the catalog knows"""
    path: Path
    pixel_width: int
    pixel_height: int
    created: datetime.datetime

    @property
    def pixel_size(self) -> Tuple[int, int]:
        return (self.pixel_width, self.pixel_height)


class ScreenshotLibrary:
    """Screenshots in a directory, filtered to the catalog's screenshot sizes"""

    def __init__(self, directory: Path, catalog):
        self.logger = logging.getLogger(__name__)
        self.directory = directory
        self.catalog = catalog

    def _candidates(self) -> List[Path]:
        paths = set()
        for pattern in PathConfig.SCREENSHOT_PATTERNS:
            paths.update(self.directory.glob(pattern))
        return sorted(paths)

    def fetch(self) -> List[ScreenshotAsset]:
        """
        Screenshots matching a known size class, newest first

        Files that cannot be read as images are skipped.
        """
        if not self.directory.is_dir():
            self.logger.warning(f"Screenshots directory not found: {self.directory}")
            return []

        sizes = set(self.catalog.screenshot_sizes())
        assets = []
        for path in self._candidates():
            try:
                with Image.open(path) as image:
                    width, height = image.size
            except OSError as e:
                self.logger.debug(f"Skipping unreadable image {path}: {e}")
                continue

            if (width, height) not in sizes:
                continue

            created = datetime.datetime.fromtimestamp(path.stat().st_mtime)
            assets.append(ScreenshotAsset(path, width, height, created))

        # Newest first; ties broken by name for a stable order
        assets.sort(key=lambda asset: asset.path.name)
        assets.sort(key=lambda asset: asset.created, reverse=True)
        return assets


class ImageResultStatus(Enum):
    DEGRADED = "degraded"
    FINAL = "final"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class ImageResult:
    """One delivery for an image request; DEGRADED may precede FINAL"""
    status: ImageResultStatus
    image: Optional[Image.Image] = None
    error: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.status is not ImageResultStatus.DEGRADED


ResultHandler = Callable[[ImageResult], None]


class _Request:
    def __init__(self, request_id: int, handler: ResultHandler):
        self.request_id = request_id
        self.handler = handler
        self.cancelled = threading.Event()


class ImageRequests:
    """
    Loads screenshots for reusable display slots.

    Each slot holds at most one outstanding request. Requesting again for
    the same slot cancels the previous request, and anything the previous
    request still delivers is dropped. Handlers run on the owning thread
    when the main queue is drained.
    """

    # Long edge of the degraded preview delivered before the full image
    PREVIEW_SIZE = 64

    def __init__(self, executor: Executor, main_queue: MainQueue):
        self.logger = logging.getLogger(__name__)
        self.executor = executor
        self.main_queue = main_queue
        self._slots: Dict[Hashable, _Request] = {}
        self._next_id = 0

    def request(self, slot: Hashable, asset: ScreenshotAsset, handler: ResultHandler) -> int:
        """
        Start loading an asset for a slot, replacing any outstanding request

        Returns:
            Identifier of the new request
        """
        self.cancel(slot)

        self._next_id += 1
        request = _Request(self._next_id, handler)
        self._slots[slot] = request

        self.executor.submit(self._load, slot, request, asset.path, handler)
        return request.request_id

    def cancel(self, slot: Hashable) -> None:
        """Cancel the outstanding request of a slot, if any

        The cancelled request's handler receives a single CANCELLED result.
        """
        request = self._slots.pop(slot, None)
        if request is not None:
            request.cancelled.set()
            cancelled = ImageResult(ImageResultStatus.CANCELLED)
            self.main_queue.post(lambda: request.handler(cancelled))

    def outstanding(self, slot: Hashable) -> Optional[int]:
        request = self._slots.get(slot)
        return request.request_id if request is not None else None

    def _deliver(self, slot: Hashable, request: _Request, result: ImageResult, handler: ResultHandler) -> None:
        def dispatch():
            # Results of superseded requests are dropped
            if self._slots.get(slot) is not request:
                return
            if result.is_final:
                del self._slots[slot]
            handler(result)

        self.main_queue.post(dispatch)

    def _load(self, slot: Hashable, request: _Request, path: Path, handler: ResultHandler) -> None:
        # Runs on an executor thread
        if request.cancelled.is_set():
            return

        try:
            with Image.open(path) as image:
                image.load()
                preview = image.copy()
                preview.thumbnail((self.PREVIEW_SIZE, self.PREVIEW_SIZE))
                if request.cancelled.is_set():
                    return
                self._deliver(slot, request, ImageResult(ImageResultStatus.DEGRADED, preview), handler)

                full = image.convert("RGBA")
        except Exception as e:
            self.logger.warning(f"Failed to load {path}: {e}")
            self._deliver(slot, request, ImageResult(ImageResultStatus.FAILED, error=str(e)), handler)
            return

        if request.cancelled.is_set():
            return
        self._deliver(slot, request, ImageResult(ImageResultStatus.FINAL, full), handler)
