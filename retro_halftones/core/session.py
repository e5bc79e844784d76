"""
Selection tracking and stale-result suppression.

A render takes a while, and the selection or the options can change before it
finishes. Every request is tagged with the selection it was made for and a
generation number; only the newest request for the current selection may
update the preview.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from ..errors import NoSelectionError
from .pipeline import render
from .raster import HalftoneOptions, check_dimensions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceImage:
    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class RenderRequest:
    selection_id: str
    generation: int
    options: HalftoneOptions
    source: SourceImage = field(compare=False, repr=False)


@dataclass(frozen=True)
class HalftoneResult:
    request: RenderRequest
    data: bytes
    width: int
    height: int


class HalftoneSession:
    """
    Holds the selected source image, the current options and the latest preview.

    Args:
        options: Initial options (defaults if None).
        seed: Jitter seed passed to every render. None keeps jitter random.
        max_workers: Worker threads used by `submit`.
    """

    def __init__(
        self,
        options: Optional[HalftoneOptions] = None,
        seed: Optional[int] = None,
        max_workers: int = 1
    ):
        self.options = options if options is not None else HalftoneOptions()
        self.seed = seed
        self.selection_id: Optional[str] = None
        self.source: Optional[SourceImage] = None
        self.preview: Optional[HalftoneResult] = None

        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[RenderRequest] = None

    def select(self, selection_id: str, data: bytes, width: int, height: int) -> None:
        """Switch to a new source image. Pending results for the old one become stale."""
        check_dimensions(width, height)
        with self._lock:
            self.selection_id = selection_id
            self.source = SourceImage(data, width, height)
            self.preview = None
            self._latest = None
            self._generation += 1

    def clear(self) -> None:
        with self._lock:
            self.selection_id = None
            self.source = None
            self.preview = None
            self._latest = None
            self._generation += 1

    def request(self, options: Optional[HalftoneOptions] = None) -> RenderRequest:
        """
        Create a render request for the current selection.

        Options are clamped into their valid ranges and become the session's
        current options. Any earlier request becomes stale.

        Raises:
            NoSelectionError: If no source image is selected.
        """
        with self._lock:
            if self.selection_id is None or self.source is None:
                raise NoSelectionError("No image selected")
            if options is not None:
                self.options = options.clamped()
            self._generation += 1
            request = RenderRequest(self.selection_id, self._generation, self.options, self.source)
            self._latest = request
            return request

    def is_current(self, request: RenderRequest) -> bool:
        with self._lock:
            return request == self._latest and request.selection_id == self.selection_id

    def run(self, request: RenderRequest) -> HalftoneResult:
        """
        Render a request synchronously. The result is not applied; see `accept`.

        The source image is the one selected when the request was made, even if
        the selection has changed since.
        """
        source = request.source
        data = render(source.data, source.width, source.height, request.options, seed=self.seed)
        return HalftoneResult(request, data, source.width, source.height)

    def submit(self, request: RenderRequest) -> "Future[HalftoneResult]":
        """Render a request on a worker thread."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self._max_workers)
            executor = self._executor
        return executor.submit(self.run, request)

    def accept(self, result: HalftoneResult) -> bool:
        """
        Store a result as the preview if its request is still the newest one.

        Returns:
            True if the result was applied, False if it was stale and discarded.
        """
        with self._lock:
            if result.request != self._latest or result.request.selection_id != self.selection_id:
                logger.debug(
                    "Discarding stale result (selection=%s, generation=%d)",
                    result.request.selection_id, result.request.generation
                )
                return False
            self.preview = result
            return True

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
