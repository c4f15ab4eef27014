"""Runs listings on worker threads and hands results back on the owner thread."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Callable

from dirpicker.models import ListingRequest, ListingResult

logger = logging.getLogger(__name__)

Lister = Callable[[ListingRequest], ListingResult]
ResultCallback = Callable[[ListingResult], None]


class RefreshOrchestrator:
    """Fire-and-forget listing workers.

    Workers only produce ``ListingResult`` messages. ``drain()`` must be called
    from the thread that owns the session; it is the only place callbacks run.
    """

    def __init__(
        self,
        lister: Lister,
        *,
        max_workers: int = 2,
        executor: concurrent.futures.Executor | None = None,
    ) -> None:
        self._lister = lister
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=max(1, int(max_workers)),
            thread_name_prefix="dirpicker-listing",
        )
        self._pending: dict[concurrent.futures.Future, tuple[ListingRequest, ResultCallback]] = {}
        self._closed = False

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def submit(self, request: ListingRequest, callback: ResultCallback) -> concurrent.futures.Future | None:
        if self._closed:
            return None
        try:
            future = self._executor.submit(self._lister, request)
        except RuntimeError:
            logger.debug("Executor rejected listing of %s", request.path)
            return None
        self._pending[future] = (request, callback)
        return future

    def drain(self) -> int:
        """Deliver every finished listing. Returns how many were delivered."""
        done: list[concurrent.futures.Future] = [future for future in self._pending if future.done()]
        for future in done:
            request, callback = self._pending.pop(future)
            try:
                result = future.result()
            except concurrent.futures.CancelledError:
                continue
            except Exception:
                logger.exception("Listing worker failed for %s", request.path)
                result = ListingResult(generation=request.generation, path=request.path)
            callback(result)
        return len(done)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until all pending listings finish. True if none are left running."""
        if not self._pending:
            return True
        _done, not_done = concurrent.futures.wait(list(self._pending), timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        self._closed = True
        for future in list(self._pending):
            future.cancel()
        self._pending.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
