"""Offload executors running full schema builds off the caller's thread.

Executors accept a BuildRequest and eventually hand a BuildResponse to the
callback supplied with it. Only the most recently submitted request is
tracked; superseded work gets an advisory cancel and its result, if it still
arrives, is rejected by the coordinator.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Callable, Optional

from schema_lens.coordinator.messages import BuildRequest, BuildResponse, run_full_build

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[BuildResponse], None]


class OffloadExecutor(ABC):
    """Abstract base class for executors performing delegated full builds."""

    @abstractmethod
    def submit(self, request: BuildRequest, on_response: ResponseCallback) -> None:
        """Start a full build for ``request``.

        Args:
            request: The build to perform.
            on_response: Called with the BuildResponse once the build is done.
                May be called from another thread, or never.
        """
        raise NotImplementedError("Subclasses must implement submit")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest submitted build has been delivered.

        Returns:
            True if nothing is pending any more, False on timeout.
        """
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Release the executor's resources."""

    def __enter__(self) -> "OffloadExecutor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()


class PoolOffloadExecutor(OffloadExecutor):
    """Runs full builds on a concurrent.futures pool.

    Attributes:
        pool: The pool the builds are submitted to.
    """

    def __init__(self, pool: Executor) -> None:
        self.pool = pool
        self._lock = threading.Lock()
        self._latest: Optional[Future] = None
        self._latest_delivered: Optional[threading.Event] = None

    def submit(self, request: BuildRequest, on_response: ResponseCallback) -> None:
        delivered = threading.Event()
        future = self.pool.submit(run_full_build, request)

        with self._lock:
            previous, self._latest = self._latest, future
            self._latest_delivered = delivered

        if previous is not None and previous.cancel():
            logger.debug("Cancelled superseded build before it started")

        logger.debug("Submitted full build %s", request.instance_id)
        future.add_done_callback(lambda done: self._deliver(done, on_response, delivered))

    def _deliver(
        self, future: Future, on_response: ResponseCallback, delivered: threading.Event
    ) -> None:
        try:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                logger.warning("Full schema build failed: %s", error)
                return
            on_response(future.result())
        finally:
            delivered.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            delivered = self._latest_delivered
        if delivered is None:
            return True
        return delivered.wait(timeout)

    def shutdown(self, wait: bool = True) -> None:
        self.pool.shutdown(wait=wait)


class ThreadOffloadExecutor(PoolOffloadExecutor):
    """Runs full builds on a background thread pool."""

    def __init__(self, max_workers: int = 1) -> None:
        super().__init__(ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="schema-lens"))


class ProcessOffloadExecutor(PoolOffloadExecutor):
    """Runs full builds in worker processes.

    Requests and responses are pickled across the process boundary, so the
    worker only ever sees its own copy of the schema.
    """

    def __init__(self, max_workers: int = 1) -> None:
        super().__init__(ProcessPoolExecutor(max_workers=max_workers))
