"""
Inference Worker
================

Dedicated thread that owns one model instance and serves inference
requests from a bounded FIFO queue.

Features:
- Exactly one inference call at a time per model
- Model loaded inside the worker thread (nothing else ever touches it)
- Cancellation tokens: queued work whose caller gave up is skipped
- Graceful shutdown with draining of already-accepted work
- Async bridge via ``asyncio.wrap_future`` so the event loop never blocks

Architecture:
- CancellationToken: thread-safe flag shared between caller and worker
- InferenceWorker: thread + queue + model; ``submit`` / ``call`` / ``run``

An in-flight call cannot be interrupted; if its caller has gone away the
result is simply discarded.
"""

import asyncio
import concurrent.futures
import logging
import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, TypeVar

from promptrouter.core.exceptions import (
    InferenceBusyError,
    InferenceError,
    RoutingCancelledError,
    RoutingTimeoutError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


class CancellationToken:
    """Cooperative cancellation flag shared across threads"""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RoutingCancelledError()


@dataclass
class _InferenceRequest:
    fn: Callable[[Any], Any]
    future: Future
    cancel_token: CancellationToken | None = None
    enqueued_at: float = field(default_factory=time.monotonic)


class InferenceWorker:
    """
    Owns one model and executes requests against it one at a time.

    Each request is a callable receiving the model. Requests run in
    submission order; callers needing a different worker are never blocked
    by this one.
    """

    def __init__(
        self,
        name: str,
        loader: Callable[[], Any],
        max_queue_size: int = 256,
        on_complete: Callable[[str, float], None] | None = None,
        on_queue_change: Callable[[str, int], None] | None = None,
    ):
        """
        Initialize inference worker.

        Args:
            name: Engine name used in logs, errors and metrics
            loader: Zero-argument callable returning the model; runs in the worker thread
            max_queue_size: Pending requests accepted before submit fails fast
            on_complete: Optional hook receiving (name, seconds) after each call
            on_queue_change: Optional hook receiving (name, depth) on every enqueue and dequeue
        """
        self.name = name
        self._loader = loader
        self._on_complete = on_complete
        self._on_queue_change = on_queue_change
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)

        self._state_lock = threading.Lock()
        self._ready = threading.Event()
        self._running = False
        self._thread: threading.Thread | None = None
        self._model: Any = None
        self._load_error: Exception | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ready(self) -> bool:
        return self._ready.is_set() and self._load_error is None

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    @property
    def max_queue_size(self) -> int:
        return self._queue.maxsize

    def start(self, wait: bool = True, timeout: float | None = None) -> None:
        """
        Start the worker thread and (optionally) wait for the model to load.

        Raises:
            InferenceError: If the model fails to load or does not load within timeout
        """
        with self._state_lock:
            if self._running:
                logger.warning(f"Inference worker {self.name} already running")
                return
            self._running = True
            self._ready.clear()
            self._load_error = None
            self._thread = threading.Thread(
                target=self._run, name=f"inference-{self.name}", daemon=True
            )
            self._thread.start()

        if not wait:
            return
        if not self._ready.wait(timeout):
            raise InferenceError(self.name, f"{self.name} model did not load within {timeout}s")
        if self._load_error is not None:
            raise InferenceError(
                self.name, f"{self.name} model failed to load: {self._load_error}"
            ) from self._load_error

    def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the worker gracefully.

        Requests accepted before the call still run; anything left when the
        thread does not finish within ``timeout`` is cancelled.
        """
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            thread = self._thread

        logger.info(f"Stopping inference worker {self.name}...")
        try:
            self._queue.put(_STOP, timeout=timeout)
            stop_queued = True
        except queue.Full:
            stop_queued = False
            logger.warning(f"Inference worker {self.name} queue still full after {timeout}s")

        if stop_queued and thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Inference worker {self.name} did not stop within {timeout}s")

        self._cancel_pending()
        if not stop_queued:
            self._queue.put_nowait(_STOP)

    def submit(self, fn: Callable[[Any], T], cancel_token: CancellationToken | None = None) -> "Future[T]":
        """
        Queue ``fn(model)`` for execution.

        Raises:
            InferenceError: If the worker is not running
            InferenceBusyError: If the queue is full
        """
        future: Future = Future()
        with self._state_lock:
            if not self._running:
                raise InferenceError(self.name, f"{self.name} worker is not running")
            try:
                self._queue.put_nowait(_InferenceRequest(fn, future, cancel_token))
            except queue.Full:
                raise InferenceBusyError(self.name, self._queue.maxsize) from None
        self._notify_queue_change()
        return future

    def call(
        self,
        fn: Callable[[Any], T],
        cancel_token: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> T:
        """Blocking submit-and-wait for callers that are already off the event loop"""
        future = self.submit(fn, cancel_token)
        try:
            return future.result(timeout)
        except concurrent.futures.CancelledError:
            raise RoutingCancelledError(f"{self.name} request cancelled") from None
        except concurrent.futures.TimeoutError:
            future.cancel()
            if cancel_token is not None:
                cancel_token.cancel()
            raise RoutingTimeoutError(timeout) from None

    async def run(self, fn: Callable[[Any], T], cancel_token: CancellationToken | None = None) -> T:
        """Await ``fn(model)`` without blocking the event loop"""
        future = self.submit(fn, cancel_token)
        try:
            return await asyncio.wrap_future(future)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                # Our caller is going away (deadline or shutdown): drop queued work
                future.cancel()
                if cancel_token is not None:
                    cancel_token.cancel()
                raise
            raise RoutingCancelledError(f"{self.name} request cancelled") from None

    def _run(self) -> None:
        """Main worker loop"""
        logger.info(f"Inference worker {self.name} loading model")
        started = time.monotonic()
        try:
            self._model = self._loader()
        except Exception as exc:
            self._load_error = exc
            logger.error(f"Inference worker {self.name} failed to load model: {exc}")
        else:
            logger.info(f"Inference worker {self.name} ready in {time.monotonic() - started:.2f}s")
        finally:
            self._ready.set()

        while True:
            request = self._queue.get()
            self._notify_queue_change()
            try:
                if request is _STOP:
                    break
                self._execute(request)
            finally:
                self._queue.task_done()

        self._model = None
        logger.info(f"Inference worker {self.name} stopped")

    def _execute(self, request: _InferenceRequest) -> None:
        if request.cancel_token is not None and request.cancel_token.cancelled:
            request.future.cancel()
        if not request.future.set_running_or_notify_cancel():
            logger.debug(f"Skipping cancelled request on {self.name}")
            return

        if self._load_error is not None:
            request.future.set_exception(
                InferenceError(self.name, f"{self.name} model unavailable: {self._load_error}")
            )
            return

        started = time.monotonic()
        try:
            result = request.fn(self._model)
        except Exception as exc:
            self._notify_complete(started)
            request.future.set_exception(exc)
        else:
            self._notify_complete(started)
            request.future.set_result(result)

    def _notify_complete(self, started: float) -> None:
        # Observers run before the future resolves
        if self._on_complete is None:
            return
        try:
            self._on_complete(self.name, time.monotonic() - started)
        except Exception:
            logger.exception(f"on_complete hook failed on {self.name}")

    def _notify_queue_change(self) -> None:
        if self._on_queue_change is None:
            return
        try:
            self._on_queue_change(self.name, self._queue.qsize())
        except Exception:
            logger.exception(f"on_queue_change hook failed on {self.name}")

    def _cancel_pending(self) -> None:
        cancelled = 0
        saw_stop = False
        while True:
            try:
                request = self._queue.get_nowait()
            except queue.Empty:
                break
            if request is _STOP:
                saw_stop = True
            elif request.future.cancel():
                cancelled += 1
            self._queue.task_done()
        if saw_stop:
            # The thread is still busy; it must still find the sentinel once free
            self._queue.put_nowait(_STOP)
        if cancelled:
            logger.warning(f"Cancelled {cancelled} pending request(s) on {self.name}")
