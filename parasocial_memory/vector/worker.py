"""
Embedding worker and the asyncio-side service that talks to it.

The worker owns a dedicated thread so model loading and inference never block
the event loop. Requests go in through a queue as EmbedRequest dicts; replies
come back through a callback that hops onto the event loop. The service keeps
a pending-request table keyed by request_id and resolves each waiter exactly
once.
"""

import asyncio
import logging
import queue
import threading
import uuid
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

import numpy as np
from pydantic import ValidationError

from .embeddings import IEmbeddingProvider, l2_normalize
from .messages import EmbedError, EmbedProgress, EmbedRequest, EmbedResult, parse_reply
from ..core.errors import EmbeddingUnavailable
from ..util.logging import logger as structured_logger

logger = logging.getLogger(__name__)

_STOP = object()

# Most recent progress messages kept for health reporting
PROGRESS_HISTORY = 20


class EmbeddingWorker:
    """Runs an embedding provider on its own thread.

    The model is loaded on the first request and cached for the lifetime of
    the worker. Requests that arrive while loading is in progress wait in the
    inbox and are served once it completes. A failed load is reported as an
    error for the request that triggered it; the next request tries again.
    """

    def __init__(self, provider: IEmbeddingProvider):
        self.provider = provider
        self._inbox: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._reply: Optional[Callable[[dict], None]] = None
        self._load_lock = threading.Lock()
        self._loaded = False
        self.load_count = 0

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def model_loaded(self) -> bool:
        return self._loaded

    def start(self, reply: Callable[[dict], None]) -> None:
        """Start the worker thread. `reply` receives every outgoing message as a dict."""
        if self.is_alive:
            raise RuntimeError("Embedding worker already running")
        self._reply = reply
        self._thread = threading.Thread(target=self._run, name="embedding-worker", daemon=True)
        self._thread.start()

    def post(self, message: dict) -> None:
        self._inbox.put(message)

    def stop(self, timeout: float = 5.0) -> None:
        """Ask the thread to exit after the requests already queued."""
        if self._thread is None:
            return
        self._inbox.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def _send(self, message) -> None:
        self._reply(message.model_dump())

    def _run(self) -> None:
        while True:
            message = self._inbox.get()
            if message is _STOP:
                break
            self._handle(message)

    def _ensure_model(self) -> None:
        with self._load_lock:
            if self._loaded:
                return
            self._send(EmbedProgress(status="loading", model=self.provider.name))
            try:
                self.provider.load()
            except Exception as e:
                self._send(EmbedProgress(status="failed", model=self.provider.name, detail=str(e)))
                raise
            self.load_count += 1
            self._loaded = True
            self._send(EmbedProgress(status="ready", model=self.provider.name))

    def _handle(self, message) -> None:
        request_id = message.get("request_id") if isinstance(message, dict) else None

        try:
            request = EmbedRequest.model_validate(message)
        except ValidationError as e:
            if isinstance(request_id, str) and request_id:
                self._send(EmbedError(request_id=request_id, error=f"malformed request: {e.error_count()} error(s)"))
            else:
                logger.warning("Dropping malformed embedding request without request_id")
            return

        try:
            if not request.text.strip():
                raise ValueError("cannot embed empty text")
            self._ensure_model()
            vector = l2_normalize(self.provider.embed_text(request.text))
            if vector.size == 0 or not np.all(np.isfinite(vector)):
                raise ValueError("provider returned an empty or non-finite vector")
            self._send(EmbedResult(request_id=request.request_id, embedding=vector.tolist()))
        # Provider failures of any kind become an error reply for this request
        except Exception as e:
            self._send(EmbedError(request_id=request.request_id, error=str(e) or e.__class__.__name__))


class EmbeddingService:
    """Event-loop side of the embedding worker.

    `embed(text)` registers a future in the pending table, posts the request
    and awaits the reply. One consumer task drains the reply queue. Replies
    whose request_id is no longer pending (timed out, cancelled, or already
    resolved) are dropped.
    """

    def __init__(self, worker: EmbeddingWorker, timeout: Optional[float] = None,
                 on_progress: Optional[Callable[[EmbedProgress], None]] = None):
        self.worker = worker
        self.timeout = timeout
        self.on_progress = on_progress
        self._pending: Dict[str, asyncio.Future] = {}
        self._replies: Optional[asyncio.Queue] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._consumer_task: Optional[asyncio.Task] = None
        self.progress: Deque[EmbedProgress] = deque(maxlen=PROGRESS_HISTORY)

    @property
    def is_running(self) -> bool:
        return self._consumer_task is not None and not self._consumer_task.done() and self.worker.is_alive

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        if self._consumer_task is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._replies = asyncio.Queue()
        self._consumer_task = asyncio.create_task(self._consume(), name="embedding-replies")
        self.worker.start(self._post_reply)

    async def close(self) -> None:
        """Stop the worker and fail every request still waiting."""
        await asyncio.to_thread(self.worker.stop)

        if self._consumer_task is not None:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("Embedding reply consumer exited with an error")
            self._consumer_task = None

        for future in list(self._pending.values()):
            if not future.done():
                future.set_exception(EmbeddingUnavailable("embedding service closed"))
        self._pending.clear()

    def _post_reply(self, raw: dict) -> None:
        # Worker thread -> event loop
        try:
            self._loop.call_soon_threadsafe(self._replies.put_nowait, raw)
        except RuntimeError:
            logger.debug("Event loop closed; dropping embedding reply")

    async def _consume(self) -> None:
        while True:
            raw = await self._replies.get()
            try:
                self.dispatch(raw)
            except Exception:
                logger.exception("Failed to dispatch embedding reply")

    def dispatch(self, raw) -> None:
        """Match one reply against the pending table."""
        try:
            reply = parse_reply(raw)
        except ValidationError:
            logger.warning("Dropping malformed embedding reply")
            return

        if isinstance(reply, EmbedProgress):
            self.progress.append(reply)
            structured_logger.log_embedding_event("progress", details={"status": reply.status, "model": reply.model})
            if self.on_progress is not None:
                try:
                    self.on_progress(reply)
                except Exception:
                    logger.exception("Progress callback raised")
            return

        future = self._pending.pop(reply.request_id, None)
        if future is None:
            structured_logger.log_embedding_event("dropped", reply.request_id, {"reason": "unknown request_id"})
            return
        if future.done():
            return

        if isinstance(reply, EmbedResult):
            future.set_result(reply.embedding)
        else:
            future.set_exception(EmbeddingUnavailable(reply.error))

    async def embed(self, text: str) -> List[float]:
        """Embed one text. Raises EmbeddingUnavailable on any failure or timeout."""
        if not self.is_running:
            raise EmbeddingUnavailable("embedding service is not running")

        request_id = uuid.uuid4().hex
        future = self._loop.create_future()
        self._pending[request_id] = future
        self.worker.post(EmbedRequest(request_id=request_id, text=text).model_dump())

        try:
            if self.timeout:
                return await asyncio.wait_for(future, self.timeout)
            return await future
        except asyncio.TimeoutError:
            structured_logger.log_embedding_event("timeout", request_id, {"timeout_sec": self.timeout}, status="failed")
            raise EmbeddingUnavailable(f"embedding timed out after {self.timeout}s") from None
        finally:
            self._pending.pop(request_id, None)
