"""Event queue — batches user actions and flushes on size or time threshold."""

import atexit
import logging
import threading

from action_log.errors import TransportError
from action_log.models import ensure_timestamp

logger = logging.getLogger(__name__)


class EventQueue:
    """Per-stream queue of log entries, delivered in batches.

    A stream is delivered as soon as it holds ``batch_size`` entries, and
    everything queued is flushed ``batch_timeout_ms`` after the first entry
    queued since the last flush. Batches are taken out under the lock and
    delivered outside it, so producers are never blocked by network I/O.

    Delivery is at-most-once: a failed batch is reported, never re-queued.
    """

    def __init__(
        self,
        transport,
        default_stream: str,
        batch_size: int = 10,
        batch_timeout_ms: int = 5000,
        merge_mode: str = "append",
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._transport = transport
        self._default_stream = default_stream
        self._batch_size = batch_size
        self._batch_timeout_ms = batch_timeout_ms
        self._merge_mode = merge_mode

        self._queues: dict[str, list[dict]] = {}
        self._timer = None
        self._lock = threading.Lock()
        self._closed = False

    # Public API

    def enqueue(self, entry, stream_name: str | None = None):
        """Queue *entry* (timestamped if needed).

        When the stream reaches ``batch_size`` its batch is taken out in the
        same critical section and delivered; the results are returned.
        Otherwise returns None. A failed size-triggered delivery raises
        TransportError.
        """
        stream = stream_name or self._default_stream
        data = ensure_timestamp(entry)
        batch = None

        with self._lock:
            queue = self._queues.setdefault(stream, [])
            queue.append(data)
            if len(queue) >= self._batch_size:
                batch = self._queues.pop(stream)
                if not any(self._queues.values()):
                    self._cancel_timer()
            elif self._timer is None and not self._closed:
                self._timer = threading.Timer(self._batch_timeout_ms / 1000.0, self._on_timer)
                self._timer.daemon = True
                self._timer.start()

        if batch is not None:
            return self._deliver({stream: batch})
        return None

    def flush(self) -> list:
        """Deliver everything queued, one request per stream.

        No-op on an empty queue. Every stream is attempted; the first
        TransportError is re-raised afterwards.
        """
        batches = self._take_all()
        if not batches:
            return []
        return self._deliver(batches)

    def send_immediate(self, entry, stream_name: str | None = None) -> dict:
        """Deliver one entry right away, bypassing the queue and its timer."""
        stream = stream_name or self._default_stream
        return self._transport.send_log(entry, stream, mode=self._merge_mode)

    def close(self):
        """Cancel the timer and make a best-effort final flush."""
        with self._lock:
            self._closed = True
        try:
            self.flush()
        except TransportError:
            logger.exception("Final flush failed")

    def install_exit_hook(self):
        """Flush on interpreter exit."""
        atexit.register(self.close)

    @property
    def pending_count(self) -> int:
        """Number of entries currently waiting, across all streams."""
        with self._lock:
            return sum(len(queue) for queue in self._queues.values())

    @property
    def timer_pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    # Internal helpers

    def _take_all(self) -> dict:
        """Swap out the pending batches and cancel the timer, atomically."""
        with self._lock:
            batches = {stream: queue for stream, queue in self._queues.items() if queue}
            self._queues = {}
            self._cancel_timer()
        return batches

    def _cancel_timer(self):
        # caller holds self._lock
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _deliver(self, batches: dict) -> list:
        results = []
        failure = None
        for stream, batch in batches.items():
            try:
                results.append(
                    self._transport.send_batch(batch, stream, mode=self._merge_mode)
                )
                logger.debug("Flushed %d entries to %s", len(batch), stream)
            except TransportError as exc:
                logger.warning("Dropped batch of %d entries for %s: %s", len(batch), stream, exc)
                if failure is None:
                    failure = exc

        if failure is not None:
            raise failure
        return results

    def _on_timer(self):
        try:
            self.flush()
        except TransportError:
            logger.exception("Timer flush failed")
