"""
Loki log shipper.

A single aggregator thread drains a bounded queue of LogEntry objects,
groups them by label-set signature and pushes each batch to Loki.

Flush triggers:
- Size: the number of distinct label sets in the batch reaches batch_size.
  Many lines from one hook share a label set and count once.
- Time: a periodic tick every batch_wait seconds flushes a non-empty batch.

Delivery is best-effort. Failed pushes are logged and the batch is dropped.
On close the pending batch is discarded, not flushed.
"""

import json
import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import httpx

logger = logging.getLogger("hooktail.shipper")

HOOK_ID_LABEL = "hook_id"


def label_signature(labels: Mapping[str, str]) -> str:
    """
    Deterministic string encoding of a label set.

    Labels are sorted by name and rendered as {name="value", ...}.
    """
    pairs = [f"{name}={json.dumps(labels[name])}" for name in sorted(labels)]
    return "{" + ", ".join(pairs) + "}"


@dataclass(frozen=True)
class LogEntry:
    """One captured output line destined for Loki."""

    labels: Mapping[str, str]
    line: str
    timestamp_ns: int
    signature: str

    @classmethod
    def create(
        cls, labels: Mapping[str, str], line: str, timestamp_ns: Optional[int] = None
    ) -> "LogEntry":
        labels = dict(labels)
        return cls(
            labels=labels,
            line=line,
            timestamp_ns=time.time_ns() if timestamp_ns is None else timestamp_ns,
            signature=label_signature(labels),
        )


Batch = Dict[str, List[LogEntry]]


def build_push_request(batch: Batch) -> Dict[str, Any]:
    """Serialize a batch into a Loki push request body."""
    streams = []
    for entries in batch.values():
        if not entries:
            continue
        streams.append(
            {
                "stream": dict(entries[0].labels),
                "values": [[str(e.timestamp_ns), e.line] for e in entries],
            }
        )
    return {"streams": streams}


class LogShipper:
    """Batching Loki client with one owned aggregator thread."""

    def __init__(
        self,
        url: str,
        batch_wait: float = 5,
        batch_size: int = 100,
        timeout: float = 10,
        labels: Optional[Mapping[str, str]] = None,
        queue_size: int = 10000,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the shipper. Call start() to launch the aggregator.

        Args:
            url: Loki base URL; /loki/api/v1/push is appended
            batch_wait: Seconds between periodic flushes
            batch_size: Number of distinct label sets that forces a flush
            timeout: Timeout in seconds for each push request
            labels: Static labels attached to every entry
            queue_size: Capacity of the inbound queue; producers block when full
            client: Optional preconfigured httpx.Client (used by tests)
        """
        self.push_url = url.rstrip("/") + "/loki/api/v1/push"
        self.batch_wait = batch_wait
        self.batch_size = batch_size
        self.labels = dict(labels or {})
        self.client = client or httpx.Client(timeout=timeout)
        self.timeout = timeout

        self._entries: "queue.Queue[Optional[LogEntry]]" = queue.Queue(maxsize=queue_size)
        self._quit = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.flushed_batches = 0
        self.dropped_batches = 0

    def start(self) -> None:
        """Start the aggregator thread. Calling twice is a no-op."""
        if self._thread and self._thread.is_alive():
            return
        if self.client.is_closed:
            self.client = httpx.Client(timeout=self.timeout)
        self._quit.clear()
        self._thread = threading.Thread(target=self.run, daemon=True, name="loki-shipper")
        self._thread.start()
        logger.info(f"Loki shipper started (push url: {self.push_url})")

    def close(self, join_timeout: Optional[float] = 5) -> None:
        """
        Stop the aggregator. Entries not yet flushed are lost.
        """
        self._quit.set()
        try:
            self._entries.put_nowait(None)
        except queue.Full:
            pass
        if self._thread:
            self._thread.join(join_timeout)
            if self._thread.is_alive():
                logger.warning("Loki shipper did not stop within timeout")
        self.client.close()
        logger.info("Loki shipper stopped")

    def push_log(self, hook_id: str, line: str) -> None:
        """Label line with the static labels plus hook_id and enqueue it."""
        labels = dict(self.labels)
        labels[HOOK_ID_LABEL] = hook_id
        self.enqueue(LogEntry.create(labels, line))

    def enqueue(self, entry: LogEntry) -> None:
        """Hand an entry to the aggregator, blocking while the queue is full."""
        self._entries.put(entry)

    def run(self) -> None:
        """Aggregator loop. Sole owner of the batch."""
        batch: Batch = {}
        next_tick = time.monotonic() + self.batch_wait

        while not self._quit.is_set():
            remaining = next_tick - time.monotonic()
            if remaining <= 0:
                if batch:
                    self.send_batch(batch)
                    batch = {}
                next_tick += self.batch_wait
                continue

            try:
                entry = self._entries.get(timeout=remaining)
            except queue.Empty:
                continue

            if entry is None:
                continue

            batch.setdefault(entry.signature, []).append(entry)
            if len(batch) >= self.batch_size:
                self.send_batch(batch)
                batch = {}

        if batch:
            logger.debug(f"Discarding {len(batch)} unflushed stream(s) on shutdown")

    def send_batch(self, batch: Batch) -> bool:
        """
        Push one batch to Loki.

        Returns:
            True if Loki accepted the batch, False if it was dropped
        """
        body = build_push_request(batch)
        logger.debug(f"Pushing {len(body['streams'])} stream(s) to Loki")

        try:
            response = self.client.post(
                self.push_url,
                content=json.dumps(body),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"Error sending to Loki: {e}")
            self.dropped_batches += 1
            return False
        except Exception:
            logger.exception("Unexpected error sending to Loki")
            self.dropped_batches += 1
            return False

        if response.status_code // 100 != 2:
            logger.error(f"Error response from Loki: {response.status_code}: {response.text}")
            self.dropped_batches += 1
            return False

        self.flushed_batches += 1
        return True
