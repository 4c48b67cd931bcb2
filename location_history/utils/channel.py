"""
Bounded hand-off between the decoding thread and the consumer.

The producer sends records and finishes with complete() or fail(error); the
consumer iterates and afterwards reads `status` to tell a clean end of
stream from a failure. The consumer may close() early, after which the
producer's next send() raises ChannelDisconnected.
"""

import queue
import threading
from enum import Enum
from typing import Iterator, Optional

from location_history.errors import ChannelDisconnected
from location_history.models import LocationRecord


class IngestStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class _Finished:
    __slots__ = ("status", "error")

    def __init__(self, status: IngestStatus, error: Optional[BaseException] = None):
        self.status = status
        self.error = error


class LocationChannel:
    def __init__(self, maxsize: int = 1024, poll_interval: float = 0.1):
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._poll_interval = poll_interval
        # Only touched by the consumer side
        self.status = IngestStatus.RUNNING
        self.error: Optional[BaseException] = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _put(self, item) -> None:
        # Block while full, but notice a disconnect within poll_interval
        while True:
            if self._closed.is_set():
                raise ChannelDisconnected("Consumer closed the channel")
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return
            except queue.Full:
                continue

    def send(self, location: LocationRecord) -> None:
        """
        Hand a record to the consumer.

        Raises:
            ChannelDisconnected: If the consumer has closed the channel
        """
        self._put(location)

    def complete(self) -> None:
        """Mark the stream as fully delivered."""
        self._finish(_Finished(IngestStatus.COMPLETED))

    def fail(self, error: BaseException) -> None:
        """Mark the stream as aborted by error."""
        self._finish(_Finished(IngestStatus.FAILED, error))

    def _finish(self, marker: _Finished) -> None:
        try:
            self._put(marker)
        except ChannelDisconnected:
            pass  # nobody is listening for the status anymore

    def close(self) -> None:
        """Disconnect the consumer. Safe to call more than once."""
        self._closed.set()
        if self.status is IngestStatus.RUNNING:
            self.status = IngestStatus.CANCELLED

    def __iter__(self) -> Iterator[LocationRecord]:
        while not self._closed.is_set():
            item = self._queue.get()
            if isinstance(item, _Finished):
                self.status = item.status
                self.error = item.error
                return
            yield item
