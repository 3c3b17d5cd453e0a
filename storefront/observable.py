import threading
from typing import Callable, Generic, List, TypeVar

from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
Listener = Callable[[T], None]


class Subscription:
    """Handle returned by EventStream.subscribe; cancel() is idempotent."""

    def __init__(self, stream: "EventStream", listener: Listener):
        self._stream = stream
        self._listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._stream.unsubscribe(self._listener)


class EventStream(Generic[T]):
    """
    Broadcast stream: each listener receives every event published after it
    subscribed, synchronously and in subscription order. No replay.

    Once closed, publish() is a no-op and subscribe() hands back an inactive
    subscription. close() may be called any number of times.
    """

    def __init__(self, name: str = "stream"):
        self.name = name
        self._listeners: List[Listener] = []
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Subscription:
        sub = Subscription(self, listener)
        with self._lock:
            if self._closed:
                sub.active = False
                return sub
            self._listeners.append(listener)
        return sub

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def publish(self, event: T) -> None:
        with self._lock:
            if self._closed:
                return
            listeners = list(self._listeners)

        for listener in listeners:
            if self._closed:
                return
            try:
                listener(event)
            except Exception as e:
                logger.exception("Listener %r on %s failed: %s", listener, self.name, e)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._listeners.clear()
