"""
Push channel to the catalog backend.

One CatalogSyncClient per session holds a Socket.IO connection to the
real-time namespace, joins the tenant's admin room and funnels every inbound
message into a single broadcast stream, `updates`. Messages only say that
something changed; the snapshot loader re-pulls the actual data.
"""
import functools
import os
import threading
import time
from enum import Enum
from typing import Any, Callable, Mapping, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from . import config
from .errors import NetworkError
from .logger import get_logger
from .observable import EventStream

logger = get_logger(__name__)

SYNC_NAMESPACE = os.getenv("SYNC_NAMESPACE", "/real-time-updates")
SYNC_MAX_ATTEMPTS = int(os.getenv("SYNC_MAX_ATTEMPTS", "5"))
SYNC_RETRY_DELAY = float(os.getenv("SYNC_RETRY_DELAY", "1.0"))
SYNC_CONNECT_TIMEOUT = float(os.getenv("SYNC_CONNECT_TIMEOUT", "5.0"))

JOIN_EVENT = "join-admin-room"
DYNAMIC_UPDATE_EVENT = "dynamic-update"
HOME_PAGE_EVENT = "home-page"


class SyncState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"


class _Aborted(Exception):
    """Raised inside the attempt loop when the client was disposed meanwhile."""


def _default_client() -> socketio.Client:
    # Reconnection is driven by our own bounded attempt loop.
    return socketio.Client(reconnection=False, logger=False, engineio_logger=False)


class CatalogSyncClient:
    def __init__(
        self,
        api_base: Optional[str] = None,
        namespace: str = SYNC_NAMESPACE,
        max_attempts: int = SYNC_MAX_ATTEMPTS,
        retry_delay: float = SYNC_RETRY_DELAY,
        connect_timeout: float = SYNC_CONNECT_TIMEOUT,
        client_factory: Callable[[], Any] = _default_client,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_base = (api_base or config.API_BASE).rstrip("/")
        self.namespace = namespace
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.connect_timeout = connect_timeout
        self._client_factory = client_factory
        self._sleep = sleep

        self.updates: EventStream = EventStream("sync-updates")
        self.state_changes: EventStream = EventStream("sync-state")

        self._sio: Any = None
        self._tenant_id: Optional[str] = None
        self._state = SyncState.DISCONNECTED
        self._attempting = False
        self._generation = 0
        self._disposed = False
        self._lock = threading.RLock()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def tenant_id(self) -> Optional[str]:
        return self._tenant_id

    @property
    def is_connected(self) -> bool:
        sio = self._sio
        return (
            self._state == SyncState.CONNECTED
            and sio is not None
            and bool(getattr(sio, "connected", True))
        )

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _set_state(self, state: SyncState) -> None:
        if self._state == state or self._state == SyncState.CLOSED:
            return
        logger.debug("Sync state %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changes.publish(state)

    # Lifecycle

    def connect(self, tenant_id: str) -> bool:
        """
        Open the channel and join tenant_id's room. A no-op while a live
        channel exists or an attempt loop is already running. Returns whether
        the client is connected afterwards.
        """
        with self._lock:
            if self._disposed:
                logger.warning("connect() on a disposed sync client ignored")
                return False
            if self.is_connected or self._attempting:
                return self.is_connected
            self._tenant_id = tenant_id
            self._attempting = True

        try:
            return self._run_attempts(SyncState.CONNECTING)
        finally:
            with self._lock:
                self._attempting = False

    def disconnect(self) -> None:
        with self._lock:
            self._generation += 1
            self._teardown()
            self._set_state(SyncState.DISCONNECTED)

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._generation += 1
            self._teardown()
            self._set_state(SyncState.CLOSED)
        self.updates.close()
        self.state_changes.close()
        logger.info("Sync client disposed")

    def _teardown(self) -> None:
        sio, self._sio = self._sio, None
        if sio is None:
            return
        try:
            sio.disconnect()
        except Exception as e:
            logger.debug("Ignoring error while closing sync channel: %s", e)

    # Attempt loop

    def _run_attempts(self, state: SyncState) -> bool:
        generation = self._generation
        self._set_state(state)
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(NetworkError),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._open_channel(generation)
        except RetryError as e:
            logger.error(
                "Sync channel to %s%s unavailable after %d attempts: %s",
                self.api_base, self.namespace, self.max_attempts, e.last_attempt.exception(),
            )
            with self._lock:
                self._teardown()
                self._set_state(SyncState.DISCONNECTED)
            return False
        except _Aborted:
            return False

        logger.info("Sync channel connected for admin %s", self._tenant_id)
        return True

    def _log_retry(self, retry_state) -> None:
        logger.warning(
            "Sync connect attempt %d/%d failed (%s); retrying in %.1fs",
            retry_state.attempt_number, self.max_attempts,
            retry_state.outcome.exception(), self.retry_delay,
        )

    def _open_channel(self, generation: int) -> None:
        with self._lock:
            if self._disposed or generation != self._generation:
                raise _Aborted()
            self._teardown()
            sio = self._client_factory()
            for event, handler in (
                ("connect", self._on_connect),
                ("disconnect", self._on_disconnect),
                (DYNAMIC_UPDATE_EVENT, self._on_dynamic_update),
                (HOME_PAGE_EVENT, self._on_home_page),
            ):
                sio.on(event, functools.partial(handler, sio), namespace=self.namespace)
            self._sio = sio

        try:
            sio.connect(
                self.api_base,
                namespaces=[self.namespace],
                transports=["websocket"],
                wait_timeout=self.connect_timeout,
            )
        except SocketIOConnectionError as e:
            with self._lock:
                if self._sio is sio:
                    self._sio = None
            raise NetworkError(f"connect to {self.api_base}{self.namespace} failed: {e}") from e

        with self._lock:
            if self._disposed or generation != self._generation or self._sio is not sio:
                stale = sio
            else:
                stale = None
                self._set_state(SyncState.CONNECTED)
        if stale is not None:
            # Torn down while connect() was in progress; nobody else will close it.
            try:
                stale.disconnect()
            except Exception as e:
                logger.debug("Ignoring error while closing stale sync channel: %s", e)
            raise _Aborted()

    # Channel callbacks; all of them ignore clients that were replaced or disposed.

    def _live(self, sio: Any) -> bool:
        return not self._disposed and sio is self._sio

    def _on_connect(self, sio: Any, *args) -> None:
        if not self._live(sio):
            return
        if self._tenant_id:
            sio.emit(JOIN_EVENT, {"adminId": self._tenant_id}, namespace=self.namespace)
            logger.info("Joined admin room %s", self._tenant_id)
        self._set_state(SyncState.CONNECTED)

    def _on_disconnect(self, sio: Any, *args) -> None:
        with self._lock:
            if not self._live(sio):
                return
            logger.warning("Sync channel dropped (%s); reconnecting", args[0] if args else "no reason")
            self._set_state(SyncState.RECONNECTING)
            if self._attempting:
                return
            self._attempting = True
        sio.start_background_task(self._reconnect)

    def _reconnect(self) -> None:
        try:
            self._run_attempts(SyncState.RECONNECTING)
        finally:
            with self._lock:
                self._attempting = False

    def _on_dynamic_update(self, sio: Any, data: Any = None, *args) -> None:
        if not self._live(sio):
            return
        if isinstance(data, Mapping) and "type" in data:
            self.updates.publish(dict(data))
        else:
            self.updates.publish({"type": DYNAMIC_UPDATE_EVENT, "data": data})

    def _on_home_page(self, sio: Any, data: Any = None, *args) -> None:
        if not self._live(sio):
            return
        self.updates.publish({"type": HOME_PAGE_EVENT, "data": data})
