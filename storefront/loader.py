"""
Pull-based catalog snapshot with push-triggered and periodic refresh.

The loader always has something renderable: the last snapshot that loaded
successfully, or the default store shape before the first success. Failed
loads are logged and recorded in `last_error`; they never replace the
visible snapshot.
"""
import datetime
import threading
from typing import Any, Callable, List, Optional

import pytz

from fetchers import SNAPSHOT_FETCHERS

from . import config
from .errors import NetworkError
from .logger import get_logger
from .models import CatalogProduct, Snapshot, SyncEvent
from .observable import EventStream, Subscription

logger = get_logger(__name__)

Fetcher = Callable[[str], Snapshot]


class CatalogSnapshotLoader:
    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        poll_seconds: float = config.POLL_SECONDS,
    ):
        if fetcher is None:
            fetcher = SNAPSHOT_FETCHERS.get(config.SNAPSHOT_SOURCE, SNAPSHOT_FETCHERS["form"])
        self._fetcher = fetcher
        self.poll_seconds = poll_seconds

        self.changes: EventStream = EventStream("snapshot")
        self._snapshot = Snapshot()
        self._tenant_id: Optional[str] = None
        self._is_loading = False
        self.last_error: Optional[Exception] = None
        self.last_loaded_at: Optional[datetime.datetime] = None

        self._lock = threading.Lock()
        self._in_flight = False
        self._pending = False
        self._disposed = False

        self._subscription: Optional[Subscription] = None
        self._poll_stop = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def tenant_id(self) -> Optional[str]:
        return self._tenant_id

    @property
    def is_loading(self) -> bool:
        """True only during an explicit load; background refreshes stay quiet."""
        return self._is_loading

    def load(self, tenant_id: str, background: bool = False) -> Snapshot:
        """
        Fetch the snapshot for tenant_id and make it the visible one. On any
        failure the previous snapshot (or the defaults) stays visible and is
        returned.
        """
        if tenant_id != self._tenant_id:
            # New tenant: nothing of the old one may stay visible.
            self._tenant_id = tenant_id
            self._snapshot = Snapshot(tenant_id=tenant_id)
        if not background:
            self._is_loading = True

        try:
            fresh = self._fetcher(tenant_id)
        except NetworkError as e:
            self.last_error = e
            logger.warning("Snapshot load for admin %s failed, keeping last known: %s", tenant_id, e)
            return self._snapshot
        except Exception as e:
            self.last_error = e
            logger.exception("Snapshot load for admin %s threw unexpected exception: %s", tenant_id, e)
            return self._snapshot
        finally:
            if not background:
                self._is_loading = False

        if self._disposed or tenant_id != self._tenant_id:
            logger.info("Discarding snapshot for admin %s; no longer active", tenant_id)
            return self._snapshot

        self._snapshot = fresh
        self.last_error = None
        self.last_loaded_at = datetime.datetime.now(tz=pytz.UTC)
        self.changes.publish(fresh)
        return fresh

    def refresh(self) -> Snapshot:
        if not self._tenant_id:
            return self._snapshot
        return self.load(self._tenant_id, background=True)

    def request_reload(self) -> None:
        """
        Schedule a background refresh. While one is running, any number of
        further requests collapse into a single follow-up refresh.
        """
        with self._lock:
            if self._disposed:
                return
            if self._in_flight:
                self._pending = True
                return
            self._in_flight = True

        try:
            while True:
                self.refresh()
                with self._lock:
                    if not self._pending or self._disposed:
                        self._in_flight = False
                        return
                    self._pending = False
        except BaseException:
            with self._lock:
                self._in_flight = False
                self._pending = False
            raise

    def handle_update(self, message: Any) -> None:
        if self._disposed:
            return
        event = SyncEvent.from_message(message, self._tenant_id)
        if event is None:
            logger.debug("Ignoring sync message %r", message)
            return
        logger.info("Received %s for admin %s; reloading snapshot", event.kind, self._tenant_id)
        self.request_reload()

    def attach(self, sync_client) -> Subscription:
        """Reload on every catalog change announced by sync_client.updates."""
        self.detach()
        self._subscription = sync_client.updates.subscribe(self.handle_update)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    # Fallback polling

    def start_polling(self, interval: Optional[float] = None) -> None:
        if self._poll_thread is not None and self._poll_thread.is_alive():
            return
        if interval is not None:
            self.poll_seconds = interval
        self._poll_stop.clear()
        self._poll_thread = threading.Thread(
            target=self._poll_loop, name="snapshot-poll", daemon=True
        )
        self._poll_thread.start()
        logger.info("Background snapshot refresh every %.0fs", self.poll_seconds)

    def _poll_loop(self) -> None:
        while not self._poll_stop.wait(self.poll_seconds):
            try:
                self.request_reload()
            except Exception as e:
                logger.exception("Background snapshot refresh failed: %s", e)

    def stop_polling(self) -> None:
        self._poll_stop.set()
        thread, self._poll_thread = self._poll_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
        self.detach()
        self.stop_polling()
        self.changes.close()

    # Catalog queries

    def filter_products(self, query: str) -> List[CatalogProduct]:
        """Case-insensitive substring match on name, price and discount price."""
        products = list(self._snapshot.products)
        q = (query or "").strip().lower()
        if not q:
            return products
        return [
            p for p in products
            if q in p.name.lower() or q in p.raw_price.lower() or q in p.raw_discount_price.lower()
        ]
