from typing import List, Optional

from fetchers import admin

from .errors import ConfigurationError
from .loader import CatalogSnapshotLoader
from .logger import get_logger
from .models import Snapshot
from .observable import Subscription
from .stores import CartStore, WishlistStore
from .sync import CatalogSyncClient
from .tenant import TenantResolver

logger = get_logger(__name__)


class StorefrontSession:
    """
    Owns everything one running storefront needs: tenant resolution, the
    catalog snapshot, the push channel and the cart/wishlist. The UI layer
    gets one of these at startup and must call dispose() on teardown.
    """

    def __init__(
        self,
        resolver: Optional[TenantResolver] = None,
        loader: Optional[CatalogSnapshotLoader] = None,
        sync: Optional[CatalogSyncClient] = None,
        cart: Optional[CartStore] = None,
        wishlist: Optional[WishlistStore] = None,
        live_updates: bool = True,
        poll: bool = True,
    ):
        self.resolver = resolver or TenantResolver()
        self.loader = loader or CatalogSnapshotLoader()
        self.sync = sync or CatalogSyncClient()
        self.cart = cart or CartStore()
        self.wishlist = wishlist or WishlistStore()
        self.live_updates = live_updates
        self.poll = poll

        self.tenant_id: Optional[str] = None
        self.needs_configuration = False
        self._subscriptions: List[Subscription] = []
        self._started = False
        self._disposed = False

    @property
    def snapshot(self) -> Snapshot:
        return self.loader.snapshot

    def start(self) -> bool:
        """
        Resolve the tenant, load the first snapshot and go live. Returns False
        (with needs_configuration set) when no tenant can be resolved.
        """
        if self._disposed:
            raise RuntimeError("StorefrontSession already disposed")
        if self._started:
            return True

        try:
            self.tenant_id = self.resolver.resolve()
        except ConfigurationError as e:
            self.needs_configuration = True
            logger.error("Storefront not configured: %s", e)
            return False

        self.needs_configuration = False
        self.loader.load(self.tenant_id)

        if self.live_updates:
            self._subscriptions.append(self.loader.attach(self.sync))
            self.sync.connect(self.tenant_id)
        if self.poll:
            self.loader.start_polling()

        self._started = True
        logger.info(
            "Storefront session started for admin %s (%d products, live=%s)",
            self.tenant_id, len(self.snapshot.products), self.sync.is_connected,
        )
        return True

    def switch_tenant(self, tenant_id: str) -> Snapshot:
        self.resolver.set_tenant_id(tenant_id)
        self.tenant_id = self.resolver.current
        self.needs_configuration = False

        snap = self.loader.load(self.tenant_id)
        if self.live_updates and self._started:
            self.sync.disconnect()
            self.sync.connect(self.tenant_id)
        return snap

    def fetch_app_name(self) -> str:
        if not self.tenant_id:
            return admin.DEFAULT_APP_NAME
        return admin.fetch_app_name(self.tenant_id)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        self.loader.dispose()
        self.sync.dispose()
        logger.info("Storefront session disposed")
