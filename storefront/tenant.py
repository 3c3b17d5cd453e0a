import sqlite3
from typing import Callable, Optional

from fetchers import admin

from . import config, storage
from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)


class TenantResolver:
    """
    Works out which admin's store this client shows.

    Resolution order, first hit wins:
      1. value cached in memory by an earlier resolve()/set_tenant_id()
      2. durable storage key "admin_id"
      3. the published default id, unless it is still the build placeholder
      4. one GET to the app-info endpoint
    Hits from 3 and 4 are persisted so the next resolve stops at 1 or 2.
    """

    def __init__(
        self,
        default_id: Optional[str] = None,
        placeholder: str = config.ADMIN_ID_PLACEHOLDER,
        detect: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.default_id = config.STOREFRONT_ADMIN_ID if default_id is None else default_id
        self.placeholder = placeholder
        self._detect = detect or admin.detect_admin_id
        self._current: Optional[str] = None

    @property
    def current(self) -> Optional[str]:
        return self._current

    def resolve(self) -> str:
        if self._current:
            return self._current

        try:
            stored = storage.get_value(storage.ADMIN_ID_KEY)
        except (sqlite3.Error, OSError) as e:
            logger.warning("Could not read stored admin id: %s", e)
            stored = None
        if stored and stored.strip():
            self._current = stored.strip()
            logger.info("Using stored admin id %s", self._current)
            return self._current

        if self.default_id and self.default_id != self.placeholder:
            logger.info("Using published admin id %s", self.default_id)
            return self._remember(self.default_id)

        detected = self._detect()
        if detected:
            logger.info("Auto-detected admin id %s", detected)
            return self._remember(detected)

        logger.error("No admin id configured; the app has to be set up first.")
        raise ConfigurationError("no tenant configured")

    def _remember(self, tenant_id: str) -> str:
        try:
            self.set_tenant_id(tenant_id)
        except (sqlite3.Error, OSError) as e:
            # Still usable for this call; the next resolve() will try again.
            logger.warning("Could not persist admin id %s: %s", tenant_id, e)
        return tenant_id

    def set_tenant_id(self, tenant_id: str) -> None:
        """
        Replace the tenant id in memory and in durable storage together. If
        the write fails the previous in-memory value is restored and the
        storage error propagates.
        """
        tenant_id = (tenant_id or "").strip()
        if not tenant_id:
            raise ValueError("tenant id must be a non-empty string")

        previous = self._current
        self._current = tenant_id
        try:
            storage.set_value(storage.ADMIN_ID_KEY, tenant_id)
        except Exception:
            self._current = previous
            raise
        logger.info("Admin id set: %s", tenant_id)

    def forget(self) -> None:
        storage.delete_value(storage.ADMIN_ID_KEY)
        self._current = None
