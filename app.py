import os
import signal
import threading

from storefront import pricing
from storefront.errors import ConfigurationError
from storefront.logger import get_logger
from storefront.models import Snapshot
from storefront.session import StorefrontSession

logger = get_logger(__name__)

MODE = os.getenv("MODE", "daemon").lower()  # "daemon" or "once"


def log_snapshot(snap: Snapshot) -> None:
    logger.info(
        "Store '%s' (%s) source=%s, %d products",
        snap.store_name, snap.tenant_id or "-", snap.source, len(snap.products),
    )
    for p in snap.products:
        logger.debug(
            "  %s %s: %s%s",
            p.product_id,
            p.name,
            pricing.format_price(p.effective_price, p.currency_symbol),
            " (sold out)" if p.sold_out else "",
        )


def run_once() -> int:
    session = StorefrontSession(live_updates=False, poll=False)
    try:
        if not session.start():
            return 1
        logger.info("App name: %s", session.fetch_app_name())
        log_snapshot(session.snapshot)
        if session.loader.last_error is not None:
            logger.warning("Showing fallback data: %s", session.loader.last_error)
        return 0
    finally:
        session.dispose()


def run_daemon() -> int:
    stop = threading.Event()

    def _stop(signum, frame):
        logger.info("Signal %d received; shutting down.", signum)
        stop.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)

    session = StorefrontSession()
    session.loader.changes.subscribe(log_snapshot)
    session.sync.state_changes.subscribe(
        lambda state: logger.info("Live updates: %s", state.value)
    )
    try:
        if not session.start():
            return 1
        log_snapshot(session.snapshot)
        while not stop.wait(1.0):
            pass
    finally:
        session.dispose()
    return 0


def main() -> None:
    try:
        if MODE == "once":
            raise SystemExit(run_once())
        else:
            raise SystemExit(run_daemon())
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        raise SystemExit(1)
    except Exception as e:
        logger.exception("Fatal storefront error: %s", e)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
