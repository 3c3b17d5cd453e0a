from typing import Any, Mapping

from storefront.errors import MalformedResponseError
from storefront.logger import get_logger
from storefront.models import CatalogProduct, Snapshot

from .api import api_url, get_json

logger = get_logger(__name__)


def parse_dynamic(data: Mapping[str, Any], tenant_id: str) -> Snapshot:
    """
    Legacy /api/app/dynamic shape: only product cards, store info stays at
    its defaults.
    """
    cfg = data.get("config")
    if data.get("success") is not True or not isinstance(cfg, Mapping):
        raise MalformedResponseError(f"app/dynamic for {tenant_id} has no config")

    cards = cfg.get("productCards") or []
    if not isinstance(cards, list):
        raise MalformedResponseError(f"app/dynamic productCards for {tenant_id} is not a list")

    products = tuple(
        CatalogProduct.from_card(card, idx)
        for idx, card in enumerate(c for c in cards if isinstance(c, Mapping))
    )
    return Snapshot(products=products, tenant_id=tenant_id, source="dynamic")


def fetch_snapshot(tenant_id: str) -> Snapshot:
    url = api_url(f"/api/app/dynamic/{tenant_id}")
    logger.info("Loading dynamic config for admin %s from %s", tenant_id, url)
    data = get_json(url)
    try:
        snap = parse_dynamic(data, tenant_id)
    except (TypeError, ValueError, KeyError, AttributeError, OverflowError) as e:
        raise MalformedResponseError(f"Unparseable app/dynamic body for {tenant_id}: {e}") from e
    logger.info("Dynamic config for admin %s: %d products", tenant_id, len(snap.products))
    return snap
