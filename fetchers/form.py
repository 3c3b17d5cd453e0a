from typing import Any, Dict, Iterable, List, Mapping

from storefront.errors import MalformedResponseError
from storefront.logger import get_logger
from storefront.models import DEFAULT_STORE_INFO, CatalogProduct, Snapshot

from .api import api_url, get_json

logger = get_logger(__name__)

# Only these builder widgets carry sellable product cards.
PRODUCT_WIDGETS = ("ProductGridWidget", "Catalog View Card", "Product Detail Card")


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _iter_widgets(data: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
    widgets = data.get("widgets")
    if isinstance(widgets, list):
        for w in widgets:
            if isinstance(w, Mapping):
                yield w
    # Older forms nest widgets per page
    pages = data.get("pages")
    if isinstance(pages, list):
        for page in pages:
            page_widgets = _mapping(page).get("widgets")
            if isinstance(page_widgets, list):
                for w in page_widgets:
                    if isinstance(w, Mapping):
                        yield w


def extract_product_cards(data: Mapping[str, Any]) -> List[Dict[str, Any]]:
    cards: List[Dict[str, Any]] = []
    for widget in _iter_widgets(data):
        if widget.get("name") not in PRODUCT_WIDGETS:
            continue
        product_cards = _mapping(widget.get("properties")).get("productCards")
        if not isinstance(product_cards, list):
            continue
        cards.extend(dict(c) for c in product_cards if isinstance(c, Mapping))
    return cards


def _field(section: Mapping[str, Any], key: str, default_key: str) -> str:
    val = section.get(key)
    if val is None or not str(val).strip():
        return DEFAULT_STORE_INFO[default_key]
    return str(val).strip()


def parse_form(data: Mapping[str, Any], tenant_id: str) -> Snapshot:
    """
    Turn a /api/get-form body into a Snapshot. Missing sections and fields
    fall back to the documented store defaults.
    """
    if data.get("success") is not True:
        raise MalformedResponseError(f"get-form for {tenant_id} did not report success")

    store_info = _mapping(data.get("storeInfo"))
    design = _mapping(data.get("designSettings"))

    store_name = data.get("shopName") or store_info.get("storeName")
    products = tuple(
        CatalogProduct.from_card(card, idx)
        for idx, card in enumerate(extract_product_cards(data))
    )

    return Snapshot(
        store_name=str(store_name).strip() if store_name else DEFAULT_STORE_INFO["store_name"],
        address=_field(store_info, "address", "address"),
        email=_field(store_info, "email", "email"),
        phone=_field(store_info, "phone", "phone"),
        header_color=_field(design, "headerColor", "header_color"),
        banner_text=_field(design, "bannerText", "banner_text"),
        banner_button_text=_field(design, "bannerButtonText", "banner_button_text"),
        products=products,
        tenant_id=tenant_id,
        source="form",
    )


def fetch_snapshot(tenant_id: str) -> Snapshot:
    """
    Pull the full store form for a tenant. Raises NetworkError or
    MalformedResponseError; callers decide how to degrade.
    """
    url = api_url("/api/get-form")
    logger.info("Loading store form for admin %s from %s", tenant_id, url)
    data = get_json(url, params={"adminId": tenant_id})
    try:
        snap = parse_form(data, tenant_id)
    except (TypeError, ValueError, KeyError, AttributeError, OverflowError) as e:
        raise MalformedResponseError(f"Unparseable get-form body for {tenant_id}: {e}") from e
    logger.info("Form for admin %s: %d products", tenant_id, len(snap.products))
    return snap
