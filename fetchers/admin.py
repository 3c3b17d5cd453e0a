from typing import Optional

from storefront import config
from storefront.errors import NetworkError
from storefront.logger import get_logger

from .api import api_url, get_json, get_json_once

logger = get_logger(__name__)

DEFAULT_APP_NAME = "AppifyYours"


def detect_admin_id(url: Optional[str] = None) -> Optional[str]:
    """
    Ask the backend which admin this app was published for. One attempt only;
    returns None when the endpoint is unreachable or has no id for us.
    """
    url = url or config.APP_INFO_URL
    try:
        data = get_json_once(url)
    except NetworkError as e:
        logger.warning("Admin id auto-detection failed: %s", e)
        return None

    info = data.get("data")
    if data.get("success") is not True or not isinstance(info, dict):
        logger.warning("Admin id auto-detection: unexpected response from %s", url)
        return None

    admin_id = info.get("adminId")
    if admin_id is None or not str(admin_id).strip():
        return None
    return str(admin_id).strip()


def fetch_app_name(tenant_id: str) -> str:
    """Splash screen app name; falls back to the product name on any failure."""
    try:
        data = get_json(api_url("/api/admin/splash"), params={"adminId": tenant_id})
    except NetworkError as e:
        logger.warning("Could not load app name for admin %s: %s", tenant_id, e)
        return DEFAULT_APP_NAME
    name = data.get("appName")
    return str(name).strip() if name and str(name).strip() else DEFAULT_APP_NAME
