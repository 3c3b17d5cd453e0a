import os
from typing import Any, Dict, Optional

import requests
from tenacity import RetryError, retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from storefront import config
from storefront.errors import MalformedResponseError, NetworkError
from storefront.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = os.getenv("STOREFRONT_USER_AGENT", "storefront-sync/1.0")
FETCH_ATTEMPTS = int(os.getenv("FETCH_ATTEMPTS", "3"))

SESSION = requests.Session()
SESSION.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})


def api_url(path: str) -> str:
    return f"{config.API_BASE}/{path.lstrip('/')}"


def _decode(resp: requests.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        raise MalformedResponseError(f"Non-JSON body from {resp.url}: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object from {resp.url}, got {type(data).__name__}")
    return data


def get_json_once(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = config.SNAPSHOT_TIMEOUT,
) -> Dict[str, Any]:
    """Single GET, no retry. Raises NetworkError / MalformedResponseError."""
    try:
        resp = SESSION.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e
    return _decode(resp)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, requests.HTTPError):
        resp = exc.response
        return resp is None or resp.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


@retry(
    wait=wait_exponential_jitter(initial=0.5, max=4),
    stop=stop_after_attempt(FETCH_ATTEMPTS),
    retry=retry_if_exception(_is_transient),
)
def _fetch(url: str, params: Optional[Dict[str, Any]], timeout: float) -> requests.Response:
    r = SESSION.get(url, params=params, timeout=timeout)
    r.raise_for_status()
    return r


def get_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = config.SNAPSHOT_TIMEOUT,
) -> Dict[str, Any]:
    """GET with retries on transport errors and 5xx answers; 4xx fails at once."""
    try:
        resp = _fetch(url, params, timeout)
    except RetryError as e:
        raise NetworkError(f"GET {url} failed after retries: {e.last_attempt.exception()}") from e
    except requests.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e
    return _decode(resp)
