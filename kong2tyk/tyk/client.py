import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from ..errors import ExistenceCheckError, TransportFailure
from ..models import TargetDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateOutcome:
    ok: bool
    status_code: int
    body: str = ""


class TykDashboardClient:
    """Client for the Tyk Dashboard management API (``/api``)."""

    def __init__(self, base_url: str, auth_token: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/api"
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": auth_token,
                "Content-Type": "application/json",
            }
        )

    def __enter__(self) -> "TykDashboardClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    # ---------- low-level HTTP ----------

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f"{self.api_url}/{endpoint}"
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise TransportFailure(f"{method} {url} timed out after {self.timeout}s") from e
        except requests.ConnectionError as e:
            raise TransportFailure(f"{method} {url} failed: {e}") from e
        except requests.RequestException as e:
            raise TransportFailure(f"{method} {url} could not be completed: {e}") from e

    # ---------- API definitions ----------

    def list_apis(self) -> List[Dict[str, Any]]:
        """Return every API definition known to the Dashboard (``p=-1`` disables paging)."""
        resp = self._request("GET", "apis", params={"p": -1})
        if not resp.ok:
            raise ExistenceCheckError(
                f"Listing APIs failed ({resp.status_code}): {resp.text[:500]}"
            )
        try:
            body = resp.json()
        except ValueError as e:
            raise ExistenceCheckError(f"Listing APIs returned a non-JSON body: {e}") from e
        if not isinstance(body, dict):
            raise ExistenceCheckError(f"Unexpected API list format: {body!r:.200}")

        apis = body.get("apis") or []
        if not isinstance(apis, list):
            raise ExistenceCheckError(f"Unexpected 'apis' format: {apis!r:.200}")
        return apis

    def exists(self, routing_key: Optional[str]) -> bool:
        """True if some definition on the Dashboard already listens on ``routing_key``."""
        if not routing_key:
            return False
        for api in self.list_apis():
            proxy = _member(_member(api, "api_definition"), "proxy")
            if proxy is not None and proxy.get("listen_path") == routing_key:
                return True
        return False

    def create(self, definition: TargetDefinition) -> CreateOutcome:
        """POST the OAS document; ``ok`` only when the Dashboard answers ``Status: OK``."""
        resp = self._request("POST", "apis/oas", json=definition.to_oas())
        try:
            body = resp.json()
        except ValueError:
            body = None

        ok = resp.ok and isinstance(body, dict) and body.get("Status") == "OK"
        if not ok:
            logger.debug("Create %r rejected (%s): %s", definition.title, resp.status_code, resp.text)
        return CreateOutcome(ok=ok, status_code=resp.status_code, body=resp.text)


def _member(obj: Any, name: str) -> Optional[Dict[str, Any]]:
    """``obj[name]`` from an API list entry; anything but an object or null is indeterminate."""
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise ExistenceCheckError(f"Unexpected entry in API list: {obj!r:.200}")
    value = obj.get(name)
    if value is not None and not isinstance(value, dict):
        raise ExistenceCheckError(f"Unexpected '{name}' format in API list: {value!r:.200}")
    return value


__all__ = ["CreateOutcome", "TykDashboardClient"]
