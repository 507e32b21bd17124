import httpx
from typing import Any, Dict, List, Optional

from shared.core import get_logger
from shipsheet.application.errors import OrderStoreError, PersistenceFailure, error_for_status

logger = get_logger(__name__)

ORDERS_PATH = "/orders"

class OrderStoreClient:
    """Thin HTTP client for the order store endpoints.

    Any non-2xx answer is raised as the matching OrderStoreError with the
    server's ``error`` message; transport failures become PersistenceFailure.
    Mutations only look at the status code, so an empty 2xx body is a success.
    """

    def __init__(self, http: httpx.Client):
        self.http = http

    @classmethod
    def connect(cls, base_url: str, token: str, timeout: float = 5.0) -> "OrderStoreClient":
        return cls(httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
        ))

    def close(self):
        self.http.close()

    def _request(self, method: str, path: str = ORDERS_PATH, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            response = self.http.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error(f"Order store unreachable: {method} {path}: {e}")
            raise PersistenceFailure(str(e) or "order store unreachable")

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = None
        message = body.get("error") if isinstance(body, dict) else None
        raise error_for_status(response.status_code, message or response.reason_phrase)

    def _read(self, method: str, path: str = ORDERS_PATH, json: Optional[Dict[str, Any]] = None) -> Any:
        response = self._request(method, path, json)
        try:
            return response.json()
        except ValueError:
            logger.error(f"Order store sent an unreadable body: {method} {path}")
            raise PersistenceFailure("invalid response from order store")

    def get_profile(self) -> Dict[str, Any]:
        return self._read("GET", "/profile")

    def list_vendors(self) -> List[Dict[str, Any]]:
        return self._read("GET", "/vendors") or []

    def list_orders(self) -> List[Dict[str, Any]]:
        return self._read("GET") or []

    def create_order(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return self._read("POST", json=fields)

    def patch_order(self, order_id: str, changes: Dict[str, Any], audit: Dict[str, Any]) -> None:
        self._request("PATCH", json={"id": order_id, "changes": changes, "audit": audit})

    def delete_order(self, order_id: str) -> None:
        self._request("DELETE", json={"id": order_id})

__all__ = ["OrderStoreClient", "OrderStoreError"]
