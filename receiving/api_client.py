"""
HTTP client for the garage order-management API.

Only the purchase-order endpoints the receiving console uses are wrapped:

  GET  /purchase_orders/{id}               → order record
  PUT  /purchase_orders/{id}               → update general fields
  POST /purchase_orders/{id}/receive       → record a delivery
  GET  /purchase_orders/expected_counts    → {todayCount, tomorrowCount}
  GET  /purchase_orders?expected_delivery_date=&status=&page=

Every non-2xx answer raises ApiError carrying the decoded JSON body, so the
caller can tell an extra_quantity rejection apart from a real failure.
Requests are never retried.
"""
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from datetime import date
from typing import Any, Optional

from models.purchase_order import PurchaseOrder, STATUS_PENDING, STATUS_PARTIALLY_RECEIVED
from models.result import ExpectedCounts, ReceiptPayload

from .errors import ApiError, OrderNotFound
from .session import Session

logger = logging.getLogger(__name__)

USER_AGENT = "Garage-Receiving-Console/1.0"


class OrderApiClient:
    """
    Thin JSON-over-HTTP wrapper.

    Usage:
        client = OrderApiClient("https://api.example.com", session=session)
        order = client.get_order(42)
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[Session] = None,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Any) -> "OrderApiClient":
        token = config.resolve_token()
        session = Session.from_token(token) if token else None
        return cls(config.api_base_url, session=session, timeout=config.api_timeout_seconds)

    # ------------------------------------------------------------------
    # Purchase orders
    # ------------------------------------------------------------------

    def get_order(self, order_id: int) -> PurchaseOrder:
        data = self._request("GET", f"/purchase_orders/{order_id}")
        if not isinstance(data, dict):
            raise ApiError(f"Unexpected response for purchase order #{order_id}")
        return PurchaseOrder.model_validate(data)

    def update_order(self, order_id: int, body: dict) -> Optional[PurchaseOrder]:
        """
        PUT the general order fields.  Returns the updated order when the API
        echoes it back, otherwise None (callers re-fetch either way).
        """
        data = self._request("PUT", f"/purchase_orders/{order_id}", body=body)
        if isinstance(data, dict) and "order_id" in data and "quantity_ordered" in data:
            return PurchaseOrder.model_validate(data)
        return None

    def receive(self, order_id: int, payload: ReceiptPayload) -> dict:
        """POST a delivery.  Returns the success body, typically {"message": ...}."""
        data = self._request(
            "POST", f"/purchase_orders/{order_id}/receive", body=payload.model_dump()
        )
        return data if isinstance(data, dict) else {}

    def expected_counts(self) -> ExpectedCounts:
        data = self._request("GET", "/purchase_orders/expected_counts") or {}
        return ExpectedCounts(
            today=int(data.get("todayCount") or 0),
            tomorrow=int(data.get("tomorrowCount") or 0),
        )

    def list_expected_orders(self, on: date, page: int = 1) -> list[PurchaseOrder]:
        """Open (not yet received) orders whose expected delivery date is *on*."""
        data = self._request(
            "GET",
            "/purchase_orders",
            query={
                "page": page,
                "expected_delivery_date": on.isoformat(),
                "status": f"{STATUS_PENDING},{STATUS_PARTIALLY_RECEIVED}",
            },
        )
        if isinstance(data, dict):
            rows = data.get("orders") or data.get("data") or []
        else:
            rows = data or []
        return [PurchaseOrder.model_validate(row) for row in rows]

    def check_connection(self) -> dict:
        """Used by `main.py check`: is the API reachable with the current session?"""
        try:
            counts = self.expected_counts()
            return {"ok": True, "expected_today": counts.today, "expected_tomorrow": counts.tomorrow}
        except ApiError as e:
            return {"ok": False, "status_code": e.status_code, "error": e.message}

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        query: Optional[dict] = None,
    ) -> Any:
        if self.session is not None:
            self.session.ensure_valid()

        url = self.base_url + path
        if query:
            url += "?" + urllib.parse.urlencode(query, quote_via=urllib.parse.quote)

        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(url, data=data, method=method)
        req.add_header("Accept", "application/json")
        req.add_header("User-Agent", USER_AGENT)
        if data is not None:
            req.add_header("Content-Type", "application/json; charset=utf-8")
        if self.session is not None:
            for k, v in self.session.auth_headers().items():
                req.add_header(k, v)

        logger.debug("%s %s", method, url)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8", errors="replace")
                logger.debug("%s %s → HTTP %d", method, path, response.getcode())
        except urllib.error.HTTPError as e:
            resp_body = e.read().decode("utf-8", errors="replace") if e.fp else ""
            payload = _decode_json(resp_body)
            payload = payload if isinstance(payload, dict) else {}
            message = _error_message(payload, e.code, resp_body)
            logger.warning("%s %s failed: HTTP %d - %s", method, path, e.code, message)
            if e.code == 404:
                raise OrderNotFound(message, status_code=404, payload=payload) from e
            raise ApiError(message, status_code=e.code, payload=payload) from e
        except urllib.error.URLError as e:
            logger.error("%s %s unreachable: %s", method, url, e.reason)
            raise ApiError(f"Could not reach the order API: {e.reason}") from e
        except (TimeoutError, OSError) as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(f"Order API request failed: {e}") from e

        if not raw.strip():
            return None
        decoded = _decode_json(raw)
        if decoded is None:
            raise ApiError(f"Order API returned invalid JSON for {method} {path}")
        return decoded


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def _error_message(payload: dict, status_code: int, raw: str) -> str:
    """
    Operator-facing message for an error body.

    {"error": "<text>"} carries the message directly; structured rejections
    such as {"error": "extra_quantity", "message": ...} carry it in "message".
    """
    err = payload.get("error")
    if isinstance(err, str) and err and err != "extra_quantity":
        return err
    msg = payload.get("message") or payload.get("detail")
    if isinstance(msg, str) and msg:
        return msg
    if raw.strip() and not payload:
        return raw.strip()[:200]
    return f"HTTP {status_code}"
