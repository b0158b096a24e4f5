"""
Receiving Dashboard — FastAPI front-end for the order-management API.

Renders the purchase-order page and exposes the receive / confirm / update
actions as JSON endpoints.  Nothing is stored here: the order API is the
source of truth.  Each operator (identified by a cookie) gets their own
ReceivingWorkflow per order, holding the delivery log, form draft and
pending extra-quantity receipt in memory.

Endpoints
---------
  GET  /orders/{id}                         → order page (HTML)
  POST /orders/{id}/reload                  → "Try Again" after a failed load
  GET  /api/orders/{id}                     → order view as JSON
  PUT  /api/orders/{id}                     → update expected date / cost / qty / status
  POST /api/orders/{id}/receive             → record a delivery
  POST /api/orders/{id}/receive/confirm     → confirm a pending extra quantity
  POST /api/orders/{id}/receive/decline     → drop a pending extra quantity
  GET  /api/orders/{id}/export              → purchase-order-<id>.json download
  GET  /api/expected                        → orders expected today / tomorrow
  GET  /api/health                          → liveness probe
"""
import logging
import threading
import uuid
from collections import OrderedDict
from datetime import date, timedelta
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import Config
from dashboard.models import OrderUpdateRequest, ReceiveRequest
from dashboard.services import build_order_export, export_filename, render_order_page
from models.result import ExtraQuantityPrompt
from receiving.api_client import OrderApiClient
from receiving.errors import (
    ApiError,
    OrderFetchError,
    ReceiveError,
    SubmissionInProgress,
    UpdateError,
)
from receiving.view import OrderView, build_order_view
from receiving.workflow import ReceivingWorkflow

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# API client (lazy: built on first request so the dashboard starts even
# when the order API is down)
# ---------------------------------------------------------------------------
_config: Optional[Config] = None
_client: Optional[OrderApiClient] = None


def get_config() -> Config:
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_client() -> OrderApiClient:
    global _client
    if _client is None:
        _client = OrderApiClient.from_config(get_config())
    return _client


# ---------------------------------------------------------------------------
# Per-operator, per-order workflows  {(operator, order_id): ReceivingWorkflow}
#
# Each browser gets an operator cookie, so a draft, an error or an
# extra-quantity prompt belongs to the operator who produced it.  LRU-bounded.
# ---------------------------------------------------------------------------
OPERATOR_COOKIE = "receiving_operator"
MAX_WORKFLOWS = 256

_WORKFLOWS: OrderedDict[tuple[str, int], ReceivingWorkflow] = OrderedDict()
_WORKFLOWS_LOCK = threading.Lock()


class OperatorCookieMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        operator = request.cookies.get(OPERATOR_COOKIE)
        issued = not operator
        if issued:
            operator = uuid.uuid4().hex
        request.state.operator = operator
        response = await call_next(request)
        if issued:
            response.set_cookie(OPERATOR_COOKIE, operator, httponly=True, samesite="lax")
        return response


def get_operator(request: Request) -> str:
    return request.state.operator


def _workflow(order_id: int, client, operator: str) -> ReceivingWorkflow:
    key = (operator, order_id)
    with _WORKFLOWS_LOCK:
        wf = _WORKFLOWS.get(key)
        if wf is None or wf.client is not client:
            wf = ReceivingWorkflow(client, order_id, config=get_config())
            _WORKFLOWS[key] = wf
        _WORKFLOWS.move_to_end(key)
        while len(_WORKFLOWS) > MAX_WORKFLOWS:
            _WORKFLOWS.popitem(last=False)
        return wf


def _loaded_workflow(order_id: int, client, operator: str) -> ReceivingWorkflow:
    """Workflow with a fetched order, for the action endpoints."""
    wf = _workflow(order_id, client, operator)
    if wf.order is None:
        try:
            wf.load()
        except OrderFetchError as e:
            raise _fetch_http_error(e)
    return wf


def _fetch_http_error(e: OrderFetchError) -> HTTPException:
    if e.not_found:
        return HTTPException(404, f"No order found with ID #{e.order_id}")
    return HTTPException(502, str(e))


def _view_json(wf: ReceivingWorkflow) -> dict:
    return build_order_view(wf).model_dump(mode="json")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Purchase Order Receiving", docs_url=None, redoc_url=None)
app.add_middleware(OperatorCookieMiddleware)


@app.get("/api/health")
def health():
    config = get_config()
    return {
        "status":       "ok",
        "api_base_url": config.api_base_url,
        "workflows":    len(_WORKFLOWS),
    }


# ── Order page ───────────────────────────────────────────────────────────────

@app.get("/orders/{order_id}", response_class=HTMLResponse)
def order_page(
    order_id: int,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _workflow(order_id, client, operator)
    status_code = 200
    not_found = False
    try:
        wf.load()
    except OrderFetchError as e:
        not_found = e.not_found
        status_code = 404 if not_found else 502
    view = build_order_view(wf) if wf.fetch_error is None else OrderView(
        order_id=order_id, fetch_error=wf.fetch_error
    )
    return HTMLResponse(
        content=render_order_page(view, not_found=not_found),
        status_code=status_code,
        headers={"Cache-Control": "no-store"},
    )


@app.post("/orders/{order_id}/reload")
def reload_order(order_id: int):
    return RedirectResponse(f"/orders/{order_id}", status_code=303)


# ── Order API ────────────────────────────────────────────────────────────────

@app.get("/api/orders/{order_id}")
def get_order(
    order_id: int,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _workflow(order_id, client, operator)
    try:
        wf.load()
    except OrderFetchError as e:
        raise _fetch_http_error(e)
    return _view_json(wf)


@app.put("/api/orders/{order_id}")
def update_order(
    order_id: int,
    body: OrderUpdateRequest,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _loaded_workflow(order_id, client, operator)
    try:
        wf.update_order(
            body.expected_delivery_date, body.unit_cost, body.quantity_ordered, body.status
        )
    except SubmissionInProgress as e:
        raise HTTPException(409, str(e))
    except UpdateError as e:
        raise HTTPException(400, str(e))
    return {"status": "updated", "message": wf.message, "order": _view_json(wf)}


@app.post("/api/orders/{order_id}/receive")
def receive_order(
    order_id: int,
    body: ReceiveRequest,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    """
    Record a delivery.

    Answers {"status": "received"} when the API committed it, or
    {"status": "confirmation_required", ordered, would_be_received, message}
    when the receipt would exceed the ordered quantity and needs the
    operator's confirmation (POST …/receive/confirm).
    """
    wf = _loaded_workflow(order_id, client, operator)
    if not wf.can_receive:
        raise HTTPException(409, f"Order is {wf.order.status}; deliveries can no longer be recorded")
    try:
        outcome = wf.submit_receipt(
            body.quantity_received, body.fully_delivered, body.notes, body.next_delivery_date
        )
    except SubmissionInProgress as e:
        raise HTTPException(409, str(e))
    except ReceiveError as e:
        raise HTTPException(400, str(e))

    if isinstance(outcome, ExtraQuantityPrompt):
        return {
            "status":            "confirmation_required",
            "ordered":           outcome.ordered,
            "would_be_received": outcome.would_be_received,
            "message":           outcome.message,
        }
    return {"status": "received", "message": outcome.message, "order": _view_json(wf)}


@app.post("/api/orders/{order_id}/receive/confirm")
def confirm_extra_quantity(
    order_id: int,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _loaded_workflow(order_id, client, operator)
    if wf.pending is None:
        raise HTTPException(409, "No extra-quantity receipt is awaiting confirmation")
    try:
        confirmation = wf.confirm_extra_quantity()
    except SubmissionInProgress as e:
        raise HTTPException(409, str(e))
    except ReceiveError as e:
        raise HTTPException(400, str(e))
    return {"status": "received", "message": confirmation.message, "order": _view_json(wf)}


@app.post("/api/orders/{order_id}/receive/decline")
def decline_extra_quantity(
    order_id: int,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _loaded_workflow(order_id, client, operator)
    prompt = wf.decline_extra_quantity()
    return {"status": "declined" if prompt else "nothing_pending", "order": _view_json(wf)}


@app.get("/api/orders/{order_id}/export")
def export_order(
    order_id: int,
    client=Depends(get_client),
    operator: str = Depends(get_operator),
):
    wf = _workflow(order_id, client, operator)
    try:
        order = wf.load()
    except OrderFetchError as e:
        raise _fetch_http_error(e)
    return JSONResponse(
        content=build_order_export(order),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(order)}"'},
    )


@app.get("/api/expected")
def expected_orders(
    day: str = Query(default="today", pattern="^(today|tomorrow)$"),
    page: int = Query(default=1, ge=1),
    client=Depends(get_client),
):
    on = date.today() + timedelta(days=1 if day == "tomorrow" else 0)
    try:
        counts = client.expected_counts()
        orders = client.list_expected_orders(on, page=page)
    except ApiError as e:
        raise HTTPException(502, e.message)
    return {
        "date":           on.isoformat(),
        "today_count":    counts.today,
        "tomorrow_count": counts.tomorrow,
        "orders":         [o.model_dump(mode="json") for o in orders],
    }
