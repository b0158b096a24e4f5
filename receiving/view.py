"""
Everything the order page shows, computed from a ReceivingWorkflow.

Shared by the dashboard (JSON + HTML) and the CLI so both surfaces agree on
what is displayed and, in particular, on when the receive form exists.
"""
from typing import Optional

from pydantic import BaseModel, Field

from models.purchase_order import DeliveryRecord, PurchaseOrder, ReceiptDraft, STATUS_PARTIALLY_RECEIVED
from models.result import ExtraQuantityPrompt, OrderProgress

from .delivery_status import delivery_status_label, resolve_delivery_status
from .progress import compute_progress
from .workflow import ReceivingWorkflow


class OrderView(BaseModel):
    order_id: int
    order: Optional[PurchaseOrder] = None
    fetch_error: Optional[str] = None

    progress: Optional[OrderProgress] = None
    delivery_status: Optional[str] = None
    delivery_status_label: Optional[str] = None

    can_receive: bool = False
    show_next_delivery: bool = False       # "Next Delivery" panel, partial deliveries only
    history: list[DeliveryRecord] = Field(default_factory=list)
    draft: ReceiptDraft = Field(default_factory=ReceiptDraft)
    pending_extra: Optional[ExtraQuantityPrompt] = None
    min_next_delivery_date: str = ""       # lower bound for the next-delivery date input

    submitting: bool = False
    message: str = ""
    receive_error: Optional[str] = None
    update_error: Optional[str] = None


def build_order_view(wf: ReceivingWorkflow) -> OrderView:
    order = wf.order
    view = OrderView(
        order_id=wf.order_id,
        order=order,
        fetch_error=wf.fetch_error,
        history=list(wf.history),
        draft=wf.draft.model_copy(),
        pending_extra=wf.pending,
        min_next_delivery_date=wf.today().isoformat(),
        submitting=wf.submitting,
        message=wf.message,
        receive_error=wf.receive_error,
        update_error=wf.update_error,
    )
    if order is None:
        return view

    status = resolve_delivery_status(order, wf.today())
    view.progress = compute_progress(order)
    view.delivery_status = status
    view.delivery_status_label = delivery_status_label(status)
    view.can_receive = wf.can_receive
    view.show_next_delivery = (
        order.status == STATUS_PARTIALLY_RECEIVED and bool(order.next_delivery_date)
    )
    return view
