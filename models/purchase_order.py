from pydantic import BaseModel, field_validator
from typing import Optional


STATUS_PENDING            = "Pending"
STATUS_PARTIALLY_RECEIVED = "Partially Received"
STATUS_RECEIVED           = "Received"
STATUS_CANCELLED          = "Cancelled"
ALL_STATUSES = (STATUS_PENDING, STATUS_PARTIALLY_RECEIVED, STATUS_RECEIVED, STATUS_CANCELLED)

# No receiving form is offered for orders in these states.
CLOSED_STATUSES = frozenset({STATUS_RECEIVED, STATUS_CANCELLED})


def _to_ymd(value):
    """Trim ISO datetimes ("2025-04-13T00:00:00.000Z") down to YYYY-MM-DD."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:10] if len(text) > 10 and text[10] in "T " else text


class PurchaseOrder(BaseModel):
    """
    A purchase order as returned by GET /purchase_orders/{id}.

    The server owns every field here.  quantity_received is None until the
    first delivery is recorded; treat it as 0.  Dates are YYYY-MM-DD strings.
    """
    order_id: int
    requisition_id: Optional[int] = None
    vendor_id: Optional[int] = None
    vendor_name: Optional[str] = None
    item_id: Optional[int] = None
    item_name: Optional[str] = None
    quantity_requested: Optional[int] = None

    order_date: Optional[str] = None              # YYYY-MM-DD
    expected_delivery_date: Optional[str] = None  # YYYY-MM-DD
    next_delivery_date: Optional[str] = None      # set only while Partially Received
    received_date: Optional[str] = None           # date of the latest delivery

    unit_cost: float
    quantity_ordered: int
    quantity_received: Optional[int] = None
    status: str = STATUS_PENDING                  # one of ALL_STATUSES
    delivery_status: Optional[str] = None         # server-computed: Today / Tomorrow / Overdue / ...

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator(
        "order_date", "expected_delivery_date", "next_delivery_date", "received_date",
        mode="before",
    )
    @classmethod
    def _normalise_dates(cls, value):
        return _to_ymd(value)

    @property
    def received_qty(self) -> int:
        return self.quantity_received or 0

    @property
    def remaining_qty(self) -> int:
        """Ordered minus received; negative when more arrived than was ordered."""
        return self.quantity_ordered - self.received_qty

    @property
    def total_cost(self) -> float:
        return self.unit_cost * self.quantity_ordered


class DeliveryRecord(BaseModel):
    """One receiving event in the session's delivery log."""
    date: Optional[str] = None      # ISO 8601 datetime; YYYY-MM-DD for deliveries seeded from the order
    quantity: int
    notes: Optional[str] = None


class ReceiptDraft(BaseModel):
    """The receive form's current inputs, kept until a receipt succeeds."""
    quantity_received: str = ""
    fully_delivered: bool = False
    notes: str = ""
    next_delivery_date: str = ""
