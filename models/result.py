from pydantic import BaseModel
from typing import Optional, Literal


DeliveryStatus = Literal["Today", "Tomorrow", "Overdue", "Future Date", "Not Specified"]


class ReceiptPayload(BaseModel):
    """
    Body of POST /purchase_orders/{id}/receive.

    The confirmed resubmission after an extra-quantity prompt is this exact
    payload with confirm_extra_quantity flipped to True.
    """
    quantity_received: int
    fully_delivered: bool
    notes: str
    next_delivery_date: Optional[str] = None   # YYYY-MM-DD, None for full deliveries
    confirm_extra_quantity: bool = False


class DeliveryConfirmation(BaseModel):
    """A receipt the server has committed."""
    order_id: int
    quantity: int
    notes: str
    extra_quantity_confirmed: bool = False
    message: str                               # shown to the operator
    server_message: Optional[str] = None       # the API's own {message}, if any


class ExtraQuantityPrompt(BaseModel):
    """
    The server refused a receipt because it would exceed the ordered quantity.
    Nothing was recorded; the operator must confirm or decline.
    """
    order_id: int
    ordered: int
    would_be_received: int
    message: str                               # server-provided, shown verbatim
    payload: ReceiptPayload                    # what will be resent on confirmation

    @property
    def extra(self) -> int:
        return self.would_be_received - self.ordered


class OrderProgress(BaseModel):
    """Received / remaining figures and progress-bar values for one order."""
    received_qty: int
    remaining_qty: int                         # negative when over-delivered
    progress_percent: float                    # raw, may exceed 100
    display_percent: int                       # rounded half-up for the text label
    bar_width: float                           # min(progress_percent, 100)
    percent_label: str
    remaining_label: str


class ExpectedCounts(BaseModel):
    """Orders due today / tomorrow, from GET /purchase_orders/expected_counts."""
    today: int = 0
    tomorrow: int = 0
