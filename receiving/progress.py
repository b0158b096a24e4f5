"""
Received / remaining quantities and the delivery progress bar.

The text keeps the raw figures (an over-delivery reads "Extra Received: 5",
"110% (Extra Received)"), while the bar width is capped at 100%.
"""
import math

from models.purchase_order import PurchaseOrder
from models.result import OrderProgress


def compute_progress(order: PurchaseOrder) -> OrderProgress:
    received = order.received_qty
    remaining = order.quantity_ordered - received

    if order.quantity_ordered > 0:
        percent = received / order.quantity_ordered * 100
    else:
        percent = 0.0
    display = _round_half_up(percent)

    if remaining > 0:
        remaining_label = f"Remaining: {remaining}"
    elif remaining < 0:
        remaining_label = f"Extra Received: {abs(remaining)}"
    else:
        remaining_label = "Fully Received"

    return OrderProgress(
        received_qty=received,
        remaining_qty=remaining,
        progress_percent=percent,
        display_percent=display,
        bar_width=min(percent, 100.0),
        percent_label=f"{display}% (Extra Received)" if display > 100 else f"{display}% Complete",
        remaining_label=remaining_label,
    )


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; 12.5% must read 13%
    return int(math.floor(value + 0.5))
