"""
Delivery-status classification.

Labels an order by its expected delivery date against the current calendar
day.  Quantities play no part, and the label never gates receiving: it only
drives how the order is displayed.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from models.purchase_order import PurchaseOrder
from models.result import DeliveryStatus

from .validator import DateInput, parse_date

logger = logging.getLogger(__name__)

TODAY         = "Today"
TOMORROW      = "Tomorrow"
OVERDUE       = "Overdue"
FUTURE_DATE   = "Future Date"
NOT_SPECIFIED = "Not Specified"
ALL_DELIVERY_STATUSES = (TODAY, TOMORROW, OVERDUE, FUTURE_DATE, NOT_SPECIFIED)

# Banner text shown next to the order status
DELIVERY_STATUS_LABELS = {
    TODAY:         "Expected Today",
    TOMORROW:      "Expected Tomorrow",
    OVERDUE:       "Delivery Overdue",
    FUTURE_DATE:   "Scheduled Delivery",
    NOT_SPECIFIED: "Delivery Date Not Set",
}


def classify_delivery_status(expected_delivery_date: DateInput, today: date) -> DeliveryStatus:
    expected = parse_date(expected_delivery_date)
    if expected is None:
        return NOT_SPECIFIED
    if expected == today:
        return TODAY
    if expected == today + timedelta(days=1):
        return TOMORROW
    if expected < today:
        return OVERDUE
    return FUTURE_DATE


def resolve_delivery_status(order: PurchaseOrder, today: Optional[date] = None) -> DeliveryStatus:
    """Prefer the API's precomputed delivery_status; compute it locally otherwise."""
    if order.delivery_status in ALL_DELIVERY_STATUSES:
        return order.delivery_status
    if order.delivery_status:
        logger.debug(
            "Ignoring unknown delivery_status %r on order %s", order.delivery_status, order.order_id
        )
    return classify_delivery_status(order.expected_delivery_date, today or date.today())


def delivery_status_label(status: str) -> str:
    return DELIVERY_STATUS_LABELS.get(status, DELIVERY_STATUS_LABELS[NOT_SPECIFIED])
