"""
Client-side input checks for the receive and update forms.

These run before any network call.  They check shape and presence only:
whether a receipt would exceed the ordered quantity is decided by the API.

Receive form:  quantity is a positive integer; partial deliveries need a
               next delivery date that is a real date, not before today
Update form:   unit cost > 0, quantity ordered a positive integer,
               status one of the known values, expected date parseable
"""
import logging
import math
import re
from datetime import date, datetime
from typing import Optional, Union

from config import DEFAULT_RECEIPT_NOTE
from models.purchase_order import ALL_STATUSES
from models.result import ReceiptPayload

from .errors import InvalidQuantity, InvalidStatus, InvalidUnitCost, MissingNextDeliveryDate, UpdateError

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^\s*\+?\d+\s*$")

DateInput = Union[str, date, None]


class OrderInputValidator:
    """
    Turns raw form values into API request bodies, or raises.

    Usage:
        validator = OrderInputValidator()
        payload = validator.validate_receipt("20", False, "", "2025-07-01", today=date.today())
    """

    def __init__(self, default_note: str = DEFAULT_RECEIPT_NOTE):
        self.default_note = default_note

    def validate_receipt(
        self,
        quantity_received,
        fully_delivered: bool,
        notes: Optional[str],
        next_delivery_date: DateInput,
        today: date,
    ) -> ReceiptPayload:
        qty = parse_positive_int(
            quantity_received, InvalidQuantity("Please enter a valid received quantity")
        )

        next_date: Optional[str] = None
        if not fully_delivered:
            parsed = parse_date(next_delivery_date)
            if parsed is None:
                raise MissingNextDeliveryDate()
            if parsed < today:
                raise MissingNextDeliveryDate(
                    f"The next delivery date cannot be earlier than today ({today.isoformat()})"
                )
            next_date = parsed.isoformat()

        note = (notes or "").strip() or self.default_note
        return ReceiptPayload(
            quantity_received=qty,
            fully_delivered=bool(fully_delivered),
            notes=note,
            next_delivery_date=next_date,
        )

    def validate_update(
        self,
        expected_delivery_date: DateInput,
        unit_cost,
        quantity_ordered,
        status: Optional[str],
    ) -> dict:
        cost = parse_unit_cost(unit_cost)
        qty = parse_positive_int(quantity_ordered, InvalidQuantity())

        expected: Optional[str] = None
        if expected_delivery_date not in (None, ""):
            parsed = parse_date(expected_delivery_date)
            if parsed is None:
                raise UpdateError("Please enter a valid expected delivery date")
            expected = parsed.isoformat()

        status = (status or "").strip() or None
        if status is not None and status not in ALL_STATUSES:
            raise InvalidStatus(f"Status must be one of: {', '.join(ALL_STATUSES)}")

        return {
            "expected_delivery_date": expected,
            "unit_cost": cost,
            "quantity_ordered": qty,
            "status": status,
        }


# ------------------------------------------------------------------
# Parsers
# ------------------------------------------------------------------

def parse_positive_int(value, error: Exception) -> int:
    """Accept ints, integral floats and digit strings greater than zero."""
    if isinstance(value, bool) or value is None:
        raise error
    if isinstance(value, int):
        qty = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise error
        qty = int(value)
    elif isinstance(value, str) and _INT_RE.match(value):
        qty = int(value)
    else:
        raise error
    if qty <= 0:
        raise error
    return qty


def parse_unit_cost(value) -> float:
    if isinstance(value, bool) or value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidUnitCost()
    try:
        cost = float(value)
    except (TypeError, ValueError):
        raise InvalidUnitCost()
    if not math.isfinite(cost) or cost <= 0:
        raise InvalidUnitCost()
    return cost


def parse_date(value: DateInput) -> Optional[date]:
    """YYYY-MM-DD (or a leading date of an ISO datetime) → date, else None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    if len(text) > 10 and text[10] in "T ":
        text = text[:10]
    try:
        return date.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable date input: %r", value)
        return None
