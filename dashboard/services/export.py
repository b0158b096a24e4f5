"""
Export service for purchase-order summaries.

Produces the JSON document operators download from the order page
(purchase-order-<id>.json): header, cost line and delivery figures.
"""
import json
from typing import Optional

from models.purchase_order import PurchaseOrder
from receiving.validator import parse_date


def format_display_date(value: Optional[str]) -> str:
    """YYYY-MM-DD → "Apr 13, 2025"; missing or unparseable → "N/A"."""
    parsed = parse_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def build_order_export(order: PurchaseOrder) -> dict:
    received = order.received_qty
    return {
        "order_id": order.order_id,
        "vendor":   order.vendor_name,
        "date":     format_display_date(order.order_date),
        "status":   order.status,
        "items": {
            "quantity":  order.quantity_ordered,
            "unit_cost": order.unit_cost,
            "total":     order.total_cost,
        },
        "delivery": {
            "expected":  format_display_date(order.expected_delivery_date),
            "received":  received,
            "remaining": order.quantity_ordered - received,
        },
    }


def render_order_export(order: PurchaseOrder) -> str:
    return json.dumps(build_order_export(order), indent=2)


def export_filename(order: PurchaseOrder) -> str:
    return f"purchase-order-{order.order_id}.json"
