from .api_client import OrderApiClient
from .session import Session, SessionClaims
from .validator import OrderInputValidator
from .delivery_status import classify_delivery_status, resolve_delivery_status
from .progress import compute_progress
from .workflow import ReceivingWorkflow, can_receive
from .view import OrderView, build_order_view

__all__ = [
    "OrderApiClient", "Session", "SessionClaims", "OrderInputValidator",
    "classify_delivery_status", "resolve_delivery_status", "compute_progress",
    "ReceivingWorkflow", "can_receive", "OrderView", "build_order_view",
]
