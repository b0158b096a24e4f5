from .purchase_order import (
    PurchaseOrder, DeliveryRecord, ReceiptDraft,
    STATUS_PENDING, STATUS_PARTIALLY_RECEIVED, STATUS_RECEIVED, STATUS_CANCELLED,
    ALL_STATUSES, CLOSED_STATUSES,
)
from .result import (
    ReceiptPayload, DeliveryConfirmation, ExtraQuantityPrompt,
    OrderProgress, ExpectedCounts, DeliveryStatus,
)

__all__ = [
    "PurchaseOrder", "DeliveryRecord", "ReceiptDraft",
    "STATUS_PENDING", "STATUS_PARTIALLY_RECEIVED", "STATUS_RECEIVED", "STATUS_CANCELLED",
    "ALL_STATUSES", "CLOSED_STATUSES",
    "ReceiptPayload", "DeliveryConfirmation", "ExtraQuantityPrompt",
    "OrderProgress", "ExpectedCounts", "DeliveryStatus",
]
