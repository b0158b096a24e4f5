"""
Pydantic models for dashboard API requests.
"""
from pydantic import BaseModel
from typing import Optional, Union


class ReceiveRequest(BaseModel):
    quantity_received: Union[int, str, None] = None   # validated by the workflow, not here
    fully_delivered: bool = False
    notes: str = ""
    next_delivery_date: Optional[str] = None


class OrderUpdateRequest(BaseModel):
    expected_delivery_date: Optional[str] = None
    unit_cost: Union[float, str, None] = None
    quantity_ordered: Union[int, str, None] = None
    status: Optional[str] = None
