"""
Pytest configuration and shared fixtures for the receiving console test suite.
"""
import copy
import os
import shutil
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Generator, Optional

import pytest

from models.purchase_order import (
    PurchaseOrder,
    STATUS_PARTIALLY_RECEIVED,
    STATUS_PENDING,
    STATUS_RECEIVED,
)
from models.result import ExpectedCounts, ReceiptPayload
from receiving.errors import ApiError, OrderNotFound

PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)

# Fixed "today" for workflow tests so date rules do not drift with the calendar
TODAY = date(2025, 6, 15)
NOW = datetime(2025, 6, 15, 9, 30, tzinfo=timezone.utc)


class FakeOrderApi:
    """
    In-memory stand-in for the order-management API.

    Implements the same methods as OrderApiClient and the server-side rules
    the console relies on: the extra-quantity rejection and the status /
    next_delivery_date transitions after a receipt.
    """

    def __init__(self) -> None:
        self.orders: dict[int, dict] = {}
        self.calls: list[tuple] = []
        self.fail_get: Optional[ApiError] = None
        self.fail_receive: Optional[ApiError] = None
        self.fail_update: Optional[ApiError] = None
        self.session = None

    def add_order(self, **fields) -> dict:
        record = {
            "order_id": 1,
            "vendor_name": "Brake Parts Co",
            "item_name": "Brake Pads",
            "order_date": "2025-06-01",
            "expected_delivery_date": "2025-06-20",
            "unit_cost": 12.5,
            "quantity_ordered": 50,
            "quantity_received": None,
            "status": STATUS_PENDING,
            "next_delivery_date": None,
            "received_date": None,
        }
        record.update(fields)
        self.orders[record["order_id"]] = record
        return record

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    # --- OrderApiClient interface ---

    def get_order(self, order_id: int) -> PurchaseOrder:
        self.calls.append(("get_order", order_id))
        if self.fail_get is not None:
            raise self.fail_get
        if order_id not in self.orders:
            raise OrderNotFound("Purchase order not found", status_code=404, payload={"error": "Purchase order not found"})
        return PurchaseOrder.model_validate(copy.deepcopy(self.orders[order_id]))

    def update_order(self, order_id: int, body: dict) -> Optional[PurchaseOrder]:
        self.calls.append(("update_order", order_id, dict(body)))
        if self.fail_update is not None:
            raise self.fail_update
        order = self.orders[order_id]
        for key, value in body.items():
            if value is not None or key == "expected_delivery_date":
                order[key] = value
        return None

    def receive(self, order_id: int, payload: ReceiptPayload) -> dict:
        self.calls.append(("receive", order_id, payload.model_dump()))
        if self.fail_receive is not None:
            raise self.fail_receive
        order = self.orders[order_id]
        ordered = order["quantity_ordered"]
        would_be = (order["quantity_received"] or 0) + payload.quantity_received
        if would_be > ordered and not payload.confirm_extra_quantity:
            raise ApiError(
                f"Receiving {payload.quantity_received} more would total {would_be}, exceeding the ordered {ordered}.",
                status_code=400,
                payload={
                    "error": "extra_quantity",
                    "ordered": ordered,
                    "would_be_received": would_be,
                    "message": f"Receiving {payload.quantity_received} more would total {would_be}, exceeding the ordered {ordered}.",
                },
            )
        order["quantity_received"] = would_be
        order["received_date"] = TODAY.isoformat()
        if payload.fully_delivered or would_be >= ordered:
            order["status"] = STATUS_RECEIVED
            order["next_delivery_date"] = None
        else:
            order["status"] = STATUS_PARTIALLY_RECEIVED
            order["next_delivery_date"] = payload.next_delivery_date
        return {"message": "Order received successfully"}

    def expected_counts(self) -> ExpectedCounts:
        self.calls.append(("expected_counts",))
        today = sum(1 for o in self.orders.values() if o["expected_delivery_date"] == date.today().isoformat())
        return ExpectedCounts(today=today, tomorrow=0)

    def check_connection(self) -> dict:
        counts = self.expected_counts()
        return {"ok": True, "expected_today": counts.today, "expected_tomorrow": counts.tomorrow}

    def list_expected_orders(self, on: date, page: int = 1) -> list[PurchaseOrder]:
        self.calls.append(("list_expected_orders", on, page))
        return [
            PurchaseOrder.model_validate(o) for o in self.orders.values()
            if o["expected_delivery_date"] == on.isoformat() and o["status"] != STATUS_RECEIVED
        ]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="receiving_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path, monkeypatch) -> "Config":
    """A Config isolated from the developer's environment and settings file."""
    for var in ("GARAGE_API_URL", "GARAGE_API_TOKEN", "GARAGE_TOKEN_FILE", "GARAGE_API_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CONFIG_DIR", str(temp_dir / "config"))
    from config import Config
    return Config()


@pytest.fixture
def fake_api() -> FakeOrderApi:
    return FakeOrderApi()


@pytest.fixture
def make_workflow(fake_api, test_config):
    """Factory: ReceivingWorkflow over fake_api with a fixed clock, already loaded."""
    from receiving.workflow import ReceivingWorkflow

    def _make(order_id: int = 1, load: bool = True) -> "ReceivingWorkflow":
        wf = ReceivingWorkflow(
            fake_api, order_id, config=test_config, today=lambda: TODAY, now=lambda: NOW
        )
        if load:
            wf.load()
        return wf

    return _make


@pytest.fixture
def sample_order_payload() -> dict:
    """A purchase order as the API serialises it."""
    return {
        "order_id": 42,
        "requisition_id": 7,
        "vendor_id": 3,
        "vendor_name": "Brake Parts Co",
        "item_id": 11,
        "item_name": "Brake Pads",
        "quantity_requested": 50,
        "order_date": "2025-04-13T00:00:00.000Z",
        "expected_delivery_date": "2025-06-20",
        "unit_cost": "12.50",
        "quantity_ordered": 50,
        "quantity_received": 20,
        "status": "Partially Received",
        "received_date": "2025-06-10",
        "next_delivery_date": "2025-06-25",
        "delivery_status": "Future Date",
        "created_at": "2025-04-13T08:00:00.000Z",
        "updated_at": "2025-06-10T10:00:00.000Z",
    }


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")
