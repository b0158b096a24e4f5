"""
Integration tests for the click CLI against the in-memory order API.
"""
import json

import pytest
from click.testing import CliRunner

import main

FAR_FUTURE = "2099-01-01"


@pytest.fixture
def run(fake_api, test_config, monkeypatch):
    monkeypatch.setattr(main, "_build_client", lambda ctx: fake_api)
    runner = CliRunner()

    def _run(*args, input=None):
        return runner.invoke(main.cli, list(args), input=input)

    return _run


@pytest.mark.integration
class TestShow:

    def test_show(self, run, fake_api):
        fake_api.add_order(order_id=5, quantity_ordered=50, quantity_received=20, status="Partially Received",
                           next_delivery_date="2025-07-01")
        result = run("show", "5")
        assert result.exit_code == 0, result.output
        assert "Purchase Order #5" in result.output
        assert "40% Complete" in result.output
        assert "Remaining: 30" in result.output
        assert "Next delivery:     2025-07-01" in result.output

    def test_show_json(self, run, fake_api):
        fake_api.add_order(order_id=5)
        result = run("show", "5", "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output[result.output.index("{"):])["order_id"] == 5

    def test_show_missing(self, run):
        result = run("show", "99")
        assert result.exit_code == 1
        assert "No order found with ID #99." in result.output


@pytest.mark.integration
class TestReceive:

    def test_partial(self, run, fake_api):
        fake_api.add_order(order_id=5, quantity_ordered=50)
        result = run("receive", "5", "-q", "20", "--next-date", FAR_FUTURE)
        assert result.exit_code == 0, result.output
        assert "Delivery recorded successfully" in result.output
        assert fake_api.orders[5]["status"] == "Partially Received"

    def test_partial_without_date(self, run, fake_api):
        fake_api.add_order(order_id=5)
        result = run("receive", "5", "-q", "20")
        assert result.exit_code == 1
        assert "next expected delivery date" in result.output
        assert fake_api.calls_to("receive") == []

    def test_fully_delivered_prefills_remaining(self, run, fake_api):
        fake_api.add_order(order_id=5, quantity_ordered=50, quantity_received=20, status="Partially Received")
        result = run("receive", "5", "--fully-delivered")
        assert result.exit_code == 0, result.output
        assert fake_api.calls_to("receive")[0][2]["quantity_received"] == 30
        assert fake_api.orders[5]["status"] == "Received"

    def test_extra_quantity_declined(self, run, fake_api):
        fake_api.add_order(order_id=5, quantity_ordered=50, quantity_received=45, status="Partially Received")
        result = run("receive", "5", "-q", "40", "--fully-delivered", input="n\n")
        assert result.exit_code == 1
        assert "Confirm Extra Quantity" in result.output
        assert "Delivery not recorded." in result.output
        assert fake_api.orders[5]["quantity_received"] == 45

    def test_extra_quantity_confirmed(self, run, fake_api):
        fake_api.add_order(order_id=5, quantity_ordered=50, quantity_received=45, status="Partially Received")
        result = run("receive", "5", "-q", "40", "--fully-delivered", input="y\n")
        assert result.exit_code == 0, result.output
        assert "Delivery with extra quantity recorded successfully" in result.output
        assert fake_api.orders[5]["quantity_received"] == 85

    def test_closed_order(self, run, fake_api):
        fake_api.add_order(order_id=5, status="Cancelled")
        result = run("receive", "5", "-q", "1", "--fully-delivered")
        assert result.exit_code == 1
        assert fake_api.calls_to("receive") == []


@pytest.mark.integration
class TestOtherCommands:

    def test_update_keeps_unspecified_fields(self, run, fake_api):
        fake_api.add_order(order_id=5, unit_cost=12.5, quantity_ordered=50, expected_delivery_date="2025-06-20")
        result = run("update", "5", "--unit-cost", "13.75")
        assert result.exit_code == 0, result.output
        put = fake_api.calls_to("update_order")[0][2]
        assert put["unit_cost"] == 13.75
        assert put["quantity_ordered"] == 50
        assert put["expected_delivery_date"] == "2025-06-20"
        assert put["status"] == "Pending"

    def test_export_to_directory(self, run, fake_api, temp_dir):
        fake_api.add_order(order_id=5)
        result = run("export", "5", "-o", str(temp_dir))
        assert result.exit_code == 0, result.output
        doc = json.loads((temp_dir / "purchase-order-5.json").read_text(encoding="utf-8"))
        assert doc["order_id"] == 5

    def test_expected(self, run, fake_api):
        result = run("expected", "--day", "tomorrow")
        assert result.exit_code == 0, result.output
        assert "No open orders expected" in result.output

    def test_check(self, run):
        result = run("check")
        assert result.exit_code == 0, result.output
        assert "reachable" in result.output
