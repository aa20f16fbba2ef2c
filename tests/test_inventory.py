"""Tests for stock movements and inventory statistics."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.inventory.models import InventoryItem, InventoryTransaction
from apps.inventory.services import InventoryService
from core.exceptions import PolicyViolation

pytestmark = pytest.mark.django_db

INVENTORY_URL = "/api/inventory/"


@pytest.fixture
def item(db) -> InventoryItem:
    return InventoryItem.objects.create(
        name="Moxa stick",
        unit="box",
        cost_price=Decimal("12.50"),
        selling_price=Decimal("20.00"),
        stock=15,
        warning_threshold=10,
    )


class TestStockMovements:
    def test_stock_in_updates_cost_and_logs_entry(self, item):
        item, entry = InventoryService.stock_in(item.id, 5, cost_price=Decimal("11.00"), supplier="Herbal Co")

        assert item.stock == 20
        assert item.cost_price == Decimal("11.00")
        assert entry.stock_after == 20
        assert entry.total_price == Decimal("55.00")
        assert entry.supplier == "Herbal Co"

    def test_stock_out_records_reason(self, item):
        item, entry = InventoryService.stock_out(item.id, 8, reason="treatment", notes="room 2")

        assert item.stock == 7
        assert item.stock_status == InventoryItem.STOCK_LOW
        assert entry.stock_after == 7
        assert entry.notes == "treatment: room 2"

    def test_stock_out_cannot_go_negative(self, item):
        with pytest.raises(PolicyViolation):
            InventoryService.stock_out(item.id, 16)

        item.refresh_from_db()
        assert item.stock == 15
        assert not InventoryTransaction.objects.exists()

    def test_stats(self, item):
        InventoryService.stock_in(item.id, 5)
        InventoryService.stock_out(item.id, 2)
        InventoryService.stock_out(item.id, 1)
        InventoryItem.objects.create(name="Massage oil", stock=2, cost_price=Decimal("30.00"))

        data = InventoryService.stats()

        assert data["total_items"] == 2
        assert data["total_value"] == Decimal("12.50") * 17 + Decimal("60.00")
        assert data["low_stock_count"] == 1
        assert data["month_in"] == {"quantity": 5, "entries": 1}
        assert data["month_out"] == {"quantity": 3, "entries": 2}


class TestInventoryEndpoints:
    def test_stock_out_endpoint_reports_shortage(self, api_client, item):
        response = api_client.post(f"{INVENTORY_URL}{item.id}/stock-out/", {"quantity": 99}, format="json")

        assert response.status_code == 400
        assert response.json()["message"].startswith("Insufficient stock")

    def test_stock_in_endpoint(self, api_client, item):
        response = api_client.post(f"{INVENTORY_URL}{item.id}/stock-in/", {"quantity": 3}, format="json")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["item"]["stock"] == 18
        assert data["transaction"]["type"] == "in"

    def test_stock_cannot_be_edited_directly(self, api_client, item):
        api_client.patch(f"{INVENTORY_URL}{item.id}/", {"stock": 500}, format="json")

        item.refresh_from_db()
        assert item.stock == 15

    def test_transactions_are_listed(self, api_client, item):
        InventoryService.stock_in(item.id, 2)

        body = api_client.get(f"{INVENTORY_URL}transactions/").json()

        assert body["pagination"]["total"] == 1
        assert body["data"][0]["item_name"] == "Moxa stick"

    def test_transactions_filter_by_date(self, api_client, item):
        InventoryService.stock_in(item.id, 2)
        today = timezone.localdate()

        def total(**params):
            return api_client.get(f"{INVENTORY_URL}transactions/", params).json()["pagination"]["total"]

        assert total(start_date=today.isoformat(), end_date=today.isoformat()) == 1
        assert total(start_date=(today + timedelta(days=1)).isoformat()) == 0
        assert total(end_date=(today - timedelta(days=1)).isoformat()) == 0
