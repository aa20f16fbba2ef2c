"""Tests for the error envelope: conflicts, duplicate numbers and unexpected errors."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError
from django.utils import timezone

from apps.memberships.models import Consumption, Membership, SequenceCounter
from apps.memberships.services import MembershipService
from core.exceptions import ConcurrentUpdate, DuplicateKey, envelope_exception_handler

MEMBERSHIPS_URL = "/api/memberships/"


@pytest.mark.django_db
class TestConflictResponses:
    def test_lost_conditional_debit_returns_409(self, api_client, value_card, monkeypatch):
        def drain_card(membership, now):
            Membership.objects.filter(pk=membership.pk).update(balance=Decimal("5.00"))
            return False

        monkeypatch.setattr(MembershipService, "_expire_if_due", staticmethod(drain_card))

        response = api_client.post(f"{MEMBERSHIPS_URL}{value_card.id}/consumption/", {
            "service_name": "Tuina",
            "amount": "50.00",
            "count": 1,
        }, format="json")

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": ConcurrentUpdate.default_detail}
        assert not Consumption.objects.exists()
        value_card.refresh_from_db()
        assert value_card.balance == Decimal("120.00")

    def test_reused_card_number_returns_400(self, api_client, customer, issue_card):
        issue_card("period")
        SequenceCounter.objects.update(last_value=0)

        response = api_client.post(MEMBERSHIPS_URL, {
            "customer": customer.id,
            "card_type": "period",
            "expiry_date": (timezone.now() + timedelta(days=30)).isoformat(),
        }, format="json")

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": DuplicateKey.default_detail}
        assert Membership.objects.count() == 1


class TestExceptionHandler:
    def test_integrity_error_is_reported_as_duplicate(self):
        response = envelope_exception_handler(IntegrityError("UNIQUE constraint failed"), {"view": None})

        assert response.status_code == 400
        assert response.data == {"success": False, "message": DuplicateKey.default_detail}

    def test_unexpected_error_hides_details(self, settings):
        settings.DEBUG = False

        response = envelope_exception_handler(RuntimeError("secret detail"), {"view": None})

        assert response.status_code == 500
        assert response.data == {"success": False, "message": "Internal server error."}

    def test_unexpected_error_shows_details_in_debug(self, settings):
        settings.DEBUG = True

        response = envelope_exception_handler(RuntimeError("secret detail"), {"view": None})

        assert response.status_code == 500
        assert response.data["message"] == "secret detail"
