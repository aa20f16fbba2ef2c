"""Pytest configuration and fixtures."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from apps.customers.models import Customer, Therapist
from apps.memberships.services import MembershipService


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def make_customer(db):
    """Factory for customers."""

    def factory(child_name="Xiao Ming", **kwargs):
        defaults = {
            "child_gender": "male",
            "child_birthdate": date(2019, 5, 1),
            "parent_name": "Li Hua",
            "phone": "13800000000",
        }
        defaults.update(kwargs)
        return Customer.objects.create(child_name=child_name, **defaults)

    return factory


@pytest.fixture
def customer(make_customer) -> Customer:
    return make_customer()


@pytest.fixture
def therapist(db) -> Therapist:
    return Therapist.objects.create(name="Zhang Wei", title="senior")


@pytest.fixture
def issue_card(customer):
    """Factory issuing cards through the membership service."""

    def factory(card_type="value", days_valid=365, owner=None, **kwargs):
        membership, _ = MembershipService.issue_card(
            customer_id=(owner or customer).id,
            card_type=card_type,
            expiry_date=timezone.now() + timedelta(days=days_valid),
            **kwargs,
        )
        return membership

    return factory


@pytest.fixture
def value_card(issue_card):
    """Value card holding 100 paid + 20 bonus."""
    return issue_card("value", initial_amount=Decimal("100.00"), bonus_amount=Decimal("20.00"))


@pytest.fixture
def count_card(issue_card):
    """Count card with 3 uses."""
    return issue_card("count", count=3)
