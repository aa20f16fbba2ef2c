"""API tests for customers, therapists and the health check."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.customers.models import Customer, Therapist
from apps.memberships.services import MembershipService
from apps.visits.models import Service
from core.constants import CardStatus, MembershipStatus

pytestmark = pytest.mark.django_db


class TestCustomers:
    def test_create_customer(self, api_client):
        response = api_client.post("/api/customers/", {
            "child_name": "Xiao Ming",
            "child_gender": "male",
            "child_birthdate": "2020-06-01",
            "parent_name": "Li Hua",
            "phone": "13800000001",
            "membership_status": "active",
        }, format="json")

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["membership_status"] == "none"
        assert data["relationship"] == "mother"
        assert isinstance(data["child_age"], int)

    def test_search_matches_parent_and_phone(self, api_client, make_customer):
        make_customer(child_name="A", parent_name="Wang Fang", phone="13911112222")
        make_customer(child_name="B", parent_name="Zhao Lei", phone="13700000000")

        by_parent = api_client.get("/api/customers/", {"search": "wang"}).json()["data"]
        by_phone = api_client.get("/api/customers/", {"search": "1370"}).json()["data"]

        assert [row["child_name"] for row in by_parent] == ["A"]
        assert [row["child_name"] for row in by_phone] == ["B"]

    def test_delete_deactivates(self, api_client, customer):
        response = api_client.delete(f"/api/customers/{customer.id}/")

        assert response.status_code == 204
        customer.refresh_from_db()
        assert customer.is_active is False
        assert customer.deleted_at is not None
        assert api_client.get(f"/api/customers/{customer.id}/").status_code == 404

    def test_membership_status_follows_cards(self, customer, issue_card):
        card = issue_card("value", days_valid=200)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.ACTIVE

        MembershipService.update_status(card.id, CardStatus.FROZEN)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.EXPIRED

        MembershipService.update_status(card.id, CardStatus.CANCELLED)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.NONE

    def test_active_card_wins_over_later_expiring_depleted_card(self, customer, issue_card):
        count_card = issue_card("count", days_valid=700, count=1)
        MembershipService.record_consumption(count_card.id, service_name="Tuina", amount=0, count=1)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.EXPIRED

        issue_card("value", days_valid=365)

        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.ACTIVE

    def test_active_card_wins_over_later_expiring_frozen_card(self, customer, issue_card):
        period_card = issue_card("period", days_valid=700)
        MembershipService.update_status(period_card.id, CardStatus.FROZEN)

        issue_card("value", days_valid=365)

        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.ACTIVE
        assert customer.derive_membership_status() == CardStatus.FROZEN

    def test_derived_label_keeps_raw_card_status(self, customer, issue_card):
        card = issue_card("count", count=1)
        MembershipService.record_consumption(card.id, service_name="Tuina", amount=0, count=1)

        assert Customer.objects.get(pk=customer.pk).derive_membership_status() == CardStatus.DEPLETED


class TestTherapists:
    def test_specialties_must_be_strings(self, api_client):
        response = api_client.post("/api/therapists/", {
            "name": "Chen Jing",
            "specialties": ["tuina", 3],
        }, format="json")

        assert response.status_code == 400
        assert response.json()["message"].startswith("specialties:")

    def test_create_therapist(self, api_client):
        response = api_client.post("/api/therapists/", {
            "name": "Chen Jing",
            "title": "senior",
            "specialties": ["tuina", "moxibustion"],
        }, format="json")

        assert response.status_code == 201
        assert response.json()["data"]["specialties"] == ["tuina", "moxibustion"]

    def test_search_matches_name_and_title(self, api_client, therapist):
        Therapist.objects.create(name="Chen Jing", title="junior")

        by_name = api_client.get("/api/therapists/", {"search": "chen"}).json()["data"]
        by_title = api_client.get("/api/therapists/", {"search": "senior"}).json()["data"]

        assert [row["name"] for row in by_name] == ["Chen Jing"]
        assert [row["name"] for row in by_title] == ["Zhang Wei"]

    def test_stats_cover_the_last_month(self, api_client, customer, therapist):
        now = timezone.now()
        other = Therapist.objects.create(name="Chen Jing")
        visits = [
            (therapist, "Tuina", "30.00", 60, 5, now - timedelta(hours=1)),
            (therapist, "Tuina", "20.00", 30, None, now - timedelta(days=2)),
            (therapist, "Moxa", "50.00", 30, 4, now - timedelta(days=10)),
            (therapist, "Tuina", "100.00", 60, 1, now - timedelta(days=45)),
            (other, "Tuina", "70.00", 60, 3, now - timedelta(days=1)),
        ]
        for who, service_type, fee, duration, rating, when in visits:
            Service.objects.create(
                customer=customer, therapist=who, service_type=service_type,
                service_fee=Decimal(fee), duration=duration, rating=rating, service_date=when,
            )

        response = api_client.get(f"/api/therapists/{therapist.id}/stats/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["service_count"] == 3
        assert data["revenue"] == 100.0
        assert data["total_duration"] == 120
        assert data["work_hours"] == 2.0
        assert data["avg_rating"] == 4.5
        assert sum(week["count"] for week in data["weekly_trend"]) == 3
        assert data["service_type_distribution"] == [
            {"service_type": "Tuina", "count": 2},
            {"service_type": "Moxa", "count": 1},
        ]

    def test_stats_for_unknown_therapist_returns_404(self, api_client, db):
        response = api_client.get("/api/therapists/999/stats/")

        assert response.status_code == 404
        assert response.json()["success"] is False


def test_health_check(api_client):
    body = api_client.get("/api/health/").json()

    assert body["success"] is True
    assert body["status"] == "ok"
