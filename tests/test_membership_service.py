"""Tests for MembershipService: issuance, recharge, consumption and status changes."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.memberships.models import Consumption, Membership, Recharge
from apps.memberships.services import MembershipService
from core.constants import CardStatus, MembershipStatus
from core.exceptions import PolicyViolation
from core.utils.utils import add_months

pytestmark = pytest.mark.django_db


def consume(card, amount="0.00", count=1, service_name="Tuina"):
    return MembershipService.record_consumption(
        card.id, service_name=service_name, amount=Decimal(amount), count=count
    )


def recharge(card, recharge_type, total_amount, **kwargs):
    return MembershipService.recharge(
        card.id,
        recharge_type=recharge_type,
        total_amount=Decimal(total_amount),
        payment_method="cash",
        **kwargs,
    )


class TestIssueCard:
    def test_initial_amount_plus_bonus_becomes_balance(self, value_card):
        assert value_card.balance == Decimal("120.00")
        assert value_card.initial_amount == Decimal("100.00")
        assert value_card.status == CardStatus.ACTIVE

    def test_initial_payment_is_recorded_as_first_recharge(self, value_card):
        recharge_row = Recharge.objects.get(membership=value_card)
        assert recharge_row.is_initial
        assert recharge_row.amount == Decimal("100.00")
        assert recharge_row.bonus_amount == Decimal("20.00")
        assert recharge_row.receipt_number.startswith("RC")

    def test_no_recharge_without_initial_amount(self, count_card):
        assert count_card.balance == Decimal("0.00")
        assert count_card.count == 3
        assert not Recharge.objects.filter(membership=count_card).exists()

    def test_unknown_customer_is_not_found(self, db):
        with pytest.raises(NotFound):
            MembershipService.issue_card(
                customer_id=999,
                card_type="value",
                expiry_date=timezone.now() + timedelta(days=30),
            )

    def test_invalid_card_type_is_rejected(self, customer):
        with pytest.raises(ValidationError):
            MembershipService.issue_card(
                customer_id=customer.id,
                card_type="gold",
                expiry_date=timezone.now() + timedelta(days=30),
            )

    def test_customer_membership_status_is_refreshed(self, customer, issue_card):
        issue_card("period", days_valid=200)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.ACTIVE

    def test_card_close_to_expiry_marks_customer_expiring(self, customer, issue_card):
        issue_card("period", days_valid=10)
        customer.refresh_from_db()
        assert customer.membership_status == MembershipStatus.EXPIRING


class TestRecharge:
    def test_recharge_deltas_accumulate(self, issue_card):
        card = issue_card("mixed", count=2)

        recharge(card, "count", "100.00", count=5)
        recharge(card, "amount", "200.00", amount=Decimal("150.00"))
        recharge(card, "mixed", "80.00", count=3, amount=Decimal("60.00"))

        card.refresh_from_db()
        assert card.count == 2 + 5 + 3
        assert card.balance == Decimal("150.00") + Decimal("60.00")
        assert Recharge.objects.filter(membership=card).count() == 3

    def test_value_card_amount_recharge_adds_total_amount(self, value_card):
        card, _ = recharge(value_card, "amount", "50.00", amount=Decimal("50.00"))
        assert card.balance == Decimal("170.00")

    def test_unknown_type_still_credits_value_card(self, value_card):
        card, _ = recharge(value_card, "topup", "30.00")
        assert card.balance == Decimal("150.00")

    def test_extend_past_expiry_starts_from_now(self, issue_card):
        card = issue_card("period", days_valid=-20)

        card, _ = recharge(card, "extend", "300.00", extend_months=2)

        expected = add_months(timezone.now(), 2)
        assert abs(card.expiry_date - expected) < timedelta(minutes=1)

    def test_extend_future_expiry_starts_from_old_expiry(self, issue_card):
        card = issue_card("period", days_valid=10)
        old_expiry = card.expiry_date

        card, _ = recharge(card, "extend", "300.00", extend_months=3)

        assert card.expiry_date == add_months(old_expiry, 3)

    def test_expired_card_is_reactivated_by_extension(self, issue_card):
        card = issue_card("period", days_valid=-5)
        Membership.objects.filter(pk=card.pk).update(status=CardStatus.EXPIRED)

        card, _ = recharge(card, "extend", "300.00", extend_months=1)

        assert card.status == CardStatus.ACTIVE
        assert card.last_recharge_date is not None

    def test_expired_card_stays_expired_without_new_validity(self, issue_card):
        card = issue_card("count", days_valid=-5, count=1)
        Membership.objects.filter(pk=card.pk).update(status=CardStatus.EXPIRED)

        card, _ = recharge(card, "count", "100.00", count=5)

        assert card.status == CardStatus.EXPIRED
        assert card.count == 6

    @pytest.mark.parametrize("blocked", [CardStatus.FROZEN, CardStatus.CANCELLED])
    def test_frozen_or_cancelled_card_cannot_be_recharged(self, value_card, blocked):
        MembershipService.update_status(value_card.id, blocked)

        with pytest.raises(PolicyViolation) as excinfo:
            recharge(value_card, "amount", "50.00")

        assert blocked in str(excinfo.value.detail).lower()
        assert not Recharge.objects.filter(membership=value_card, is_initial=False).exists()

    def test_total_amount_must_be_positive(self, value_card):
        with pytest.raises(ValidationError):
            recharge(value_card, "amount", "0")


class TestConsumption:
    def test_value_card_debit(self, value_card):
        card, consumption = consume(value_card, amount="30.00")

        assert card.balance == Decimal("90.00")
        assert consumption.receipt_number.startswith("CS")
        assert consumption.child_name == value_card.customer.child_name
        assert card.last_consume_date is not None

    def test_overdraw_is_rejected_and_card_unchanged(self, value_card):
        with pytest.raises(PolicyViolation):
            consume(value_card, amount="500.00")

        value_card.refresh_from_db()
        assert value_card.balance == Decimal("120.00")
        assert not Consumption.objects.exists()

    def test_count_card_over_consumption_is_rejected(self, count_card):
        with pytest.raises(PolicyViolation):
            consume(count_card, count=4)

        count_card.refresh_from_db()
        assert count_card.count == 3

    def test_count_card_depletes_at_zero(self, count_card):
        consume(count_card, count=2)
        card, _ = consume(count_card, count=1)

        assert card.count == 0
        assert card.status == CardStatus.DEPLETED

        with pytest.raises(PolicyViolation):
            consume(card, count=1)

    def test_mixed_card_checks_both_count_and_balance(self, issue_card):
        card = issue_card("mixed", count=5, initial_amount=Decimal("50.00"))

        with pytest.raises(PolicyViolation):
            consume(card, amount="80.00", count=1)

        card, _ = consume(card, amount="20.00", count=2)
        assert card.count == 3
        assert card.balance == Decimal("30.00")
        assert card.status == CardStatus.ACTIVE

    def test_period_card_only_needs_to_be_active(self, issue_card):
        card, consumption = consume(issue_card("period"), amount="0.00")
        assert consumption.count == 1
        assert card.status == CardStatus.ACTIVE

    def test_expired_active_card_is_marked_expired(self, issue_card):
        card = issue_card("value", days_valid=-1, initial_amount=Decimal("100.00"))

        with pytest.raises(PolicyViolation):
            consume(card, amount="10.00")

        card.refresh_from_db()
        assert card.status == CardStatus.EXPIRED
        assert card.balance == Decimal("100.00")

    def test_count_must_be_positive(self, value_card):
        with pytest.raises(ValidationError):
            consume(value_card, amount="10.00", count=0)

    def test_end_to_end_value_card(self, issue_card):
        card = issue_card("value", initial_amount=Decimal("100"), bonus_amount=Decimal("20"))
        assert card.balance == Decimal("120.00")

        card, _ = recharge(card, "amount", "50.00", amount=Decimal("50.00"))
        assert card.balance == Decimal("170.00")

        card, _ = consume(card, amount="30.00")
        assert card.balance == Decimal("140.00")

        with pytest.raises(PolicyViolation):
            consume(card, amount="500.00")
        card.refresh_from_db()
        assert card.balance == Decimal("140.00")


class TestUpdateStatus:
    def test_reason_is_appended_to_notes(self, value_card):
        card = MembershipService.update_status(value_card.id, CardStatus.FROZEN, reason="parent request")

        assert card.status == CardStatus.FROZEN
        assert "status changed to frozen, reason: parent request" in card.notes
        assert card.notes.startswith("[")

    def test_any_transition_is_accepted(self, value_card):
        MembershipService.update_status(value_card.id, CardStatus.CANCELLED)
        card = MembershipService.update_status(value_card.id, CardStatus.ACTIVE)
        assert card.status == CardStatus.ACTIVE

    def test_unknown_status_is_rejected(self, value_card):
        with pytest.raises(ValidationError):
            MembershipService.update_status(value_card.id, "archived")

    def test_missing_card_is_not_found(self, db):
        with pytest.raises(NotFound):
            MembershipService.update_status(12345, CardStatus.FROZEN)


class TestLedgerRows:
    def test_recharge_rows_cannot_be_edited(self, value_card):
        row = Recharge.objects.get(membership=value_card)
        row.notes = "changed"
        with pytest.raises(ValueError):
            row.save()

    def test_consumption_rows_cannot_be_deleted(self, value_card):
        _, consumption = consume(value_card, amount="10.00")
        with pytest.raises(ValueError):
            consumption.delete()
