# apps/customers/models.py
from django.db import models
from django.utils import timezone

from core.constants import Gender, MembershipStatus, CardStatus, EXPIRING_SOON_DAYS
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin


class Customer(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """A child client and the parent who brings them in"""

    RELATIONSHIP_CHOICES = [
        ('father', 'Father'),
        ('mother', 'Mother'),
        ('grandparent', 'Grandparent'),
        ('other', 'Other'),
    ]

    # Child
    child_name = models.CharField(max_length=100)
    child_gender = models.CharField(max_length=10, choices=Gender.choices)
    child_birthdate = models.DateField()

    # Parent / contact
    parent_name = models.CharField(max_length=100)
    relationship = models.CharField(max_length=20, choices=RELATIONSHIP_CHOICES, default='mother')
    phone = models.CharField(max_length=20)
    email = models.EmailField(blank=True)
    address = models.CharField(max_length=255, blank=True)

    # Health
    constitution = models.CharField(max_length=50, blank=True)
    main_symptoms = models.TextField(blank=True)
    allergy_history = models.TextField(blank=True)
    medical_history = models.TextField(blank=True)

    source = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)

    # Cached projection of the customer's cards, see refresh_membership_status()
    membership_status = models.CharField(
        max_length=10,
        choices=MembershipStatus.choices,
        default=MembershipStatus.NONE
    )

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['phone']),
            models.Index(fields=['child_name']),
        ]

    def __str__(self):
        return f"{self.child_name} ({self.parent_name})"

    @property
    def child_age(self):
        today = timezone.localdate()
        born = self.child_birthdate
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    @staticmethod
    def _expiry_label(card, now=None):
        remaining = card.remaining_days(now)
        if remaining <= 0:
            return MembershipStatus.EXPIRED
        if remaining <= EXPIRING_SOON_DAYS:
            return MembershipStatus.EXPIRING
        return MembershipStatus.ACTIVE

    def derive_membership_status(self, now=None):
        """Label from the latest-expiring non-cancelled card; a card that is not active reports its own status"""
        card = (
            self.memberships
            .exclude(status=CardStatus.CANCELLED)
            .order_by('-expiry_date')
            .first()
        )
        if card is None:
            return MembershipStatus.NONE
        if card.status != CardStatus.ACTIVE:
            return card.status
        return self._expiry_label(card, now)

    def current_membership_status(self, now=None):
        """
        Cached projection stored in `membership_status`.

        The latest-expiring active card decides between active, expiring and
        expired. Without an active card, any other non-cancelled card counts
        as expired.
        """
        cards = self.memberships.exclude(status=CardStatus.CANCELLED)
        card = cards.filter(status=CardStatus.ACTIVE).order_by('-expiry_date').first()
        if card is not None:
            return self._expiry_label(card, now)
        return MembershipStatus.EXPIRED if cards.exists() else MembershipStatus.NONE

    def refresh_membership_status(self):
        """Recompute the cached membership status from the customer's cards"""
        status = self.current_membership_status()
        if status != self.membership_status:
            self.membership_status = status
            self.save(update_fields=['membership_status', 'updated_at'])
        return status


class Therapist(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """Massage therapist on the clinic roster"""

    name = models.CharField(max_length=100)
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    title = models.CharField(max_length=50, blank=True)
    specialties = models.JSONField(default=list, blank=True)
    experience_years = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'therapists'
        ordering = ['name']

    def __str__(self):
        return self.name
