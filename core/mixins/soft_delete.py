# core/mixins/soft_delete.py

from django.db import models
from django.utils import timezone


class SoftDeleteMixin(models.Model):
    """Soft delete instead of actual deletion; ledger rows keep their references"""
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True, editable=False)

    def delete(self, *args, **kwargs):
        """Override delete to soft delete"""
        self.is_active = False
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_active', 'deleted_at'])

    class Meta:
        abstract = True
