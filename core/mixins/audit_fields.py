# core/mixins/audit_fields.py
from django.db import models


class AuditFieldsMixin(models.Model):
    """Adds created/updated timestamps and the operator who made the change"""
    created_at = models.DateTimeField(auto_now_add=True, editable=False)
    updated_at = models.DateTimeField(auto_now=True, editable=False)
    operator_name = models.CharField(max_length=100, blank=True, default='')

    class Meta:
        abstract = True
