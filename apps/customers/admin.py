from django.contrib import admin
from .models import Customer, Therapist


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('child_name', 'parent_name', 'phone', 'membership_status', 'is_active', 'created_at')
    list_filter = ('child_gender', 'membership_status', 'constitution', 'is_active')
    search_fields = ('child_name', 'parent_name', 'phone')
    readonly_fields = ('membership_status', 'created_at', 'updated_at')

    fieldsets = (
        ('Child', {
            'fields': ('child_name', 'child_gender', 'child_birthdate')
        }),
        ('Parent & Contact', {
            'fields': ('parent_name', 'relationship', 'phone', 'email', 'address')
        }),
        ('Health', {
            'fields': ('constitution', 'main_symptoms', 'allergy_history', 'medical_history'),
            'classes': ('collapse',)
        }),
        ('Membership', {
            'fields': ('membership_status', 'source', 'notes')
        }),
    )


@admin.register(Therapist)
class TherapistAdmin(admin.ModelAdmin):
    list_display = ('name', 'title', 'phone', 'experience_years', 'is_active')
    list_filter = ('gender', 'title', 'is_active')
    search_fields = ('name', 'phone')
