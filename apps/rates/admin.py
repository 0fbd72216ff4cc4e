"""
Django Admin configuration for the rates app.
Rates are written by the reconciler only, so they are read-only here.
"""

from django.contrib import admin

from apps.rates.infrastructure.persistence.models import (
    Currency,
    ExchangeRateRecord,
)


@admin.register(Currency)
class CurrencyAdmin(admin.ModelAdmin):
    """Admin interface for Currency model. Only the display name is editable."""

    list_display = ('code', 'name', 'created_at')
    search_fields = ('code', 'name')
    readonly_fields = ('id', 'code', 'created_at')
    ordering = ('code',)

    fieldsets = (
        ('Currency Information', {
            'fields': ('code', 'name')
        }),
        ('Metadata', {
            'fields': ('id', 'created_at'),
            'classes': ('collapse',)
        }),
    )

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ExchangeRateRecord)
class ExchangeRateRecordAdmin(admin.ModelAdmin):
    """Admin interface for ExchangeRateRecord model."""

    list_display = (
        'get_currency_pair',
        'rate',
        'updated_at',
        'created_at'
    )
    list_filter = ('base_code',)
    search_fields = ('base_code', 'target_currency__code')
    readonly_fields = ('id', 'base_code', 'target_currency', 'rate', 'updated_at', 'created_at')
    date_hierarchy = 'updated_at'
    ordering = ('base_code', 'target_currency')

    def get_currency_pair(self, obj):
        """Display currency pair in format BASE/TARGET."""
        return f"{obj.base_code}/{obj.target_currency_id}"
    get_currency_pair.short_description = 'Currency Pair'
    get_currency_pair.admin_order_field = 'base_code'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
