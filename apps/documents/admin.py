from django.contrib import admin
from django.utils.html import format_html
from .models import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    Quotation,
    QuotationLineItem,
    QuotationStatus,
)

DERIVED_FIELDS = [
    'number',
    'client_name',
    'client_email',
    'subtotal',
    'discount_amount',
    'tax_amount',
    'total_amount',
    'created_by',
    'created_at',
    'updated_at',
]

STATUS_COLORS = {
    QuotationStatus.DRAFT: '#9E9E9E',
    QuotationStatus.SENT: '#2F6DB5',
    QuotationStatus.ACCEPTED: '#6B8E5E',
    QuotationStatus.REJECTED: '#B85C5C',
    QuotationStatus.EXPIRED: '#A47449',
    QuotationStatus.CONVERTED: '#4B3C8C',
    InvoiceStatus.PENDING_PAYMENT: '#E5A03A',
    InvoiceStatus.PAID: '#6B8E5E',
    InvoiceStatus.OVERDUE: '#B85C5C',
    InvoiceStatus.CANCELLED: '#666666',
}


def status_badge(obj):
    """Display document status as colored badge."""
    return format_html(
        '<span style="background: {}; color: white; padding: 3px 8px; '
        'border-radius: 10px; font-size: 11px;">{}</span>',
        STATUS_COLORS.get(obj.status, '#ccc'), obj.get_status_display()
    )


status_badge.short_description = 'Status'


class LineItemInline(admin.TabularInline):
    """Read-only line items; they are replaced as a set by the services."""
    extra = 0
    fields = ['position', 'product', 'product_name', 'description', 'quantity', 'unit_price', 'amount']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class QuotationLineItemInline(LineItemInline):
    model = QuotationLineItem


class InvoiceLineItemInline(LineItemInline):
    model = InvoiceLineItem


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    """
    Admin interface for quotations.

    Numbers, totals and line items are read-only: they are computed by the
    documents services and must stay consistent with each other.
    """
    list_display = ['number', 'client_name', 'quotation_date', 'valid_until_date', status_badge, 'total_amount']
    list_filter = ['status', 'quotation_date']
    search_fields = ['number', 'client_name', 'client_email']
    readonly_fields = DERIVED_FIELDS + ['status', 'discount_type', 'discount_value', 'tax_rate_percent']
    inlines = [QuotationLineItemInline]

    def has_add_permission(self, request):
        """Disable adding quotations manually - they're numbered by the service."""
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Admin interface for invoices."""
    list_display = ['number', 'client_name', 'issue_date', 'due_date', status_badge, 'total_amount', 'balance_due']
    list_filter = ['status', 'issue_date', 'due_date']
    search_fields = ['number', 'client_name', 'client_email']
    readonly_fields = DERIVED_FIELDS + [
        'status',
        'discount_type',
        'discount_value',
        'tax_rate_percent',
        'amount_paid',
        'balance_due',
        'quotation',
    ]
    inlines = [InvoiceLineItemInline]

    def has_add_permission(self, request):
        """Disable adding invoices manually - they're numbered by the service."""
        return False
