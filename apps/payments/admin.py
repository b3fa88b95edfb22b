from django.contrib import admin
from .models import OutgoingPayment


@admin.register(OutgoingPayment)
class OutgoingPaymentAdmin(admin.ModelAdmin):
    """
    Admin interface for outgoing payments.

    Payments are read-only here apart from status and notes: payee fields
    must go through the category classifier.
    """
    list_display = ['number', 'payment_category', 'payee_display', 'amount', 'payment_date', 'payment_method', 'status']
    list_filter = ['payment_category', 'status', 'payment_method', 'payment_date']
    search_fields = ['number', 'payee_name', 'reference_number', 'staff__name', 'product__name']
    list_select_related = ['staff', 'product', 'expense_category']
    readonly_fields = [
        'number',
        'payment_category',
        'expense_category',
        'staff',
        'product',
        'payee_name',
        'amount',
        'payment_date',
        'payment_method',
        'created_by',
        'created_at',
        'updated_at',
    ]
    date_hierarchy = 'payment_date'

    def has_add_permission(self, request):
        """Disable adding payments manually - they're numbered by the service."""
        return False
