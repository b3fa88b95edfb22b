from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from decimal import Decimal


def default_currency():
    return settings.BILLING_DEFAULT_CURRENCY


class DocumentType(models.TextChoices):
    QUOTATION = 'quotation', 'Quotation'
    INVOICE = 'invoice', 'Invoice'


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED = 'fixed', 'Fixed'


class QuotationStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    SENT = 'sent', 'Sent'
    ACCEPTED = 'accepted', 'Accepted'
    REJECTED = 'rejected', 'Rejected'
    EXPIRED = 'expired', 'Expired'
    CONVERTED = 'converted', 'Converted'


class InvoiceStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    SENT = 'sent', 'Sent'
    PENDING_PAYMENT = 'pending_payment', 'Pending Payment'
    PAID = 'paid', 'Paid'
    OVERDUE = 'overdue', 'Overdue'
    CANCELLED = 'cancelled', 'Cancelled'


class BillingDocument(models.Model):
    """
    Fields shared by quotations and invoices.

    Every monetary column except ``discount_value`` and ``tax_rate_percent``
    is derived; the services layer recomputes them from the line items
    before each save.
    """

    document_type = None

    client = models.ForeignKey(
        'directory.Client',
        on_delete=models.PROTECT,
        related_name='%(class)ss'
    )
    # Denormalized so documents keep the name they were issued under
    client_name = models.CharField(max_length=200)
    client_email = models.EmailField(max_length=255, blank=True)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.PERCENTAGE
    )
    discount_value = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    tax_rate_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default=default_currency)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)ss_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.number} - {self.client_name} ({self.total_amount} {self.currency})"


class Quotation(BillingDocument):
    """Price offer sent to a client; may later be converted into an invoice."""

    document_type = DocumentType.QUOTATION

    number = models.CharField(max_length=32, unique=True, db_column='quotation_number', editable=False)
    quotation_date = models.DateField()
    valid_until_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=QuotationStatus.choices,
        default=QuotationStatus.DRAFT
    )
    terms_and_conditions = models.TextField(blank=True)

    class Meta:
        db_table = 'quotations'
        indexes = [
            models.Index(fields=['status'], name='quotations_status_idx'),
            models.Index(fields=['client', 'status'], name='quotations_client_status_idx'),
            models.Index(fields=['quotation_date'], name='quotations_date_idx'),
        ]
        ordering = ['-created_at']


class Invoice(BillingDocument):
    """Request for payment; tracks how much of the total has been paid."""

    document_type = DocumentType.INVOICE

    number = models.CharField(max_length=32, unique=True, db_column='invoice_number', editable=False)
    issue_date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.DRAFT
    )
    amount_paid = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    # Negative when the client overpaid
    balance_due = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    payment_terms = models.CharField(max_length=200, blank=True)
    payment_instructions = models.TextField(blank=True)

    quotation = models.OneToOneField(
        Quotation,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoice'
    )

    class Meta:
        db_table = 'invoices'
        indexes = [
            models.Index(fields=['status'], name='invoices_status_idx'),
            models.Index(fields=['client', 'status'], name='invoices_client_status_idx'),
            models.Index(fields=['due_date', 'status'], name='invoices_due_status_idx'),
        ]
        ordering = ['-created_at']


class LineItem(models.Model):
    """One priced entry within a document. ``amount`` is quantity x unit price."""

    product = models.ForeignKey(
        'directory.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    product_name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    unit_price = models.DecimalField(max_digits=14, decimal_places=2)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"


class QuotationLineItem(LineItem):
    document = models.ForeignKey(
        Quotation,
        on_delete=models.CASCADE,
        related_name='line_items',
        db_column='quotation_id'
    )

    class Meta(LineItem.Meta):
        db_table = 'quotation_line_items'
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='quotation_item_quantity_positive'),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name='quotation_item_price_non_negative'),
        ]


class InvoiceLineItem(LineItem):
    document = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='line_items',
        db_column='invoice_id'
    )

    class Meta(LineItem.Meta):
        db_table = 'invoice_line_items'
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='invoice_item_quantity_positive'),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name='invoice_item_price_non_negative'),
        ]
