from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from decimal import Decimal


class PaymentCategory(models.TextChoices):
    EXPENSE_PAYMENT = 'Expense Payment', 'Expense Payment'
    STAFF_SALARY = 'Staff Salary', 'Staff Salary'
    CLOUD_SUBSCRIPTION = 'Cloud Subscription', 'Cloud Subscription'
    OTHER_OUTGOING_PAYMENT = 'Other Outgoing Payment', 'Other Outgoing Payment'


class PaymentMethod(models.TextChoices):
    CASH = 'Cash', 'Cash'
    CARD = 'Card', 'Card'
    BANK_TRANSFER = 'Bank Transfer', 'Bank Transfer'
    CHEQUE = 'Cheque', 'Cheque'
    ONLINE_PAYMENT = 'Online Payment', 'Online Payment'
    DIRECT_DEBIT = 'Direct Debit', 'Direct Debit'
    OTHER = 'Other', 'Other'


class PaymentStatus(models.TextChoices):
    SCHEDULED = 'Scheduled', 'Scheduled'
    PROCESSING = 'Processing', 'Processing'
    PAID = 'Paid', 'Paid'
    FAILED = 'Failed', 'Failed'
    CANCELLED = 'Cancelled', 'Cancelled'


class OutgoingPayment(models.Model):
    """
    Money leaving the business.

    The payee is identified by exactly one of ``expense_category``,
    ``staff``, ``product`` or ``payee_name``, depending on the category.
    The services layer normalizes the record before saving; the check
    constraint below rejects anything that slips past it.
    """

    number = models.CharField(max_length=32, unique=True, db_column='payment_number', editable=False)
    payment_category = models.CharField(max_length=30, choices=PaymentCategory.choices)

    expense_category = models.ForeignKey(
        'directory.ExpenseCategory',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    staff = models.ForeignKey(
        'directory.Staff',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    product = models.ForeignKey(
        'directory.Product',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    payee_name = models.CharField(max_length=200, null=True, blank=True)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.SCHEDULED
    )
    reference_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    # Metadata only ({"name", "url", "type"}); files are stored elsewhere
    attachments = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='outgoing_payments_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'outgoing_payments'
        ordering = ['-payment_date', '-created_at']
        indexes = [
            models.Index(fields=['payment_category'], name='out_payments_category_idx'),
            models.Index(fields=['status'], name='out_payments_status_idx'),
            models.Index(fields=['payment_date'], name='out_payments_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='outgoing_payment_amount_positive'),
            models.CheckConstraint(
                condition=(
                    Q(
                        payment_category=PaymentCategory.EXPENSE_PAYMENT,
                        staff__isnull=True,
                        product__isnull=True,
                        payee_name__isnull=True,
                    )
                    | Q(
                        payment_category=PaymentCategory.STAFF_SALARY,
                        staff__isnull=False,
                        expense_category__isnull=True,
                        product__isnull=True,
                        payee_name__isnull=True,
                    )
                    | Q(
                        payment_category=PaymentCategory.CLOUD_SUBSCRIPTION,
                        product__isnull=False,
                        expense_category__isnull=True,
                        staff__isnull=True,
                        payee_name__isnull=True,
                    )
                    | Q(
                        payment_category=PaymentCategory.OTHER_OUTGOING_PAYMENT,
                        payee_name__isnull=False,
                        expense_category__isnull=True,
                        staff__isnull=True,
                        product__isnull=True,
                    )
                ),
                name='outgoing_payment_single_payee',
            ),
        ]

    def __str__(self):
        return f"{self.number} - {self.payment_category} ({self.amount})"

    @property
    def payee_display(self):
        """Human-readable payee for lists and reports."""
        if self.staff_id:
            return self.staff.name
        if self.product_id:
            return self.product.name
        if self.expense_category_id:
            return self.expense_category.name
        return self.payee_name or ''
