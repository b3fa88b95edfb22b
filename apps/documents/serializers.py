from rest_framework import serializers
from .models import (
    DiscountType,
    Invoice,
    InvoiceStatus,
    Quotation,
    QuotationStatus,
)
from .services import lifecycle


# =============================================================================
# Input Serializers
# =============================================================================

class DocumentFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for document listings.

    Query Parameters:
        status (str): Filter by document status
        client (int): Filter by client ID
        search (str): Match on number or client name
        date_from (date): Documents dated on or after this day
        date_to (date): Documents dated on or before this day
    """

    status = serializers.CharField(max_length=20, required=False)
    client = serializers.IntegerField(required=False)
    search = serializers.CharField(max_length=200, required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


class LineItemInputSerializer(serializers.Serializer):
    """
    One line item as submitted by a client.

    Quantity and price bounds are checked by the pricing service so the
    error can name the offending line.
    """

    product_id = serializers.IntegerField(required=False, allow_null=True)
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2)


class PricingInputSerializer(serializers.Serializer):
    """Fields shared by every document write."""

    line_items = LineItemInputSerializer(many=True, allow_empty=True)
    discount_type = serializers.ChoiceField(
        choices=DiscountType.choices,
        required=False,
        default=DiscountType.PERCENTAGE
    )
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    tax_rate_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, default=0)


class QuotationCreateSerializer(PricingInputSerializer):
    """Validate input for creating a quotation."""

    client_id = serializers.IntegerField()
    quotation_date = serializers.DateField()
    valid_until_date = serializers.DateField()
    currency = serializers.CharField(max_length=3, required=False)
    terms_and_conditions = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class QuotationUpdateSerializer(serializers.Serializer):
    """
    Validate input for updating a quotation.

    Every field is optional; ``line_items``, when present, replaces the
    whole set.
    """

    client_id = serializers.IntegerField(required=False)
    quotation_date = serializers.DateField(required=False)
    valid_until_date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=QuotationStatus.choices, required=False)
    line_items = LineItemInputSerializer(many=True, required=False, allow_empty=True)
    discount_type = serializers.ChoiceField(choices=DiscountType.choices, required=False)
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    tax_rate_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    currency = serializers.CharField(max_length=3, required=False)
    terms_and_conditions = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class InvoiceCreateSerializer(PricingInputSerializer):
    """Validate input for creating an invoice."""

    client_id = serializers.IntegerField()
    issue_date = serializers.DateField()
    due_date = serializers.DateField()
    currency = serializers.CharField(max_length=3, required=False)
    payment_terms = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    payment_instructions = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class InvoiceUpdateSerializer(serializers.Serializer):
    """
    Validate input for updating an invoice.

    ``amount_paid`` is deliberately absent: payments go through the
    record-payment endpoint.
    """

    client_id = serializers.IntegerField(required=False)
    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=InvoiceStatus.choices, required=False)
    line_items = LineItemInputSerializer(many=True, required=False, allow_empty=True)
    discount_type = serializers.ChoiceField(choices=DiscountType.choices, required=False)
    discount_value = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    tax_rate_percent = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)
    currency = serializers.CharField(max_length=3, required=False)
    payment_terms = serializers.CharField(max_length=200, required=False, allow_blank=True)
    payment_instructions = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class TransitionInputSerializer(serializers.Serializer):
    """
    Validate input for a status change.

    Fields:
        status (str): Requested status; legality is checked by the lifecycle
    """

    status = serializers.CharField(max_length=20)


class RecordPaymentInputSerializer(serializers.Serializer):
    """
    Validate input for recording a received payment.

    Fields:
        amount (decimal): Amount received, added to amount_paid
    """

    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class ConvertQuotationInputSerializer(serializers.Serializer):
    """Optional invoice fields when converting a quotation."""

    issue_date = serializers.DateField(required=False)
    due_date = serializers.DateField(required=False)
    payment_terms = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    payment_instructions = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        issue_date = attrs.get('issue_date')
        due_date = attrs.get('due_date')
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({
                'due_date': 'Due date cannot be before issue date'
            })
        return attrs


class PreviewTotalsInputSerializer(PricingInputSerializer):
    """Line items and pricing to run through the calculator without saving."""

    amount_paid = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class OverdueFilterSerializer(serializers.Serializer):
    """
    Query Parameters:
        as_of (date): Reference day (defaults to today)
    """

    as_of = serializers.DateField(required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class LineItemSerializer(serializers.Serializer):
    """Stored line item (works for quotation and invoice items alike)."""

    id = serializers.IntegerField(read_only=True)
    product_id = serializers.IntegerField(read_only=True, allow_null=True)
    product_name = serializers.CharField(read_only=True)
    description = serializers.CharField(read_only=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)
    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    position = serializers.IntegerField(read_only=True)


class TotalsSerializer(serializers.Serializer):
    """Rounded result of the totals calculator."""

    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    taxable_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    amount_paid = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)


DOCUMENT_FIELDS = [
    'id',
    'number',
    'client',
    'client_name',
    'client_email',
    'status',
    'subtotal',
    'discount_type',
    'discount_value',
    'discount_amount',
    'tax_rate_percent',
    'tax_amount',
    'total_amount',
    'currency',
    'notes',
    'created_by',
    'created_at',
    'updated_at',
]


class QuotationListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for quotation lists."""

    class Meta:
        model = Quotation
        fields = [
            'id',
            'number',
            'client',
            'client_name',
            'quotation_date',
            'valid_until_date',
            'status',
            'total_amount',
            'currency',
        ]
        read_only_fields = fields


class QuotationSerializer(serializers.ModelSerializer):
    """Quotation with line items and allowed next statuses."""

    line_items = LineItemSerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Quotation
        fields = DOCUMENT_FIELDS + [
            'quotation_date',
            'valid_until_date',
            'terms_and_conditions',
            'line_items',
            'allowed_transitions',
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        return sorted(lifecycle.requestable_transitions(obj))


class InvoiceListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for invoice lists."""

    class Meta:
        model = Invoice
        fields = [
            'id',
            'number',
            'client',
            'client_name',
            'issue_date',
            'due_date',
            'status',
            'total_amount',
            'amount_paid',
            'balance_due',
            'currency',
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """Invoice with line items, payment state and allowed next statuses."""

    line_items = LineItemSerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField()
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = DOCUMENT_FIELDS + [
            'issue_date',
            'due_date',
            'amount_paid',
            'balance_due',
            'payment_terms',
            'payment_instructions',
            'quotation',
            'line_items',
            'allowed_transitions',
            'is_overdue',
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        return sorted(lifecycle.requestable_transitions(obj))

    def get_is_overdue(self, obj):
        return lifecycle.is_overdue(obj)


class NextNumberSerializer(serializers.Serializer):
    """Preview of the next number in a series."""

    number = serializers.CharField()
