from rest_framework import serializers
from .models import OutgoingPayment, PaymentCategory, PaymentMethod, PaymentStatus
from apps.directory.serializers import (
    ExpenseCategorySerializer,
    ProductMinimalSerializer,
    StaffMinimalSerializer,
)


# =============================================================================
# Input Serializers
# =============================================================================

class OutgoingPaymentFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for payment filtering.

    Query Parameters:
        category (str): Filter by payment category
        status (str): Filter by payment status
        payment_method (str): Filter by payment method
        date_from (date): Payments on or after this date
        date_to (date): Payments on or before this date
        search (str): Match on number, payee name, reference or notes
    """

    category = serializers.ChoiceField(choices=PaymentCategory.choices, required=False)
    status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    search = serializers.CharField(max_length=200, required=False, allow_blank=True)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


class AttachmentSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    url = serializers.URLField(max_length=500)
    type = serializers.CharField(max_length=100, required=False, allow_blank=True)


class OutgoingPaymentInputSerializer(serializers.Serializer):
    """
    Validate input for creating (or dry-run validating) a payment.

    Payee fields are all optional here; which one is required depends on
    the category and is decided by the classifier.
    """

    payment_category = serializers.ChoiceField(choices=PaymentCategory.choices)
    expense_category_id = serializers.IntegerField(required=False, allow_null=True)
    staff_id = serializers.IntegerField(required=False, allow_null=True)
    product_id = serializers.IntegerField(required=False, allow_null=True)
    payee_name = serializers.CharField(max_length=200, required=False, allow_null=True, allow_blank=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_date = serializers.DateField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)
    status = serializers.ChoiceField(
        choices=PaymentStatus.choices,
        required=False,
        default=PaymentStatus.SCHEDULED
    )
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    attachments = AttachmentSerializer(many=True, required=False)


class OutgoingPaymentUpdateSerializer(serializers.Serializer):
    """Validate input for updating a payment; every field is optional."""

    payment_category = serializers.ChoiceField(choices=PaymentCategory.choices, required=False)
    expense_category_id = serializers.IntegerField(required=False, allow_null=True)
    staff_id = serializers.IntegerField(required=False, allow_null=True)
    product_id = serializers.IntegerField(required=False, allow_null=True)
    payee_name = serializers.CharField(max_length=200, required=False, allow_null=True, allow_blank=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    payment_date = serializers.DateField(required=False)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False)
    status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    reference_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    attachments = AttachmentSerializer(many=True, required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class OutgoingPaymentSerializer(serializers.ModelSerializer):
    """Payment with its payee expanded."""

    expense_category = ExpenseCategorySerializer(read_only=True)
    staff = StaffMinimalSerializer(read_only=True)
    product = ProductMinimalSerializer(read_only=True)
    payee_display = serializers.CharField(read_only=True)

    class Meta:
        model = OutgoingPayment
        fields = [
            'id',
            'number',
            'payment_category',
            'expense_category_id',
            'expense_category',
            'staff_id',
            'staff',
            'product_id',
            'product',
            'payee_name',
            'payee_display',
            'amount',
            'payment_date',
            'payment_method',
            'status',
            'reference_number',
            'notes',
            'attachments',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class OutgoingPaymentListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for payment lists."""

    payee_display = serializers.CharField(read_only=True)

    class Meta:
        model = OutgoingPayment
        fields = [
            'id',
            'number',
            'payment_category',
            'payee_display',
            'amount',
            'payment_date',
            'payment_method',
            'status',
        ]
        read_only_fields = fields


class ValidationResultSerializer(serializers.Serializer):
    """Outcome of a dry-run validation."""

    valid = serializers.BooleanField()
    payment_category = serializers.CharField()
    payee = serializers.DictField()
