"""
Serializers for the reports app.

Input Serializers:
    PeriodQuerySerializer - Validates period and date range parameters

Response Serializers:
    DashboardResponseSerializer - Dashboard summary
    CashflowPointSerializer - One month of the cash-flow series
"""

from calendar import monthrange
from datetime import date

from rest_framework import serializers


# =============================================================================
# Input Serializers (Query Parameter Validation)
# =============================================================================

class PeriodQuerySerializer(serializers.Serializer):
    """
    Validate period and date range query parameters.

    Query Parameters:
        period (str): Month period in YYYY-MM format (e.g., '2025-01')
        start_date (date): Start of date range
        end_date (date): End of date range

    Note:
        If 'period' is provided, it takes precedence and is converted
        to start_date and end_date for the full month.
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        help_text='Month period in YYYY-MM format'
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        """Parse period into date range if provided."""
        period = attrs.pop('period', None)
        if period:
            year, month = (int(part) for part in period.split('-'))
            attrs['start_date'] = date(year, month, 1)
            attrs['end_date'] = date(year, month, monthrange(year, month)[1])

        start = attrs.get('start_date')
        end = attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError({
                'start_date': 'Start date must be before end date'
            })

        return attrs


# =============================================================================
# Response Serializers
# =============================================================================

class DirectoryCountsSerializer(serializers.Serializer):
    clients = serializers.IntegerField()
    active_clients = serializers.IntegerField()
    staff = serializers.IntegerField()
    active_staff = serializers.IntegerField()
    products = serializers.IntegerField()
    active_products = serializers.IntegerField()


class RevenueSerializer(serializers.Serializer):
    invoiced = serializers.DecimalField(max_digits=14, decimal_places=2)
    collected = serializers.DecimalField(max_digits=14, decimal_places=2)
    outstanding = serializers.DecimalField(max_digits=14, decimal_places=2)
    invoice_count = serializers.IntegerField()
    overdue_count = serializers.IntegerField()
    period_start = serializers.DateField(allow_null=True)
    period_end = serializers.DateField(allow_null=True)


class PipelineRowSerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class CategoryTotalSerializer(serializers.Serializer):
    category = serializers.CharField()
    count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class OutgoingSummarySerializer(serializers.Serializer):
    categories = CategoryTotalSerializer(many=True)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class DashboardResponseSerializer(serializers.Serializer):
    """Response serializer for the dashboard summary."""
    directory = DirectoryCountsSerializer()
    revenue = RevenueSerializer()
    quotation_pipeline = PipelineRowSerializer(many=True)
    outgoing = OutgoingSummarySerializer()


class CashflowPointSerializer(serializers.Serializer):
    period = serializers.CharField()
    invoiced = serializers.DecimalField(max_digits=14, decimal_places=2)
    outgoing = serializers.DecimalField(max_digits=14, decimal_places=2)
    net = serializers.DecimalField(max_digits=14, decimal_places=2)


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
