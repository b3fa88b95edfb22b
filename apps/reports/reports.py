"""
Reports Module
==============

Read-only aggregate queries over the directory, billing documents and
outgoing payments. They power the back-office dashboard and the monthly
cash-flow chart.

Classes:
    ReportQueries: Static methods for the individual report sections.

Example:
    Revenue for one month::

        from apps.reports.reports import ReportQueries

        revenue = ReportQueries.revenue(
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
        )
        print(f"Outstanding: {revenue['outstanding']}")

Note:
    Every method returns plain dictionaries or lists so the results can be
    handed to a response serializer as they are.
"""

from decimal import Decimal

from django.db.models import Count, DecimalField, Sum, Value
from django.db.models.functions import Coalesce, TruncMonth

from apps.directory.models import Client, Product, ProductStatus, RecordStatus, Staff, StaffStatus
from apps.documents.models import Invoice, InvoiceStatus, Quotation, QuotationStatus
from apps.payments.models import OutgoingPayment, PaymentCategory, PaymentStatus


ZERO = Decimal('0.00')

# Invoices that never left the office do not count as revenue
UNISSUED_INVOICE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED)
OPEN_INVOICE_STATUSES = (
    InvoiceStatus.SENT,
    InvoiceStatus.PENDING_PAYMENT,
    InvoiceStatus.OVERDUE,
)
VOID_PAYMENT_STATUSES = (PaymentStatus.FAILED, PaymentStatus.CANCELLED)


def _money_sum(field):
    return Coalesce(Sum(field), Value(ZERO), output_field=DecimalField(max_digits=14, decimal_places=2))


def _in_period(queryset, field, start_date, end_date):
    if start_date:
        queryset = queryset.filter(**{f'{field}__gte': start_date})
    if end_date:
        queryset = queryset.filter(**{f'{field}__lte': end_date})
    return queryset


class ReportQueries:
    """
    Aggregate queries for the reporting endpoints.

    Methods:
        directory_counts: Record counts from the directory.
        revenue: Invoiced, collected and outstanding amounts.
        quotation_pipeline: Quotation count and value per status.
        outgoing_by_category: Outgoing payment totals per category.
        monthly_cashflow: Invoiced versus outgoing amounts per month.
    """

    @staticmethod
    def directory_counts():
        """
        Count directory records.

        Returns:
            dict: clients, active_clients, staff, active_staff, products,
            active_products (all int).
        """
        return {
            'clients': Client.objects.count(),
            'active_clients': Client.objects.filter(status=RecordStatus.ACTIVE).count(),
            'staff': Staff.objects.count(),
            'active_staff': Staff.objects.filter(status=StaffStatus.ACTIVE).count(),
            'products': Product.objects.count(),
            'active_products': Product.objects.filter(status=ProductStatus.ACTIVE).count(),
        }

    @staticmethod
    def revenue(start_date=None, end_date=None):
        """
        Summarize issued invoices.

        Drafts and cancelled invoices are left out. The period filters on
        the issue date.

        Args:
            start_date (date, optional): First issue date included.
            end_date (date, optional): Last issue date included.

        Returns:
            dict: A dictionary containing:
                - invoiced (Decimal): Sum of invoice totals.
                - collected (Decimal): Sum of amounts paid.
                - outstanding (Decimal): Balance still due on open invoices.
                - invoice_count (int): Number of invoices included.
                - overdue_count (int): Invoices currently marked overdue.
                - period_start / period_end: The arguments, echoed back.
        """
        invoices = _in_period(
            Invoice.objects.exclude(status__in=UNISSUED_INVOICE_STATUSES),
            'issue_date', start_date, end_date,
        )

        totals = invoices.aggregate(
            invoiced=_money_sum('total_amount'),
            collected=_money_sum('amount_paid'),
            invoice_count=Count('id'),
        )
        outstanding = invoices.filter(status__in=OPEN_INVOICE_STATUSES).aggregate(
            total=_money_sum('balance_due')
        )['total']

        return {
            'invoiced': totals['invoiced'],
            'collected': totals['collected'],
            'outstanding': outstanding,
            'invoice_count': totals['invoice_count'],
            'overdue_count': invoices.filter(status=InvoiceStatus.OVERDUE).count(),
            'period_start': start_date,
            'period_end': end_date,
        }

    @staticmethod
    def quotation_pipeline(start_date=None, end_date=None):
        """
        Quotation count and total value for every status.

        Statuses without quotations are reported with zeros, in lifecycle
        order.

        Returns:
            list[dict]: status, count, total_amount
        """
        quotations = _in_period(Quotation.objects.all(), 'quotation_date', start_date, end_date)
        rows = {
            row['status']: row
            for row in (
                quotations
                .order_by()
                .values('status')
                .annotate(count=Count('id'), value=_money_sum('total_amount'))
            )
        }

        return [
            {
                'status': choice.value,
                'count': rows.get(choice.value, {}).get('count', 0),
                'total_amount': rows.get(choice.value, {}).get('value', ZERO),
            }
            for choice in QuotationStatus
        ]

    @staticmethod
    def outgoing_by_category(start_date=None, end_date=None):
        """
        Outgoing payment totals per category.

        Failed and cancelled payments are left out. Every category is
        present in the result, with zeros where nothing was paid.

        Returns:
            dict: ``categories`` (list of category/count/total_amount) and
            ``total_amount`` across all categories.
        """
        payments = _in_period(
            OutgoingPayment.objects.exclude(status__in=VOID_PAYMENT_STATUSES),
            'payment_date', start_date, end_date,
        )
        rows = {
            row['payment_category']: row
            for row in (
                payments
                .order_by()
                .values('payment_category')
                .annotate(count=Count('id'), value=_money_sum('amount'))
            )
        }

        categories = [
            {
                'category': choice.value,
                'count': rows.get(choice.value, {}).get('count', 0),
                'total_amount': rows.get(choice.value, {}).get('value', ZERO),
            }
            for choice in PaymentCategory
        ]
        return {
            'categories': categories,
            'total_amount': sum((row['total_amount'] for row in categories), ZERO),
        }

    @staticmethod
    def monthly_cashflow(start_date=None, end_date=None):
        """
        Invoiced and outgoing amounts grouped by month.

        Returns:
            list[dict]: period ('YYYY-MM'), invoiced, outgoing and net,
            sorted by period. Months with no activity are omitted.
        """
        invoiced = (
            _in_period(
                Invoice.objects.exclude(status__in=UNISSUED_INVOICE_STATUSES),
                'issue_date', start_date, end_date,
            )
            .order_by()
            .annotate(month=TruncMonth('issue_date'))
            .values('month')
            .annotate(total=_money_sum('total_amount'))
        )
        outgoing = (
            _in_period(
                OutgoingPayment.objects.exclude(status__in=VOID_PAYMENT_STATUSES),
                'payment_date', start_date, end_date,
            )
            .order_by()
            .annotate(month=TruncMonth('payment_date'))
            .values('month')
            .annotate(total=_money_sum('amount'))
        )

        months = {}
        for key, rows in (('invoiced', invoiced), ('outgoing', outgoing)):
            for row in rows:
                period = row['month'].strftime('%Y-%m')
                months.setdefault(period, {'invoiced': ZERO, 'outgoing': ZERO})[key] += row['total']

        return [
            {
                'period': period,
                'invoiced': values['invoiced'],
                'outgoing': values['outgoing'],
                'net': values['invoiced'] - values['outgoing'],
            }
            for period, values in sorted(months.items())
        ]
