from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.core import numbering
from apps.core.numbering import NumberSeries

from .models import DocumentType, Invoice, InvoiceStatus, Quotation
from .serializers import (
    DocumentFilterSerializer,
    QuotationSerializer,
    QuotationListSerializer,
    QuotationCreateSerializer,
    QuotationUpdateSerializer,
    InvoiceSerializer,
    InvoiceListSerializer,
    InvoiceCreateSerializer,
    InvoiceUpdateSerializer,
    TransitionInputSerializer,
    RecordPaymentInputSerializer,
    ConvertQuotationInputSerializer,
    PreviewTotalsInputSerializer,
    OverdueFilterSerializer,
    TotalsSerializer,
    NextNumberSerializer,
)
from .services import (
    Discount,
    compute_totals,
    convert_quotation_to_invoice,
    create_invoice,
    create_quotation,
    delete_document,
    is_overdue,
    record_invoice_payment,
    transition_document,
    update_invoice,
    update_quotation,
)


class DocumentPagination(PageNumberPagination):
    """Custom pagination for documents."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class DocumentViewSet(viewsets.ModelViewSet):
    """
    Shared HTTP handling for quotations and invoices.

    All business logic is handled by services; service errors are rendered
    by the project exception handler. Subclasses set the document type,
    its date field for range filters, and the serializers.
    """

    pagination_class = DocumentPagination
    document_type = None
    number_series = None
    date_field = None
    detail_serializer_class = None
    list_serializer_class = None
    create_serializer_class = None
    update_serializer_class = None

    def get_queryset(self):
        """Filter documents using input serializer validation."""
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        filter_serializer = DocumentFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'status' in params:
            queryset = queryset.filter(status=params['status'])
        if 'client' in params:
            queryset = queryset.filter(client_id=params['client'])

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(number__icontains=search) |
                Q(client_name__icontains=search) |
                Q(client_email__icontains=search)
            )

        if 'date_from' in params:
            queryset = queryset.filter(**{f'{self.date_field}__gte': params['date_from']})
        if 'date_to' in params:
            queryset = queryset.filter(**{f'{self.date_field}__lte': params['date_to']})

        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return self.list_serializer_class
        elif self.action == 'create':
            return self.create_serializer_class
        elif self.action in ['update', 'partial_update']:
            return self.update_serializer_class
        return self.detail_serializer_class

    def _respond(self, document, status_code=status.HTTP_200_OK):
        output_serializer = self.detail_serializer_class(document, context={'request': self.request})
        return Response(output_serializer.data, status=status_code)

    def create_document(self, data):
        raise NotImplementedError

    def update_document(self, document_id, changes):
        raise NotImplementedError

    def create(self, request, *args, **kwargs):
        """Create a document in draft with a new number."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        document = self.create_document(dict(serializer.validated_data))
        return self._respond(document, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Update a document; line items, when sent, replace the whole set."""
        serializer = self.get_serializer(data=request.data, partial=kwargs.get('partial', False))
        serializer.is_valid(raise_exception=True)

        document = self.update_document(self.kwargs['pk'], dict(serializer.validated_data))
        return self._respond(document)

    def destroy(self, request, *args, **kwargs):
        """Delete a document and its line items."""
        delete_document(document_type=self.document_type, document_id=self.kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=TransitionInputSerializer)
    @action(detail=True, methods=['post'])
    def transition(self, request, pk=None):
        """
        Move the document to a new status.

        POST /api/{quotations,invoices}/{id}/transition/
        Body: {"status": "sent"}
        """
        input_serializer = TransitionInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        document = transition_document(
            document_type=self.document_type,
            document_id=pk,
            new_status=input_serializer.validated_data['status'],
        )
        return self._respond(document)

    @extend_schema(responses=NextNumberSerializer)
    @action(detail=False, methods=['get'], url_path='next-number')
    def next_number(self, request):
        """
        Preview the next number in this document's series.

        The number is not reserved; creation issues its own.
        """
        return Response({'number': numbering.next_number(self.number_series)})


class QuotationViewSet(DocumentViewSet):
    """
    ViewSet for quotations.

    list: Filter by status, client, search and quotation date range
    create: Create a draft quotation
    retrieve / update / partial_update / destroy
    transition: Change status
    convert: Turn an accepted quotation into a draft invoice
    preview_totals: Run the calculator without saving
    """

    queryset = Quotation.objects.select_related('client').prefetch_related('line_items')
    document_type = DocumentType.QUOTATION
    number_series = NumberSeries.QUOTATION
    date_field = 'quotation_date'
    serializer_class = QuotationSerializer
    detail_serializer_class = QuotationSerializer
    list_serializer_class = QuotationListSerializer
    create_serializer_class = QuotationCreateSerializer
    update_serializer_class = QuotationUpdateSerializer

    def create_document(self, data):
        return create_quotation(created_by=self.request.user, **data)

    def update_document(self, document_id, changes):
        return update_quotation(quotation_id=document_id, **changes)

    @extend_schema(request=ConvertQuotationInputSerializer, responses=InvoiceSerializer)
    @action(detail=True, methods=['post'])
    def convert(self, request, pk=None):
        """
        Convert an accepted quotation into a new draft invoice.

        POST /api/quotations/{id}/convert/
        """
        input_serializer = ConvertQuotationInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        invoice = convert_quotation_to_invoice(
            quotation_id=pk,
            created_by=request.user,
            **input_serializer.validated_data
        )
        output_serializer = InvoiceSerializer(invoice, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    @extend_schema(request=PreviewTotalsInputSerializer, responses=TotalsSerializer)
    @action(detail=False, methods=['post'], url_path='preview-totals')
    def preview_totals(self, request):
        """
        Price line items without saving anything.

        POST /api/quotations/preview-totals/
        """
        input_serializer = PreviewTotalsInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        params = input_serializer.validated_data

        totals = compute_totals(
            params['line_items'],
            discount=Discount(params['discount_type'], params['discount_value']),
            tax_rate_percent=params['tax_rate_percent'],
            amount_paid=params.get('amount_paid'),
        ).rounded()
        return Response(TotalsSerializer(totals).data)


class InvoiceViewSet(DocumentViewSet):
    """
    ViewSet for invoices.

    list: Filter by status, client, search and issue date range
    create: Create a draft invoice
    retrieve / update / partial_update / destroy
    transition: Change status
    record_payment: Add a received payment
    overdue: Invoices past due with a balance left
    """

    queryset = Invoice.objects.select_related('client').prefetch_related('line_items')
    document_type = DocumentType.INVOICE
    number_series = NumberSeries.INVOICE
    date_field = 'issue_date'
    serializer_class = InvoiceSerializer
    detail_serializer_class = InvoiceSerializer
    list_serializer_class = InvoiceListSerializer
    create_serializer_class = InvoiceCreateSerializer
    update_serializer_class = InvoiceUpdateSerializer

    def create_document(self, data):
        return create_invoice(created_by=self.request.user, **data)

    def update_document(self, document_id, changes):
        return update_invoice(invoice_id=document_id, **changes)

    @extend_schema(request=RecordPaymentInputSerializer)
    @action(detail=True, methods=['post'], url_path='record-payment')
    def record_payment(self, request, pk=None):
        """
        Record a payment received against this invoice.

        POST /api/invoices/{id}/record-payment/
        Body: {"amount": "50.00"}
        """
        input_serializer = RecordPaymentInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        invoice = record_invoice_payment(
            invoice_id=pk,
            amount=input_serializer.validated_data['amount'],
        )
        return self._respond(invoice)

    @extend_schema(parameters=[OverdueFilterSerializer], responses=InvoiceListSerializer(many=True))
    @action(detail=False, methods=['get'])
    def overdue(self, request):
        """
        List invoices that are overdue as of a day (today by default).

        Read-only: statuses are not changed here. Operators apply the
        transition with the ``mark_overdue_invoices`` command.
        """
        query_serializer = OverdueFilterSerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        as_of = query_serializer.validated_data.get('as_of')

        candidates = Invoice.objects.filter(
            status__in=[InvoiceStatus.SENT, InvoiceStatus.PENDING_PAYMENT, InvoiceStatus.OVERDUE],
            balance_due__gt=0,
        ).order_by('due_date')
        invoices = [invoice for invoice in candidates if is_overdue(invoice, as_of)]

        output_serializer = InvoiceListSerializer(invoices, many=True)
        return Response(output_serializer.data)
