from django.db.models import Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .models import OutgoingPayment
from .serializers import (
    OutgoingPaymentFilterSerializer,
    OutgoingPaymentInputSerializer,
    OutgoingPaymentUpdateSerializer,
    OutgoingPaymentSerializer,
    OutgoingPaymentListSerializer,
    ValidationResultSerializer,
)
from .services import (
    create_outgoing_payment,
    delete_outgoing_payment,
    preview_payment_number,
    update_outgoing_payment,
    validate_payment,
)
from apps.documents.serializers import NextNumberSerializer


class PaymentPagination(PageNumberPagination):
    """Custom pagination for payments."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class OutgoingPaymentViewSet(viewsets.ModelViewSet):
    """
    ViewSet for outgoing payments.

    All business logic is handled by services.
    Views are thin HTTP handlers only.

    list: Filter by category, status, method, date range and search
    create: Classify, number and store a payment
    retrieve / update / partial_update / destroy
    validate: Dry-run the category classifier without saving
    """

    queryset = OutgoingPayment.objects.select_related('staff', 'product', 'expense_category')
    serializer_class = OutgoingPaymentSerializer
    pagination_class = PaymentPagination

    def get_queryset(self):
        """Filter payments using input serializer validation."""
        queryset = super().get_queryset()
        if self.action != 'list':
            return queryset

        filter_serializer = OutgoingPaymentFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        if 'category' in params:
            queryset = queryset.filter(payment_category=params['category'])
        if 'status' in params:
            queryset = queryset.filter(status=params['status'])
        if 'payment_method' in params:
            queryset = queryset.filter(payment_method=params['payment_method'])
        if 'date_from' in params:
            queryset = queryset.filter(payment_date__gte=params['date_from'])
        if 'date_to' in params:
            queryset = queryset.filter(payment_date__lte=params['date_to'])

        search = params.get('search')
        if search:
            queryset = queryset.filter(
                Q(number__icontains=search) |
                Q(payee_name__icontains=search) |
                Q(staff__name__icontains=search) |
                Q(product__name__icontains=search) |
                Q(reference_number__icontains=search) |
                Q(notes__icontains=search)
            )

        return queryset

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return OutgoingPaymentListSerializer
        elif self.action in ['create', 'validate']:
            return OutgoingPaymentInputSerializer
        elif self.action in ['update', 'partial_update']:
            return OutgoingPaymentUpdateSerializer
        return OutgoingPaymentSerializer

    def create(self, request, *args, **kwargs):
        """Create a new outgoing payment."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        payment = create_outgoing_payment(created_by=request.user, **serializer.validated_data)

        output_serializer = OutgoingPaymentSerializer(payment, context={'request': request})
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        """Update a payment; category rules apply to the merged record."""
        serializer = self.get_serializer(data=request.data, partial=kwargs.get('partial', False))
        serializer.is_valid(raise_exception=True)

        payment = update_outgoing_payment(payment_id=self.kwargs['pk'], **serializer.validated_data)

        output_serializer = OutgoingPaymentSerializer(payment, context={'request': request})
        return Response(output_serializer.data)

    def destroy(self, request, *args, **kwargs):
        """Delete a payment."""
        delete_outgoing_payment(payment_id=self.kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=OutgoingPaymentInputSerializer, responses=ValidationResultSerializer)
    @action(detail=False, methods=['post'])
    def validate(self, request):
        """
        Run the category classifier without saving.

        POST /api/outgoing-payments/validate/
        Returns the normalized payee on success; errors use the same
        format as creation.
        """
        serializer = OutgoingPaymentInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        normalized = validate_payment(serializer.validated_data)
        return Response({
            'valid': True,
            'payment_category': normalized.payment_category,
            'payee': vars(normalized.payee),
        })

    @extend_schema(responses=NextNumberSerializer)
    @action(detail=False, methods=['get'], url_path='next-number')
    def next_number(self, request):
        """Preview the next payment number (not reserved)."""
        return Response({'number': preview_payment_number()})
