from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from .reports import ReportQueries
from .serializers import (
    PeriodQuerySerializer,
    DashboardResponseSerializer,
    CashflowPointSerializer,
    ErrorSerializer,
)


PERIOD_PARAMETERS = [
    OpenApiParameter('period', OpenApiTypes.STR, description='Month period (YYYY-MM)'),
    OpenApiParameter('start_date', OpenApiTypes.DATE, description='Start date (YYYY-MM-DD)'),
    OpenApiParameter('end_date', OpenApiTypes.DATE, description='End date (YYYY-MM-DD)'),
]


def _period(request):
    query_serializer = PeriodQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data
    return params.get('start_date'), params.get('end_date')


@extend_schema(
    parameters=PERIOD_PARAMETERS,
    responses={
        200: DashboardResponseSerializer,
        400: ErrorSerializer,
    },
    description="Back-office summary: directory counts, revenue, quotation pipeline and outgoing payments.",
    tags=['reports'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Dashboard summary - thin HTTP handler."""
    start_date, end_date = _period(request)

    data = {
        'directory': ReportQueries.directory_counts(),
        'revenue': ReportQueries.revenue(start_date, end_date),
        'quotation_pipeline': ReportQueries.quotation_pipeline(start_date, end_date),
        'outgoing': ReportQueries.outgoing_by_category(start_date, end_date),
    }
    return Response(DashboardResponseSerializer(data).data)


@extend_schema(
    parameters=PERIOD_PARAMETERS,
    responses={
        200: CashflowPointSerializer(many=True),
        400: ErrorSerializer,
    },
    description="Invoiced versus outgoing amounts per month, for charts.",
    tags=['reports'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cashflow(request):
    """Monthly cash-flow series - thin HTTP handler."""
    start_date, end_date = _period(request)

    series = ReportQueries.monthly_cashflow(start_date, end_date)
    return Response(CashflowPointSerializer(series, many=True).data)
