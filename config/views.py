import logging

from django.db import DatabaseError, connection
from django.db.models import ProtectedError
from django.http import JsonResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.core.exceptions import BillingServiceError

logger = logging.getLogger(__name__)


def billing_exception_handler(exc, context):
    """
    DRF exception handler that also renders billing service errors.

    Service exceptions carry their own ``status_code`` and ``code``; they
    are returned as ``{"error": ..., "code": ..., "details": {...}}``.
    Everything else falls through to DRF's default handling.
    """
    if isinstance(exc, BillingServiceError):
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.message)
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, ProtectedError):
        return Response({
            'error': 'Record is still referenced and cannot be deleted',
            'code': 'protected_record',
        }, status=status.HTTP_409_CONFLICT)

    return exception_handler(exc, context)


@api_view(['GET'])
@permission_classes([AllowAny])
def health_check(request):
    """Liveness probe; also reports whether the database answers."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as exc:
        logger.error("Health check failed: %s", exc)
        return Response(
            {'status': 'unavailable', 'database': 'unreachable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({'status': 'ok', 'database': 'ok'})


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
