from django.db.models import Q
from rest_framework import viewsets
from rest_framework.pagination import PageNumberPagination

from .models import Client, Staff, Product, ExpenseCategory
from .serializers import (
    DirectoryFilterSerializer,
    ClientSerializer,
    StaffSerializer,
    ProductSerializer,
    ExpenseCategorySerializer,
)


class DirectoryPagination(PageNumberPagination):
    """Custom pagination for directory listings."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


class DirectoryViewSet(viewsets.ModelViewSet):
    """
    Shared CRUD behaviour for directory records.

    Subclasses set ``search_fields``: the ``search`` query parameter is
    matched case-insensitively against each of them.
    """

    pagination_class = DirectoryPagination
    search_fields = ()

    def get_queryset(self):
        """Filter records using input serializer validation."""
        queryset = super().get_queryset()

        filter_serializer = DirectoryFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        params = filter_serializer.validated_data

        search = params.get('search')
        if search:
            condition = Q()
            for field in self.search_fields:
                condition |= Q(**{f'{field}__icontains': search})
            queryset = queryset.filter(condition)

        if 'status' in params:
            queryset = queryset.filter(status=params['status'])

        return queryset


class ClientViewSet(DirectoryViewSet):
    """CRUD for clients."""
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    search_fields = ('business_name', 'contact_person', 'email')


class StaffViewSet(DirectoryViewSet):
    """CRUD for staff members."""
    queryset = Staff.objects.all()
    serializer_class = StaffSerializer
    search_fields = ('name', 'email', 'position', 'department')


class ProductViewSet(DirectoryViewSet):
    """CRUD for catalog products and services."""
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    search_fields = ('name', 'sku', 'description')


class ExpenseCategoryViewSet(DirectoryViewSet):
    """CRUD for expense categories."""
    queryset = ExpenseCategory.objects.all()
    serializer_class = ExpenseCategorySerializer
    search_fields = ('name',)
