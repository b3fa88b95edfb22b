from rest_framework import serializers
from .models import Client, Staff, Product, ExpenseCategory


# =============================================================================
# Input Serializers
# =============================================================================

class DirectoryFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for directory listings.

    Query Parameters:
        search (str): Case-insensitive match on the record's name fields
        status (str): Filter by record status
    """

    search = serializers.CharField(max_length=200, required=False, allow_blank=True)
    status = serializers.CharField(max_length=20, required=False)


# =============================================================================
# Output Serializers
# =============================================================================

class ClientSerializer(serializers.ModelSerializer):
    """Serializer for clients."""

    class Meta:
        model = Client
        fields = [
            'id',
            'business_name',
            'contact_person',
            'email',
            'phone',
            'address',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class StaffSerializer(serializers.ModelSerializer):
    """Serializer for staff members."""

    class Meta:
        model = Staff
        fields = [
            'id',
            'name',
            'email',
            'phone',
            'position',
            'department',
            'role',
            'salary',
            'payment_frequency',
            'join_date',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class StaffMinimalSerializer(serializers.ModelSerializer):
    """Minimal staff info for nested serialization."""

    class Meta:
        model = Staff
        fields = ['id', 'name', 'email', 'position', 'department']
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    """Serializer for catalog products and services."""

    class Meta:
        model = Product
        fields = [
            'id',
            'name',
            'description',
            'sku',
            'category',
            'cost_price',
            'selling_price',
            'tax_rate_percent',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class ProductMinimalSerializer(serializers.ModelSerializer):
    """Minimal product info for nested serialization."""

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'category']
        read_only_fields = fields


class ExpenseCategorySerializer(serializers.ModelSerializer):
    """Serializer for expense categories."""

    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'description', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']
