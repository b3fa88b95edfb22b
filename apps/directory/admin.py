from django.contrib import admin
from .models import Client, Staff, Product, ExpenseCategory


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    """Admin interface for clients."""
    list_display = ['business_name', 'contact_person', 'email', 'phone', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['business_name', 'contact_person', 'email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    """Admin interface for staff members."""
    list_display = ['name', 'email', 'position', 'department', 'role', 'status', 'join_date']
    list_filter = ['status', 'role', 'department']
    search_fields = ['name', 'email', 'position']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for products and services."""
    list_display = ['name', 'sku', 'category', 'selling_price', 'tax_rate_percent', 'status']
    list_filter = ['category', 'status']
    search_fields = ['name', 'sku', 'description']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['name']
