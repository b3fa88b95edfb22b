from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class RecordStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'


class StaffStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    ON_LEAVE = 'on_leave', 'On Leave'


class StaffRole(models.TextChoices):
    ADMIN = 'admin', 'Admin'
    MANAGER = 'manager', 'Manager'
    DEVELOPER = 'developer', 'Developer'
    DESIGNER = 'designer', 'Designer'
    SUPPORT_SPECIALIST = 'support_specialist', 'Support Specialist'
    HR_COORDINATOR = 'hr_coordinator', 'HR Coordinator'
    SALES_EXECUTIVE = 'sales_executive', 'Sales Executive'
    SUPPORT = 'support', 'Support'


class ProductCategory(models.TextChoices):
    SOFTWARE_LICENSE = 'software_license', 'Software License'
    SAAS_SUBSCRIPTION = 'saas_subscription', 'SaaS Subscription'
    CONSULTING_SERVICE = 'consulting_service', 'Consulting Service'
    SUPPORT_PACKAGE = 'support_package', 'Support Package'
    CUSTOM_DEVELOPMENT = 'custom_development', 'Custom Development'


class ProductStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    DISCONTINUED = 'discontinued', 'Discontinued'


class Client(models.Model):
    """Customer that quotations and invoices are addressed to."""

    business_name = models.CharField(max_length=200, db_index=True)
    contact_person = models.CharField(max_length=200, blank=True)
    email = models.EmailField(max_length=255, blank=True)
    phone = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=RecordStatus.choices, default=RecordStatus.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clients'
        ordering = ['business_name']
        indexes = [
            models.Index(fields=['status'], name='clients_status_idx'),
        ]

    def __str__(self):
        return self.business_name


class Staff(models.Model):
    """Employee who can receive salary payments."""

    name = models.CharField(max_length=200, db_index=True)
    email = models.EmailField(max_length=255, unique=True)
    phone = models.CharField(max_length=50, blank=True)
    position = models.CharField(max_length=100)
    department = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=30, choices=StaffRole.choices, default=StaffRole.SUPPORT)
    salary = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    payment_frequency = models.CharField(max_length=30, blank=True)
    join_date = models.DateField()
    status = models.CharField(max_length=20, choices=StaffStatus.choices, default=StaffStatus.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'staff'
        verbose_name_plural = 'staff'
        ordering = ['name']
        indexes = [
            models.Index(fields=['status'], name='staff_status_idx'),
            models.Index(fields=['department'], name='staff_department_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.position})"


class Product(models.Model):
    """Product or service from the catalog; also the target of subscription payments."""

    name = models.CharField(max_length=200, db_index=True)
    description = models.TextField(blank=True)
    sku = models.CharField(max_length=64, unique=True)
    category = models.CharField(max_length=30, choices=ProductCategory.choices)
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    selling_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    tax_rate_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    status = models.CharField(max_length=20, choices=ProductStatus.choices, default=ProductStatus.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'products'
        ordering = ['name']
        indexes = [
            models.Index(fields=['category', 'status'], name='products_cat_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"


class ExpenseCategory(models.Model):
    """Bucket for general expense payments (rent, utilities, ...)."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=RecordStatus.choices, default=RecordStatus.ACTIVE)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'expense_categories'
        verbose_name_plural = 'expense categories'
        ordering = ['name']

    def __str__(self):
        return self.name
