import pytest
from datetime import date
from decimal import Decimal
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.directory.models import ExpenseCategory, Product, ProductCategory, Staff
from apps.payments.services import create_outgoing_payment

User = get_user_model()


class FakeGateway:
    """Reference lookups answered from an in-memory set of (kind, id) pairs."""

    def __init__(self, existing=()):
        self.existing = set(existing)
        self.lookups = []

    def find_existing(self, kind, pk):
        self.lookups.append((kind, pk))
        return (kind, pk) in self.existing


@pytest.fixture
def fake_gateway():
    return FakeGateway(existing={('staff', 1), ('product', 2), ('expense_category', 3)})


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a back-office user."""
    return User.objects.create_user(username='bookkeeper', password='TestPass123!')


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client authenticated with a JWT access token."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def staff_member(db):
    return Staff.objects.create(
        name='Sam Lee',
        email='sam@example.com',
        position='Developer',
        join_date=date(2023, 1, 9),
        salary=Decimal('4200.00'),
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        name='Cloud Hosting',
        sku='HOST-001',
        category=ProductCategory.SAAS_SUBSCRIPTION,
        selling_price=Decimal('99.00'),
    )


@pytest.fixture
def expense_category(db):
    return ExpenseCategory.objects.create(name='Office Rent')


@pytest.fixture
def salary_payment(staff_member, user):
    """A scheduled salary payment for ``staff_member``."""
    return create_outgoing_payment(
        payment_category='Staff Salary',
        staff_id=staff_member.id,
        amount=Decimal('4200.00'),
        payment_date=date(2025, 3, 31),
        payment_method='Bank Transfer',
        created_by=user,
    )
