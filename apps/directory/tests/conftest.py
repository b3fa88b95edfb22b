import pytest
from datetime import date
from decimal import Decimal
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.directory.models import Client, ExpenseCategory, Product, ProductCategory, RecordStatus, Staff

User = get_user_model()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a back-office user."""
    return User.objects.create_user(username='office', password='TestPass123!')


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client authenticated with a JWT access token."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def client_record(db):
    return Client.objects.create(
        business_name='Initech',
        contact_person='Bill Lumbergh',
        email='accounts@initech.example',
    )


@pytest.fixture
def inactive_client(db):
    return Client.objects.create(business_name='Umbrella Ltd', status=RecordStatus.INACTIVE)


@pytest.fixture
def staff_member(db):
    return Staff.objects.create(
        name='Priya Nair',
        email='priya@example.com',
        position='Engineer',
        department='Platform',
        join_date=date(2021, 5, 3),
        salary=Decimal('5100.00'),
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        name='Annual Support',
        sku='SUP-12',
        category=ProductCategory.SUPPORT_PACKAGE,
        selling_price=Decimal('1200.00'),
    )


@pytest.fixture
def expense_category(db):
    return ExpenseCategory.objects.create(name='Utilities')
