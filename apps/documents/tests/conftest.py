import pytest
from datetime import date
from decimal import Decimal
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.directory.models import Client, Product, ProductCategory
from apps.documents.services import (
    create_invoice,
    create_quotation,
    record_invoice_payment,
    transition_document,
)

User = get_user_model()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a back-office user."""
    return User.objects.create_user(
        username='accountant',
        email='accountant@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client authenticated with a JWT access token."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def client_record(db):
    """Create and return a billing client."""
    return Client.objects.create(
        business_name='Acme Corp',
        contact_person='Jane Roe',
        email='billing@acme.example',
    )


@pytest.fixture
def product(db):
    """Create and return a catalog product."""
    return Product.objects.create(
        name='Consulting Hour',
        sku='CONS-001',
        category=ProductCategory.CONSULTING_SERVICE,
        selling_price=Decimal('50.00'),
    )


@pytest.fixture
def line_items(product):
    """Two priced lines: 2 x 50.00 and 1 x 25.00 (subtotal 125.00)."""
    return [
        {
            'product_id': product.id,
            'product_name': 'Consulting Hour',
            'quantity': Decimal('2'),
            'unit_price': Decimal('50.00'),
        },
        {
            'product_name': 'Setup Fee',
            'description': 'One-off onboarding',
            'quantity': Decimal('1'),
            'unit_price': Decimal('25.00'),
        },
    ]


@pytest.fixture
def quotation(client_record, line_items, user):
    """Create a draft quotation with 10% discount and 8% tax."""
    return create_quotation(
        client_id=client_record.id,
        quotation_date=date(2025, 3, 1),
        valid_until_date=date(2025, 3, 31),
        line_items=line_items,
        discount_type='percentage',
        discount_value=Decimal('10'),
        tax_rate_percent=Decimal('8'),
        created_by=user,
    )


@pytest.fixture
def accepted_quotation(quotation):
    """Quotation moved through sent to accepted."""
    transition_document(document_type='quotation', document_id=quotation.id, new_status='sent')
    return transition_document(document_type='quotation', document_id=quotation.id, new_status='accepted')


@pytest.fixture
def invoice(client_record, line_items, user):
    """Create a draft invoice (total 121.50) due 2025-04-15."""
    return create_invoice(
        client_id=client_record.id,
        issue_date=date(2025, 3, 16),
        due_date=date(2025, 4, 15),
        line_items=line_items,
        discount_type='percentage',
        discount_value=Decimal('10'),
        tax_rate_percent=Decimal('8'),
        created_by=user,
    )


@pytest.fixture
def sent_invoice(invoice):
    """Invoice moved to sent."""
    return transition_document(document_type='invoice', document_id=invoice.id, new_status='sent')


@pytest.fixture
def past_due_invoice(sent_invoice):
    """Sent invoice with a 10.00 part payment, long past its due date."""
    return record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('10.00'))


@pytest.fixture
def not_yet_due_invoice(client_record, line_items, user):
    """Part-paid invoice due 2099-01-01, so it cannot be overdue yet."""
    invoice = create_invoice(
        client_id=client_record.id,
        issue_date=date(2025, 3, 16),
        due_date=date(2099, 1, 1),
        line_items=line_items,
        created_by=user,
    )
    transition_document(document_type='invoice', document_id=invoice.id, new_status='sent')
    return record_invoice_payment(invoice_id=invoice.id, amount=Decimal('10.00'))
