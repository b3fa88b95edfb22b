import pytest
from datetime import date
from decimal import Decimal
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.directory.models import Client, Product, ProductCategory, Staff, StaffStatus
from apps.documents.services import (
    create_invoice,
    create_quotation,
    record_invoice_payment,
    transition_document,
)
from apps.payments.services import create_outgoing_payment

User = get_user_model()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(username='controller', password='TestPass123!')


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client authenticated with a JWT access token."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


# =============================================================================
# Directory
# =============================================================================

@pytest.fixture
def client_record(db):
    return Client.objects.create(business_name='Globex', email='ap@globex.example')


@pytest.fixture
def staff_member(db):
    return Staff.objects.create(
        name='Ana Diaz',
        email='ana@example.com',
        position='Support',
        join_date=date(2024, 2, 1),
        salary=Decimal('1500.00'),
    )


@pytest.fixture
def staff_on_leave(db):
    return Staff.objects.create(
        name='Ben Ode',
        email='ben@example.com',
        position='Designer',
        join_date=date(2022, 6, 1),
        salary=Decimal('1800.00'),
        status=StaffStatus.ON_LEAVE,
    )


@pytest.fixture
def subscription_product(db):
    return Product.objects.create(
        name='Object Storage',
        sku='STOR-001',
        category=ProductCategory.SAAS_SUBSCRIPTION,
        selling_price=Decimal('99.00'),
    )


# =============================================================================
# Documents
# =============================================================================

def _invoice(client_record, issue_date, amount):
    return create_invoice(
        client_id=client_record.id,
        issue_date=issue_date,
        due_date=issue_date,
        line_items=[{'product_name': 'Services', 'quantity': Decimal('1'), 'unit_price': amount}],
    )


def _send(invoice):
    return transition_document(document_type='invoice', document_id=invoice.id, new_status='sent')


@pytest.fixture
def paid_invoice(client_record):
    """200.00 invoiced on 2025-03-10 and paid in full."""
    invoice = _send(_invoice(client_record, date(2025, 3, 10), Decimal('200.00')))
    return record_invoice_payment(invoice_id=invoice.id, amount=Decimal('200.00'))


@pytest.fixture
def open_invoice(client_record):
    """100.00 invoiced on 2025-03-20, 40.00 paid."""
    invoice = _send(_invoice(client_record, date(2025, 3, 20), Decimal('100.00')))
    return record_invoice_payment(invoice_id=invoice.id, amount=Decimal('40.00'))


@pytest.fixture
def draft_invoice(client_record):
    """Never sent; not revenue."""
    return _invoice(client_record, date(2025, 3, 5), Decimal('999.00'))


@pytest.fixture
def draft_quotation(client_record):
    return create_quotation(
        client_id=client_record.id,
        quotation_date=date(2025, 3, 2),
        valid_until_date=date(2025, 4, 1),
        line_items=[{'product_name': 'Retainer', 'quantity': Decimal('1'), 'unit_price': Decimal('300.00')}],
    )


# =============================================================================
# Outgoing payments
# =============================================================================

@pytest.fixture
def salary_payment(staff_member):
    return create_outgoing_payment(
        payment_category='Staff Salary',
        staff_id=staff_member.id,
        amount=Decimal('1500.00'),
        payment_date=date(2025, 3, 31),
        payment_method='Bank Transfer',
        status='Paid',
    )


@pytest.fixture
def subscription_payment(subscription_product):
    return create_outgoing_payment(
        payment_category='Cloud Subscription',
        product_id=subscription_product.id,
        amount=Decimal('99.00'),
        payment_date=date(2025, 4, 1),
        payment_method='Card',
    )


@pytest.fixture
def cancelled_payment(db):
    return create_outgoing_payment(
        payment_category='Other Outgoing Payment',
        payee_name='Print Shop',
        amount=Decimal('50.00'),
        payment_date=date(2025, 3, 15),
        payment_method='Cash',
        status='Cancelled',
    )


@pytest.fixture
def ledger(
    paid_invoice, open_invoice, draft_invoice, draft_quotation,
    salary_payment, subscription_payment, cancelled_payment,
):
    """Every document and payment fixture above, created together."""
    return {
        'paid_invoice': paid_invoice,
        'open_invoice': open_invoice,
        'draft_invoice': draft_invoice,
        'draft_quotation': draft_quotation,
    }
