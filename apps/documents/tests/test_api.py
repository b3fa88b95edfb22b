import pytest
from datetime import date
from decimal import Decimal
from django.utils import timezone
from rest_framework import status

from apps.documents.models import Invoice, InvoiceStatus, Quotation, QuotationStatus
from apps.documents.services import record_invoice_payment


QUOTATIONS_URL = '/api/quotations/'
INVOICES_URL = '/api/invoices/'


@pytest.fixture
def quotation_payload(client_record, product):
    return {
        'client_id': client_record.id,
        'quotation_date': '2025-03-01',
        'valid_until_date': '2025-03-31',
        'discount_type': 'percentage',
        'discount_value': '10',
        'tax_rate_percent': '8',
        'line_items': [
            {'product_id': product.id, 'product_name': 'Consulting Hour', 'quantity': '2', 'unit_price': '50.00'},
            {'product_name': 'Setup Fee', 'quantity': '1', 'unit_price': '25.00'},
        ],
    }


@pytest.mark.django_db
class TestQuotationAPI:

    def test_requires_authentication(self, api_client):
        response = api_client.get(QUOTATIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create(self, authenticated_client, quotation_payload, user):
        response = authenticated_client.post(QUOTATIONS_URL, quotation_payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        year = timezone.localdate().year
        assert response.data['number'] == f'QUO-{year}-0001'
        assert response.data['status'] == 'draft'
        assert Decimal(response.data['total_amount']) == Decimal('121.50')
        assert len(response.data['line_items']) == 2
        assert Quotation.objects.get().created_by == user

    def test_create_empty_line_items(self, authenticated_client, quotation_payload):
        quotation_payload['line_items'] = []

        response = authenticated_client.post(QUOTATIONS_URL, quotation_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'empty_document'

    def test_create_unknown_client(self, authenticated_client, quotation_payload):
        quotation_payload['client_id'] = 9999

        response = authenticated_client.post(QUOTATIONS_URL, quotation_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'dangling_reference'
        assert response.data['details']['field'] == 'client'

    def test_create_invalid_discount(self, authenticated_client, quotation_payload):
        quotation_payload['discount_value'] = '150'

        response = authenticated_client.post(QUOTATIONS_URL, quotation_payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['code'] == 'invalid_discount'

    def test_list_filters_by_status(self, authenticated_client, quotation, accepted_quotation):
        response = authenticated_client.get(QUOTATIONS_URL, {'status': 'draft'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 0

        response = authenticated_client.get(QUOTATIONS_URL, {'status': 'accepted'})
        assert response.data['count'] == 1

    def test_list_search(self, authenticated_client, quotation):
        response = authenticated_client.get(QUOTATIONS_URL, {'search': 'acme'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['number'] == quotation.number

    def test_retrieve_includes_allowed_transitions(self, authenticated_client, quotation):
        response = authenticated_client.get(f'{QUOTATIONS_URL}{quotation.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['allowed_transitions'] == ['sent']

    def test_update_replaces_line_items(self, authenticated_client, quotation):
        response = authenticated_client.patch(
            f'{QUOTATIONS_URL}{quotation.id}/',
            {'line_items': [{'product_name': 'Audit', 'quantity': '1', 'unit_price': '200'}]},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['line_items']) == 1
        assert Decimal(response.data['subtotal']) == Decimal('200.00')

    def test_transition(self, authenticated_client, quotation):
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}{quotation.id}/transition/', {'status': 'sent'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'sent'

    def test_illegal_transition_conflict(self, authenticated_client, quotation):
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}{quotation.id}/transition/', {'status': 'converted'}, format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'illegal_transition'
        assert response.data['details']['current'] == 'draft'
        assert Quotation.objects.get(pk=quotation.id).status == QuotationStatus.DRAFT

    def test_converted_not_requestable(self, authenticated_client, accepted_quotation):
        detail = authenticated_client.get(f'{QUOTATIONS_URL}{accepted_quotation.id}/')
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}{accepted_quotation.id}/transition/', {'status': 'converted'}, format='json'
        )

        assert detail.data['allowed_transitions'] == []
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'illegal_transition'
        assert Quotation.objects.get(pk=accepted_quotation.id).status == QuotationStatus.ACCEPTED

    def test_resend_unchanged_pricing_after_acceptance(self, authenticated_client, accepted_quotation):
        response = authenticated_client.patch(
            f'{QUOTATIONS_URL}{accepted_quotation.id}/',
            {
                'client_id': accepted_quotation.client_id,
                'discount_type': 'percentage',
                'discount_value': '10.00',
                'tax_rate_percent': '8.00',
                'notes': 'Signed copy received',
            },
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['notes'] == 'Signed copy received'

    def test_convert(self, authenticated_client, accepted_quotation):
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}{accepted_quotation.id}/convert/',
            {'issue_date': '2025-04-01', 'due_date': '2025-04-30'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['quotation'] == accepted_quotation.id
        assert response.data['status'] == 'draft'
        assert Quotation.objects.get(pk=accepted_quotation.id).status == QuotationStatus.CONVERTED

    def test_preview_totals_does_not_save(self, authenticated_client):
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}preview-totals/',
            {
                'line_items': [
                    {'quantity': '2', 'unit_price': '50'},
                    {'quantity': '1', 'unit_price': '25'},
                ],
                'discount_type': 'percentage',
                'discount_value': '10',
                'tax_rate_percent': '8',
            },
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['taxable_amount']) == Decimal('112.50')
        assert Decimal(response.data['total_amount']) == Decimal('121.50')
        assert not Quotation.objects.exists()

    def test_delete(self, authenticated_client, quotation):
        response = authenticated_client.delete(f'{QUOTATIONS_URL}{quotation.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Quotation.objects.exists()

    def test_missing_document(self, authenticated_client):
        response = authenticated_client.post(
            f'{QUOTATIONS_URL}9999/transition/', {'status': 'sent'}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestInvoiceAPI:

    def test_record_payment(self, authenticated_client, sent_invoice):
        response = authenticated_client.post(
            f'{INVOICES_URL}{sent_invoice.id}/record-payment/', {'amount': '121.50'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'paid'
        assert Decimal(response.data['balance_due']) == Decimal('0.00')

    def test_record_payment_on_draft(self, authenticated_client, invoice):
        response = authenticated_client.post(
            f'{INVOICES_URL}{invoice.id}/record-payment/', {'amount': '10'}, format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'document_not_editable'

    def test_amount_paid_ignored_on_update(self, authenticated_client, invoice):
        response = authenticated_client.patch(
            f'{INVOICES_URL}{invoice.id}/', {'amount_paid': '100', 'notes': 'Net 30'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert Decimal(response.data['amount_paid']) == Decimal('0.00')
        assert response.data['notes'] == 'Net 30'

    def test_overdue_listing_is_read_only(self, authenticated_client, sent_invoice):
        record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('10'))

        response = authenticated_client.get(f'{INVOICES_URL}overdue/', {'as_of': '2025-05-01'})

        assert response.status_code == status.HTTP_200_OK
        assert [row['id'] for row in response.data] == [sent_invoice.id]
        assert Invoice.objects.get(pk=sent_invoice.id).status == InvoiceStatus.PENDING_PAYMENT

    def test_overdue_transition_before_due_date(self, authenticated_client, not_yet_due_invoice):
        detail = authenticated_client.get(f'{INVOICES_URL}{not_yet_due_invoice.id}/')
        response = authenticated_client.post(
            f'{INVOICES_URL}{not_yet_due_invoice.id}/transition/', {'status': 'overdue'}, format='json'
        )

        assert 'overdue' not in detail.data['allowed_transitions']
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'illegal_transition'
        assert Invoice.objects.get(pk=not_yet_due_invoice.id).status == InvoiceStatus.PENDING_PAYMENT

    def test_overdue_update_before_due_date(self, authenticated_client, not_yet_due_invoice):
        response = authenticated_client.patch(
            f'{INVOICES_URL}{not_yet_due_invoice.id}/', {'status': 'overdue'}, format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert Invoice.objects.get(pk=not_yet_due_invoice.id).status == InvoiceStatus.PENDING_PAYMENT

    def test_next_number(self, authenticated_client, invoice):
        response = authenticated_client.get(f'{INVOICES_URL}next-number/')

        year = timezone.localdate().year
        assert response.data['number'] == f'INV-{year}-0002'

    def test_create_with_due_before_issue(self, authenticated_client, client_record):
        response = authenticated_client.post(INVOICES_URL, {
            'client_id': client_record.id,
            'issue_date': '2025-04-01',
            'due_date': '2025-03-01',
            'line_items': [{'quantity': '1', 'unit_price': '10'}],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['details']['field'] == 'due_date'


@pytest.mark.django_db
class TestHealthCheck:

    def test_health_is_public(self, api_client):
        response = api_client.get('/api/health/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'ok'
