"""
Service layer tests for the documents app.

Tests cover:
- Creation with derived totals and numbering
- Reference validation
- Line item replacement and editability
- Status transitions and payment recording
- Quotation conversion and the overdue sweep
"""

import pytest
from datetime import date
from decimal import Decimal

from apps.core.exceptions import (
    DanglingReferenceError,
    DocumentNotEditableError,
    DocumentNotFoundError,
    EmptyDocumentError,
    IllegalTransitionError,
    ValidationError,
)
from apps.documents.models import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    Quotation,
    QuotationLineItem,
    QuotationStatus,
)
from apps.documents.services import (
    convert_quotation_to_invoice,
    create_invoice,
    create_quotation,
    delete_document,
    flag_overdue_invoices,
    record_invoice_payment,
    transition_document,
    update_invoice,
    update_quotation,
)


# =============================================================================
# Creation
# =============================================================================

@pytest.mark.django_db
class TestCreateQuotation:

    def test_totals_are_derived(self, quotation):
        quotation.refresh_from_db()

        assert quotation.subtotal == Decimal('125.00')
        assert quotation.discount_amount == Decimal('12.50')
        assert quotation.tax_amount == Decimal('9.00')
        assert quotation.total_amount == Decimal('121.50')
        assert quotation.status == QuotationStatus.DRAFT

    def test_line_items_keep_order(self, quotation):
        items = list(QuotationLineItem.objects.filter(document=quotation))

        assert [item.product_name for item in items] == ['Consulting Hour', 'Setup Fee']
        assert [item.position for item in items] == [0, 1]
        assert items[0].amount == Decimal('100.00')

    def test_client_details_denormalized(self, quotation, client_record):
        assert quotation.client_name == 'Acme Corp'
        assert quotation.client_email == 'billing@acme.example'

    def test_default_currency(self, quotation):
        assert quotation.currency == 'USD'

    def test_unknown_client(self, line_items):
        with pytest.raises(DanglingReferenceError) as exc_info:
            create_quotation(
                client_id=9999,
                quotation_date=date(2025, 3, 1),
                valid_until_date=date(2025, 3, 31),
                line_items=line_items,
            )

        assert exc_info.value.field == 'client'
        assert Quotation.objects.count() == 0

    def test_unknown_product(self, client_record):
        with pytest.raises(DanglingReferenceError) as exc_info:
            create_quotation(
                client_id=client_record.id,
                quotation_date=date(2025, 3, 1),
                valid_until_date=date(2025, 3, 31),
                line_items=[{'product_id': 9999, 'quantity': 1, 'unit_price': 10}],
            )

        assert exc_info.value.field == 'line_items[0].product'

    def test_empty_line_items(self, client_record):
        with pytest.raises(EmptyDocumentError):
            create_quotation(
                client_id=client_record.id,
                quotation_date=date(2025, 3, 1),
                valid_until_date=date(2025, 3, 31),
                line_items=[],
            )

    def test_valid_until_before_date(self, client_record, line_items):
        with pytest.raises(ValidationError) as exc_info:
            create_quotation(
                client_id=client_record.id,
                quotation_date=date(2025, 3, 31),
                valid_until_date=date(2025, 3, 1),
                line_items=line_items,
            )

        assert exc_info.value.field == 'valid_until_date'


@pytest.mark.django_db
class TestCreateInvoice:

    def test_balance_equals_total(self, invoice):
        assert invoice.amount_paid == Decimal('0.00')
        assert invoice.balance_due == Decimal('121.50')
        assert invoice.status == InvoiceStatus.DRAFT

    def test_fixed_discount_clamped(self, client_record):
        invoice = create_invoice(
            client_id=client_record.id,
            issue_date=date(2025, 3, 1),
            due_date=date(2025, 3, 31),
            line_items=[{'quantity': 1, 'unit_price': 50}],
            discount_type='fixed',
            discount_value=Decimal('80'),
        )

        assert invoice.discount_amount == Decimal('50.00')
        assert invoice.total_amount == Decimal('0.00')


# =============================================================================
# Updates
# =============================================================================

@pytest.mark.django_db
class TestUpdateDocument:

    def test_line_items_replaced_as_set(self, quotation):
        updated = update_quotation(
            quotation_id=quotation.id,
            line_items=[{'product_name': 'Audit', 'quantity': 3, 'unit_price': 100}],
        )

        items = list(QuotationLineItem.objects.filter(document=quotation))
        assert len(items) == 1
        assert items[0].product_name == 'Audit'
        assert updated.subtotal == Decimal('300.00')
        assert updated.total_amount == Decimal('291.60')

    def test_discount_change_reprices_stored_items(self, quotation):
        updated = update_quotation(quotation_id=quotation.id, discount_value=Decimal('0'))

        assert updated.discount_amount == Decimal('0.00')
        assert updated.total_amount == Decimal('135.00')
        assert QuotationLineItem.objects.filter(document=quotation).count() == 2

    def test_notes_editable_after_acceptance(self, accepted_quotation):
        updated = update_quotation(quotation_id=accepted_quotation.id, notes='Signed copy received')

        assert updated.notes == 'Signed copy received'

    def test_pricing_locked_after_acceptance(self, accepted_quotation):
        with pytest.raises(DocumentNotEditableError):
            update_quotation(
                quotation_id=accepted_quotation.id,
                line_items=[{'quantity': 1, 'unit_price': 1}],
            )

        accepted_quotation.refresh_from_db()
        assert accepted_quotation.subtotal == Decimal('125.00')

    def test_unchanged_pricing_fields_after_acceptance(self, accepted_quotation, client_record, line_items):
        updated = update_quotation(
            quotation_id=accepted_quotation.id,
            client_id=client_record.id,
            discount_type='percentage',
            discount_value=Decimal('10'),
            tax_rate_percent=Decimal('8'),
            line_items=line_items,
            notes='Signed copy received',
        )

        assert updated.notes == 'Signed copy received'
        assert updated.total_amount == Decimal('121.50')

    def test_changed_discount_after_acceptance(self, accepted_quotation):
        with pytest.raises(DocumentNotEditableError):
            update_quotation(quotation_id=accepted_quotation.id, discount_value=Decimal('5'))

        accepted_quotation.refresh_from_db()
        assert accepted_quotation.discount_value == Decimal('10')

    def test_status_change_checked(self, quotation):
        with pytest.raises(IllegalTransitionError):
            update_quotation(quotation_id=quotation.id, status='accepted')

    def test_amount_paid_not_updatable(self, invoice):
        with pytest.raises(ValidationError):
            update_invoice(invoice_id=invoice.id, amount_paid=Decimal('10'))

    def test_update_client(self, invoice):
        from apps.directory.models import Client
        other = Client.objects.create(business_name='Globex', email='ap@globex.example')

        updated = update_invoice(invoice_id=invoice.id, client_id=other.id)

        assert updated.client == other
        assert updated.client_name == 'Globex'

    def test_missing_document(self):
        with pytest.raises(DocumentNotFoundError):
            update_invoice(invoice_id=9999, notes='x')


# =============================================================================
# Transitions and payments
# =============================================================================

@pytest.mark.django_db
class TestTransitions:

    def test_draft_to_sent(self, invoice):
        updated = transition_document(document_type='invoice', document_id=invoice.id, new_status='sent')

        assert updated.status == InvoiceStatus.SENT
        assert Invoice.objects.get(pk=invoice.id).status == InvoiceStatus.SENT

    def test_illegal_transition_leaves_status(self, invoice):
        with pytest.raises(IllegalTransitionError):
            transition_document(document_type='invoice', document_id=invoice.id, new_status='paid')

        assert Invoice.objects.get(pk=invoice.id).status == InvoiceStatus.DRAFT

    def test_overdue_requested_before_due_date(self, not_yet_due_invoice):
        with pytest.raises(IllegalTransitionError):
            transition_document(document_type='invoice', document_id=not_yet_due_invoice.id, new_status='overdue')

        assert Invoice.objects.get(pk=not_yet_due_invoice.id).status == InvoiceStatus.PENDING_PAYMENT

    def test_overdue_requested_through_update_before_due_date(self, not_yet_due_invoice):
        with pytest.raises(IllegalTransitionError):
            update_invoice(invoice_id=not_yet_due_invoice.id, status='overdue')

        assert Invoice.objects.get(pk=not_yet_due_invoice.id).status == InvoiceStatus.PENDING_PAYMENT

    def test_overdue_requested_after_due_date(self, past_due_invoice):
        updated = transition_document(document_type='invoice', document_id=past_due_invoice.id, new_status='overdue')

        assert updated.status == InvoiceStatus.OVERDUE

    def test_converted_not_requestable(self, accepted_quotation):
        with pytest.raises(IllegalTransitionError):
            transition_document(
                document_type='quotation', document_id=accepted_quotation.id, new_status='converted',
            )

        assert Quotation.objects.get(pk=accepted_quotation.id).status == QuotationStatus.ACCEPTED


@pytest.mark.django_db
class TestRecordInvoicePayment:

    def test_partial_payment(self, sent_invoice):
        invoice = record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('50.00'))

        assert invoice.amount_paid == Decimal('50.00')
        assert invoice.balance_due == Decimal('71.50')
        assert invoice.status == InvoiceStatus.PENDING_PAYMENT

    def test_full_payment_marks_paid(self, sent_invoice):
        invoice = record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('121.50'))

        assert invoice.balance_due == Decimal('0.00')
        assert invoice.status == InvoiceStatus.PAID

    def test_overpayment(self, sent_invoice):
        invoice = record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('130.00'))

        assert invoice.balance_due == Decimal('-8.50')
        assert invoice.status == InvoiceStatus.PAID

    def test_draft_invoice_rejected(self, invoice):
        with pytest.raises(DocumentNotEditableError):
            record_invoice_payment(invoice_id=invoice.id, amount=Decimal('10'))

    def test_non_positive_amount(self, sent_invoice):
        with pytest.raises(ValidationError):
            record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('0'))


# =============================================================================
# Conversion and overdue sweep
# =============================================================================

@pytest.mark.django_db
class TestConvertQuotation:

    def test_creates_linked_draft_invoice(self, accepted_quotation):
        invoice = convert_quotation_to_invoice(
            quotation_id=accepted_quotation.id,
            issue_date=date(2025, 4, 1),
            due_date=date(2025, 4, 30),
        )

        accepted_quotation.refresh_from_db()
        assert accepted_quotation.status == QuotationStatus.CONVERTED
        assert invoice.quotation == accepted_quotation
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.total_amount == accepted_quotation.total_amount
        assert InvoiceLineItem.objects.filter(document=invoice).count() == 2

    def test_requires_accepted_quotation(self, quotation):
        with pytest.raises(IllegalTransitionError):
            convert_quotation_to_invoice(quotation_id=quotation.id)

        assert Invoice.objects.count() == 0


@pytest.mark.django_db
class TestFlagOverdueInvoices:

    def test_flags_pending_past_due(self, sent_invoice):
        record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('10'))

        flagged = flag_overdue_invoices(as_of=date(2025, 5, 1))

        assert [invoice.id for invoice in flagged] == [sent_invoice.id]
        assert Invoice.objects.get(pk=sent_invoice.id).status == InvoiceStatus.OVERDUE

    def test_not_yet_due(self, sent_invoice):
        record_invoice_payment(invoice_id=sent_invoice.id, amount=Decimal('10'))

        assert flag_overdue_invoices(as_of=date(2025, 4, 15)) == []

    def test_sent_invoice_left_alone(self, sent_invoice):
        assert flag_overdue_invoices(as_of=date(2025, 5, 1)) == []
        assert Invoice.objects.get(pk=sent_invoice.id).status == InvoiceStatus.SENT


@pytest.mark.django_db
class TestDeleteDocument:

    def test_deletes_with_line_items(self, quotation):
        delete_document(document_type='quotation', document_id=quotation.id)

        assert not Quotation.objects.exists()
        assert not QuotationLineItem.objects.exists()

    def test_missing(self):
        with pytest.raises(DocumentNotFoundError):
            delete_document(document_type='invoice', document_id=9999)
