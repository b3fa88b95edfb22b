"""
Unit tests for the document lifecycle state machine.

Documents are built in memory; nothing here touches the database.
"""

import pytest
from datetime import date
from decimal import Decimal

from apps.core.exceptions import DocumentNotEditableError, IllegalTransitionError, ValidationError
from apps.documents.models import Invoice, InvoiceStatus, Quotation, QuotationStatus
from apps.documents.services import lifecycle


class TestQuotationTransitions:

    @pytest.mark.parametrize('current, requested', [
        ('draft', 'sent'),
        ('sent', 'accepted'),
        ('sent', 'rejected'),
        ('sent', 'expired'),
        ('accepted', 'converted'),
    ])
    def test_allowed(self, current, requested):
        assert lifecycle.can_transition('quotation', current, requested)

    @pytest.mark.parametrize('current, requested', [
        ('draft', 'accepted'),
        ('sent', 'draft'),
        ('rejected', 'sent'),
        ('converted', 'accepted'),
        ('expired', 'sent'),
    ])
    def test_rejected(self, current, requested):
        assert not lifecycle.can_transition('quotation', current, requested)

    @pytest.mark.parametrize('status', ['rejected', 'expired', 'converted'])
    def test_terminal_statuses(self, status):
        assert lifecycle.is_terminal('quotation', status)

    def test_transition_updates_status(self):
        quotation = Quotation(status=QuotationStatus.DRAFT)

        result = lifecycle.transition(quotation, QuotationStatus.SENT)

        assert result is quotation
        assert quotation.status == QuotationStatus.SENT


class TestInvoiceTransitions:

    def test_draft_to_sent(self):
        invoice = Invoice(status=InvoiceStatus.DRAFT)

        lifecycle.transition(invoice, 'sent')

        assert invoice.status == 'sent'

    def test_paid_to_draft_rejected_without_change(self):
        invoice = Invoice(status=InvoiceStatus.PAID)

        with pytest.raises(IllegalTransitionError) as exc_info:
            lifecycle.transition(invoice, InvoiceStatus.DRAFT)

        assert exc_info.value.current == 'paid'
        assert exc_info.value.requested == 'draft'
        assert invoice.status == InvoiceStatus.PAID

    def test_overdue_to_paid(self):
        assert lifecycle.can_transition('invoice', 'overdue', 'paid')

    @pytest.mark.parametrize('status', ['draft', 'sent', 'pending_payment', 'overdue'])
    def test_cancellable(self, status):
        assert lifecycle.can_transition('invoice', status, 'cancelled')

    def test_cancelled_is_terminal(self):
        assert lifecycle.is_terminal('invoice', 'cancelled')
        assert lifecycle.is_terminal('invoice', 'paid')

    def test_sent_cannot_skip_to_paid(self):
        assert not lifecycle.can_transition('invoice', 'sent', 'paid')

    def test_unknown_requested_status(self):
        invoice = Invoice(status=InvoiceStatus.DRAFT)

        with pytest.raises(ValidationError):
            lifecycle.transition(invoice, 'archived')

    def test_unknown_document_type(self):
        with pytest.raises(ValidationError):
            lifecycle.allowed_transitions('receipt', 'draft')


class TestEditability:

    @pytest.mark.parametrize('status, editable', [
        ('draft', True),
        ('sent', True),
        ('accepted', False),
        ('converted', False),
    ])
    def test_quotation(self, status, editable):
        assert lifecycle.is_editable('quotation', status) is editable

    def test_ensure_editable_raises_for_paid_invoice(self):
        invoice = Invoice(status=InvoiceStatus.PAID)

        with pytest.raises(DocumentNotEditableError):
            lifecycle.ensure_editable(invoice)


class TestIsOverdue:

    AS_OF = date(2025, 5, 1)

    def make_invoice(self, status='pending_payment', due_date=date(2025, 4, 15), balance_due=Decimal('10.00')):
        return Invoice(status=status, due_date=due_date, balance_due=balance_due)

    def test_past_due_with_balance(self):
        assert lifecycle.is_overdue(self.make_invoice(), self.AS_OF)

    def test_due_today_is_not_overdue(self):
        invoice = self.make_invoice(due_date=self.AS_OF)

        assert not lifecycle.is_overdue(invoice, self.AS_OF)

    def test_settled_invoice(self):
        invoice = self.make_invoice(balance_due=Decimal('0.00'))

        assert not lifecycle.is_overdue(invoice, self.AS_OF)

    @pytest.mark.parametrize('status', ['draft', 'paid', 'cancelled'])
    def test_excluded_statuses(self, status):
        assert not lifecycle.is_overdue(self.make_invoice(status=status), self.AS_OF)

    @pytest.mark.parametrize('status', ['sent', 'overdue'])
    def test_included_statuses(self, status):
        assert lifecycle.is_overdue(self.make_invoice(status=status), self.AS_OF)

    def test_predicate_does_not_change_status(self):
        invoice = self.make_invoice()

        lifecycle.is_overdue(invoice, self.AS_OF)

        assert invoice.status == 'pending_payment'
