"""
Document lifecycle state machine.

Quotations and invoices move through independent transition tables. The
functions here only look at a document's ``status`` (and, for the overdue
predicate, its balance and due date); persisting the change is the caller's
job, which keeps the checks usable on unsaved documents.

Quotation::

    draft -> sent -> accepted -> converted
                  -> rejected
                  -> expired

Invoice::

    draft -> sent -> pending_payment -> paid
                                     -> overdue -> paid
    draft/sent/pending_payment/overdue -> cancelled

``overdue`` is never derived on read. :func:`is_overdue` tells a caller
whether an invoice qualifies; the caller decides whether to transition.

Two moves in the tables are not open to direct requests (see
:func:`check_requested_transition`): ``converted`` is reached only by
converting the quotation into an invoice, and ``overdue`` only once the
invoice is actually past due.
"""

from datetime import date
from typing import FrozenSet, Optional

from django.utils import timezone

from apps.core.exceptions import DocumentNotEditableError, IllegalTransitionError, ValidationError
from apps.documents.models import DocumentType, InvoiceStatus, QuotationStatus


QUOTATION_TRANSITIONS = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.SENT}),
    QuotationStatus.SENT: frozenset({
        QuotationStatus.ACCEPTED,
        QuotationStatus.REJECTED,
        QuotationStatus.EXPIRED,
    }),
    QuotationStatus.ACCEPTED: frozenset({QuotationStatus.CONVERTED}),
    QuotationStatus.REJECTED: frozenset(),
    QuotationStatus.EXPIRED: frozenset(),
    QuotationStatus.CONVERTED: frozenset(),
}

INVOICE_TRANSITIONS = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.PENDING_PAYMENT, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PENDING_PAYMENT: frozenset({
        InvoiceStatus.PAID,
        InvoiceStatus.OVERDUE,
        InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

TRANSITIONS = {
    DocumentType.QUOTATION: QUOTATION_TRANSITIONS,
    DocumentType.INVOICE: INVOICE_TRANSITIONS,
}

INITIAL_STATUS = {
    DocumentType.QUOTATION: QuotationStatus.DRAFT,
    DocumentType.INVOICE: InvoiceStatus.DRAFT,
}

# Line items and pricing may only change while a document is still negotiable
EDITABLE_STATUSES = {
    DocumentType.QUOTATION: frozenset({QuotationStatus.DRAFT, QuotationStatus.SENT}),
    DocumentType.INVOICE: frozenset({InvoiceStatus.DRAFT, InvoiceStatus.SENT}),
}

OVERDUE_CANDIDATE_STATUSES = frozenset({
    InvoiceStatus.SENT,
    InvoiceStatus.PENDING_PAYMENT,
    InvoiceStatus.OVERDUE,
})


def _table(document_type):
    try:
        return TRANSITIONS[DocumentType(document_type)]
    except ValueError:
        raise ValidationError(f"Unknown document type {document_type!r}", field='document_type')


def allowed_transitions(document_type, status) -> FrozenSet[str]:
    """
    Statuses reachable in one step from ``status``.

    Raises:
        ValidationError: If the document type or status is unknown
    """
    table = _table(document_type)
    if status not in table:
        raise ValidationError(
            f"Unknown {DocumentType(document_type).value} status {status!r}", field='status'
        )
    return table[status]


def can_transition(document_type, current, requested) -> bool:
    return requested in allowed_transitions(document_type, current)


def is_terminal(document_type, status) -> bool:
    return not allowed_transitions(document_type, status)


def check_transition(document_type, current, requested) -> None:
    """
    Raise unless ``current -> requested`` is in the transition table.

    Raises:
        ValidationError: If either status is not part of the vocabulary
        IllegalTransitionError: If the move is not allowed
    """
    table = _table(document_type)
    if requested not in table:
        raise ValidationError(
            f"Unknown {DocumentType(document_type).value} status {requested!r}", field='status'
        )
    if not can_transition(document_type, current, requested):
        raise IllegalTransitionError(
            current=current,
            requested=requested,
            document_type=DocumentType(document_type).value,
        )


def transition(document, new_status):
    """
    Move a document to ``new_status`` in memory.

    The document is left untouched when the move is illegal, so a failed
    transition never leaves a half-applied status behind.

    Returns:
        The same document with its status updated

    Raises:
        IllegalTransitionError: If the move is not allowed
    """
    check_transition(document.document_type, document.status, new_status)
    document.status = new_status
    return document


def is_editable(document_type, status) -> bool:
    return status in EDITABLE_STATUSES[DocumentType(document_type)]


def ensure_editable(document) -> None:
    """Raise DocumentNotEditableError unless line items/pricing may change."""
    if not is_editable(document.document_type, document.status):
        raise DocumentNotEditableError(
            status=document.status,
            document_type=DocumentType(document.document_type).value,
        )


def is_overdue(invoice, as_of: Optional[date] = None) -> bool:
    """
    Whether an invoice is past due with money still owed.

    True when the invoice has been sent (sent, pending_payment or already
    overdue), its balance is positive and its due date lies strictly before
    ``as_of`` (today by default). Draft, paid and cancelled invoices are
    never overdue.
    """
    as_of = as_of or timezone.localdate()
    if invoice.status not in OVERDUE_CANDIDATE_STATUSES:
        return False
    if invoice.due_date is None or invoice.balance_due is None:
        return False
    return invoice.balance_due > 0 and invoice.due_date < as_of


def _refusal(document, requested, as_of):
    """Message explaining why a table-legal move cannot be requested, or None."""
    document_type = DocumentType(document.document_type)
    if document_type == DocumentType.QUOTATION and requested == QuotationStatus.CONVERTED:
        return "Quotations become 'converted' only through conversion into an invoice"
    if (
        document_type == DocumentType.INVOICE
        and requested == InvoiceStatus.OVERDUE
        and not is_overdue(document, as_of)
    ):
        return "Invoice is not past due with a balance outstanding"
    return None


def check_requested_transition(document, requested, as_of: Optional[date] = None) -> None:
    """
    Check a status change asked for by a client.

    Same as :func:`check_transition`, and additionally refuses ``converted``
    for quotations and ``overdue`` for invoices that :func:`is_overdue`
    does not report as overdue on ``as_of`` (today by default).

    Raises:
        ValidationError: If the status is not part of the vocabulary
        IllegalTransitionError: If the move is not allowed or not requestable
    """
    check_transition(document.document_type, document.status, requested)
    message = _refusal(document, requested, as_of)
    if message:
        raise IllegalTransitionError(
            current=document.status,
            requested=requested,
            document_type=DocumentType(document.document_type).value,
            message=message,
        )


def requestable_transitions(document, as_of: Optional[date] = None) -> FrozenSet[str]:
    """Statuses a client may move ``document`` to right now."""
    return frozenset(
        status
        for status in allowed_transitions(document.document_type, document.status)
        if _refusal(document, status, as_of) is None
    )
