"""
Quotation and invoice management service.

Write path for documents: validate references, price line items, check
the lifecycle, issue a number and persist through the gateway. Every
function here either completes its write or raises before touching
storage.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import (
    DanglingReferenceError,
    DocumentNotEditableError,
    ValidationError,
)
from apps.core.gateway import default_gateway
from apps.core.numbering import NumberSeries, issue_number
from apps.documents.models import (
    DocumentType,
    Invoice,
    InvoiceStatus,
    Quotation,
    QuotationStatus,
)

from . import lifecycle
from .calculations import aggregate_line_items, calculate_totals, to_decimal

logger = logging.getLogger(__name__)


DOCUMENT_MODELS = {
    DocumentType.QUOTATION: Quotation,
    DocumentType.INVOICE: Invoice,
}

DOCUMENT_SERIES = {
    DocumentType.QUOTATION: NumberSeries.QUOTATION,
    DocumentType.INVOICE: NumberSeries.INVOICE,
}

# A changed value in any of these reprices the document
PRICING_FIELDS = ('discount_type', 'discount_value', 'tax_rate_percent')

LINE_ITEM_KEYS = ('product_id', 'product_name', 'description', 'quantity', 'unit_price')

QUOTATION_FIELDS = (
    'quotation_date',
    'valid_until_date',
    'currency',
    'terms_and_conditions',
    'notes',
    'discount_type',
    'discount_value',
    'tax_rate_percent',
)

INVOICE_FIELDS = (
    'issue_date',
    'due_date',
    'currency',
    'payment_terms',
    'payment_instructions',
    'notes',
    'discount_type',
    'discount_value',
    'tax_rate_percent',
)

PAYABLE_STATUSES = frozenset({
    InvoiceStatus.SENT,
    InvoiceStatus.PENDING_PAYMENT,
    InvoiceStatus.OVERDUE,
})


# =============================================================================
# Helpers
# =============================================================================

def _resolve_client(client_id, gateway):
    client = gateway.get_reference('client', client_id)
    if client is None:
        raise DanglingReferenceError('client', client_id)
    return client


def _check_dates(start: Optional[date], end: Optional[date], start_field: str, end_field: str) -> None:
    if start and end and end < start:
        raise ValidationError(f"'{end_field}' cannot be before '{start_field}'", field=end_field)


def _price(document, line_items: Iterable, gateway) -> List[dict]:
    """
    Recompute every derived amount on ``document`` from ``line_items``.

    Product references on line items are optional, but when present they
    must point at an existing product.

    Returns:
        Line item column values, ready for ``gateway.save_document``
    """
    priced, subtotal = aggregate_line_items(line_items)

    for index, item in enumerate(priced):
        if item.product_id is not None and not gateway.find_existing('product', item.product_id):
            raise DanglingReferenceError(f'line_items[{index}].product', item.product_id)

    amount_paid = document.amount_paid if document.document_type == DocumentType.INVOICE else None
    totals = calculate_totals(
        subtotal,
        discount_type=document.discount_type,
        discount_value=document.discount_value,
        tax_rate_percent=document.tax_rate_percent,
        amount_paid=amount_paid,
    )
    for field, value in totals.as_fields().items():
        setattr(document, field, value)

    return [item.as_fields() for item in priced]


def _assign_client(document, client) -> None:
    document.client = client
    document.client_name = client.business_name
    document.client_email = client.email or ''


def _line_items_changed(document, line_items) -> bool:
    """Whether ``line_items`` differs from the document's stored set."""
    try:
        priced, _ = aggregate_line_items(line_items)
    except ValidationError:
        # Let the pricing step report the problem
        return True
    submitted = [tuple(item.as_fields()[key] for key in LINE_ITEM_KEYS) for item in priced]
    stored = [
        tuple(getattr(item, key) for key in LINE_ITEM_KEYS)
        for item in document.line_items.all()
    ]
    return submitted != stored


def _create_document(document_type, document, client_id, line_items, gateway):
    _assign_client(document, _resolve_client(client_id, gateway))
    item_fields = _price(document, line_items, gateway)

    def insert(number):
        # A failed attempt may have left a primary key behind
        document.pk = None
        document._state.adding = True
        document.number = number
        return gateway.save_document(document, item_fields)

    document = issue_number(DOCUMENT_SERIES[document_type], insert, gateway=gateway)
    logger.info("Created %s %s (total %s)", document_type.value, document.number, document.total_amount)
    return document


def _update_document(document_type, document_id, changes: dict, allowed_fields, gateway):
    document = gateway.load_document(document_type, document_id, for_update=True)

    new_status = changes.pop('status', None)
    line_items = changes.pop('line_items', None)
    client_id = changes.pop('client_id', None)
    unknown = set(changes) - set(allowed_fields)
    if unknown:
        raise ValidationError(
            f"Fields cannot be updated: {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
        )

    client_changed = client_id is not None and client_id != document.client_id
    pricing_changed = any(
        field in changes and changes[field] != getattr(document, field)
        for field in PRICING_FIELDS
    )
    if line_items is not None and not _line_items_changed(document, line_items):
        line_items = None
    reprice = line_items is not None or client_changed or pricing_changed
    if reprice:
        lifecycle.ensure_editable(document)

    for field, value in changes.items():
        setattr(document, field, value)

    if client_changed:
        _assign_client(document, _resolve_client(client_id, gateway))

    item_fields = None
    if line_items is not None:
        item_fields = _price(document, line_items, gateway)
    elif reprice:
        # Stored items keep their rows; only the document totals move
        _price(document, list(document.line_items.all()), gateway)

    if new_status is not None and new_status != document.status:
        lifecycle.check_requested_transition(document, new_status)
        lifecycle.transition(document, new_status)

    gateway.save_document(document, item_fields)
    logger.info("Updated %s %s", document_type.value, document.number)
    return document


# =============================================================================
# Quotations
# =============================================================================

def create_quotation(
    *,
    client_id,
    quotation_date: date,
    valid_until_date: date,
    line_items: Iterable,
    discount_type: str = 'percentage',
    discount_value: Decimal = Decimal('0'),
    tax_rate_percent: Decimal = Decimal('0'),
    currency: Optional[str] = None,
    terms_and_conditions: str = '',
    notes: str = '',
    created_by=None,
    gateway=None,
) -> Quotation:
    """
    Create a draft quotation with a freshly issued QUO number.

    Args:
        client_id: Client the quotation is addressed to
        quotation_date: Issue date
        valid_until_date: Last day the offer holds
        line_items: Ordered items (quantity, unit_price, product_id,
            product_name, description)
        discount_type: 'percentage' or 'fixed'
        discount_value: Discount percent or amount
        tax_rate_percent: Flat tax rate
        currency: ISO code, defaults to BILLING_DEFAULT_CURRENCY
        terms_and_conditions: Free text
        notes: Free text
        created_by: User creating the quotation
        gateway: Persistence gateway override

    Returns:
        Saved Quotation

    Raises:
        DanglingReferenceError: If the client or a product does not exist
        EmptyDocumentError: If there are no line items
        ValidationError: If an amount or date is out of range
        NumberCollisionError: If no unique number could be issued
    """
    gateway = gateway or default_gateway
    _check_dates(quotation_date, valid_until_date, 'quotation_date', 'valid_until_date')

    quotation = Quotation(
        quotation_date=quotation_date,
        valid_until_date=valid_until_date,
        discount_type=discount_type,
        discount_value=to_decimal(discount_value, 'discount_value'),
        tax_rate_percent=to_decimal(tax_rate_percent, 'tax_rate_percent'),
        terms_and_conditions=terms_and_conditions,
        notes=notes,
        status=lifecycle.INITIAL_STATUS[DocumentType.QUOTATION],
        created_by=created_by,
    )
    if currency:
        quotation.currency = currency

    return _create_document(DocumentType.QUOTATION, quotation, client_id, line_items, gateway)


@transaction.atomic
def update_quotation(*, quotation_id, gateway=None, **changes) -> Quotation:
    """
    Update a quotation.

    Line items are replaced as a whole set. Changing items, client,
    discount or tax rate requires the quotation to be draft or sent; a
    ``status`` change goes through the lifecycle check.

    Raises:
        DocumentNotFoundError: If the quotation does not exist
        DocumentNotEditableError: If pricing changes on a locked quotation
        IllegalTransitionError: If the status change is not allowed
    """
    gateway = gateway or default_gateway
    quotation = _update_document(DocumentType.QUOTATION, quotation_id, changes, QUOTATION_FIELDS, gateway)
    _check_dates(quotation.quotation_date, quotation.valid_until_date, 'quotation_date', 'valid_until_date')
    return quotation


# =============================================================================
# Invoices
# =============================================================================

def create_invoice(
    *,
    client_id,
    issue_date: date,
    due_date: date,
    line_items: Iterable,
    discount_type: str = 'percentage',
    discount_value: Decimal = Decimal('0'),
    tax_rate_percent: Decimal = Decimal('0'),
    currency: Optional[str] = None,
    payment_terms: str = '',
    payment_instructions: str = '',
    notes: str = '',
    quotation=None,
    created_by=None,
    gateway=None,
) -> Invoice:
    """
    Create a draft invoice with a freshly issued INV number.

    ``amount_paid`` starts at zero, so the balance due equals the total.
    Payments are recorded afterwards with :func:`record_invoice_payment`.

    Raises:
        DanglingReferenceError: If the client or a product does not exist
        EmptyDocumentError: If there are no line items
        ValidationError: If an amount or date is out of range
        NumberCollisionError: If no unique number could be issued
    """
    gateway = gateway or default_gateway
    _check_dates(issue_date, due_date, 'issue_date', 'due_date')

    invoice = Invoice(
        issue_date=issue_date,
        due_date=due_date,
        discount_type=discount_type,
        discount_value=to_decimal(discount_value, 'discount_value'),
        tax_rate_percent=to_decimal(tax_rate_percent, 'tax_rate_percent'),
        amount_paid=Decimal('0.00'),
        payment_terms=payment_terms,
        payment_instructions=payment_instructions,
        notes=notes,
        quotation=quotation,
        status=lifecycle.INITIAL_STATUS[DocumentType.INVOICE],
        created_by=created_by,
    )
    if currency:
        invoice.currency = currency

    return _create_document(DocumentType.INVOICE, invoice, client_id, line_items, gateway)


@transaction.atomic
def update_invoice(*, invoice_id, gateway=None, **changes) -> Invoice:
    """
    Update an invoice.

    Same rules as :func:`update_quotation`. ``amount_paid`` is not
    updatable here; use :func:`record_invoice_payment`.
    """
    gateway = gateway or default_gateway
    invoice = _update_document(DocumentType.INVOICE, invoice_id, changes, INVOICE_FIELDS, gateway)
    _check_dates(invoice.issue_date, invoice.due_date, 'issue_date', 'due_date')
    return invoice


@transaction.atomic
def record_invoice_payment(*, invoice_id, amount, gateway=None) -> Invoice:
    """
    Add a received payment to an invoice.

    Recomputes the balance. A sent invoice moves to pending_payment; once
    nothing is left to pay (balance <= 0, overpayment allowed) it moves on
    to paid. Every status change goes through the lifecycle table.

    Args:
        invoice_id: Invoice primary key
        amount: Positive amount received

    Returns:
        Updated Invoice

    Raises:
        ValidationError: If amount is not positive
        DocumentNotEditableError: If the invoice is draft, paid or cancelled
    """
    gateway = gateway or default_gateway
    amount = to_decimal(amount, 'amount')
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero", field='amount')

    invoice = gateway.load_document(DocumentType.INVOICE, invoice_id, for_update=True)
    if invoice.status not in PAYABLE_STATUSES:
        raise DocumentNotEditableError(
            status=invoice.status,
            document_type=DocumentType.INVOICE.value,
            message=f"Payments cannot be recorded on an invoice in status '{invoice.status}'",
        )

    invoice.amount_paid = invoice.amount_paid + amount
    totals = calculate_totals(
        invoice.subtotal,
        discount_type=invoice.discount_type,
        discount_value=invoice.discount_value,
        tax_rate_percent=invoice.tax_rate_percent,
        amount_paid=invoice.amount_paid,
    ).rounded()
    invoice.balance_due = totals.balance_due

    if invoice.status == InvoiceStatus.SENT:
        lifecycle.transition(invoice, InvoiceStatus.PENDING_PAYMENT)
    if invoice.balance_due <= 0:
        lifecycle.transition(invoice, InvoiceStatus.PAID)

    gateway.save_document(invoice)
    logger.info(
        "Recorded payment of %s on %s (balance %s, status %s)",
        amount, invoice.number, invoice.balance_due, invoice.status,
    )
    return invoice


def flag_overdue_invoices(*, as_of: Optional[date] = None, gateway=None) -> List[Invoice]:
    """
    Move every qualifying pending_payment invoice to overdue.

    An explicit, caller-initiated sweep: reading an invoice never changes
    its status. Invoices that qualify by :func:`lifecycle.is_overdue` but
    cannot legally move (e.g. still 'sent') are left alone.

    Returns:
        Invoices that were transitioned
    """
    gateway = gateway or default_gateway
    as_of = as_of or timezone.localdate()

    candidates = Invoice.objects.filter(
        status=InvoiceStatus.PENDING_PAYMENT,
        due_date__lt=as_of,
        balance_due__gt=0,
    ).values_list('pk', flat=True)

    flagged = []
    for invoice_id in candidates:
        with transaction.atomic():
            invoice = gateway.load_document(DocumentType.INVOICE, invoice_id, for_update=True)
            if not lifecycle.is_overdue(invoice, as_of):
                continue
            if not lifecycle.can_transition(DocumentType.INVOICE, invoice.status, InvoiceStatus.OVERDUE):
                continue
            lifecycle.transition(invoice, InvoiceStatus.OVERDUE)
            gateway.save_document(invoice)
            flagged.append(invoice)

    logger.info("Flagged %d invoice(s) overdue as of %s", len(flagged), as_of)
    return flagged


# =============================================================================
# Shared operations
# =============================================================================

@transaction.atomic
def transition_document(*, document_type, document_id, new_status, gateway=None):
    """
    Change a document's status after checking the lifecycle table.

    The row is locked for the duration of the check so two concurrent
    transitions cannot both succeed from the same starting status.

    Raises:
        DocumentNotFoundError: If the document does not exist
        IllegalTransitionError: If the move is not allowed
    """
    gateway = gateway or default_gateway
    document_type = DocumentType(document_type)
    document = gateway.load_document(document_type, document_id, for_update=True)
    previous = document.status

    lifecycle.check_requested_transition(document, new_status)
    lifecycle.transition(document, new_status)
    gateway.save_document(document)

    logger.info("%s %s: %s -> %s", document_type.label, document.number, previous, new_status)
    return document


def delete_document(*, document_type, document_id, gateway=None) -> None:
    """Delete a quotation or invoice together with its line items."""
    gateway = gateway or default_gateway
    document_type = DocumentType(document_type)
    gateway.delete_document(document_type, document_id)
    logger.info("Deleted %s %s", document_type.value, document_id)


@transaction.atomic
def convert_quotation_to_invoice(
    *,
    quotation_id,
    issue_date: Optional[date] = None,
    due_date: Optional[date] = None,
    payment_terms: str = '',
    payment_instructions: str = '',
    created_by=None,
    gateway=None,
) -> Invoice:
    """
    Turn an accepted quotation into a draft invoice.

    The invoice copies the client, line items, discount, tax rate and
    currency, and links back to the quotation, which becomes 'converted'.
    Both writes happen in one transaction.

    Args:
        quotation_id: Accepted quotation to convert
        issue_date: Invoice date (defaults to today)
        due_date: Payment due date (defaults to issue date)

    Returns:
        The new Invoice

    Raises:
        IllegalTransitionError: If the quotation is not accepted
    """
    gateway = gateway or default_gateway
    quotation = gateway.load_document(DocumentType.QUOTATION, quotation_id, for_update=True)

    # Fail before creating anything
    lifecycle.check_transition(DocumentType.QUOTATION, quotation.status, QuotationStatus.CONVERTED)

    issue_date = issue_date or timezone.localdate()
    invoice = create_invoice(
        client_id=quotation.client_id,
        issue_date=issue_date,
        due_date=due_date or issue_date,
        line_items=list(quotation.line_items.all()),
        discount_type=quotation.discount_type,
        discount_value=quotation.discount_value,
        tax_rate_percent=quotation.tax_rate_percent,
        currency=quotation.currency,
        payment_terms=payment_terms,
        payment_instructions=payment_instructions,
        notes=quotation.notes,
        quotation=quotation,
        created_by=created_by,
        gateway=gateway,
    )

    lifecycle.transition(quotation, QuotationStatus.CONVERTED)
    gateway.save_document(quotation)

    logger.info("Converted quotation %s into invoice %s", quotation.number, invoice.number)
    return invoice
