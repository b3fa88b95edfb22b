"""
Outgoing payment management service.

Payments are classified and normalized before they reach storage; the
number (``OP-<YEAR>-<NNNN>``) is issued together with the insert.
"""

import logging

from django.db import transaction

from apps.core.exceptions import ValidationError
from apps.core.gateway import default_gateway
from apps.core.numbering import NumberSeries, issue_number, next_number
from apps.payments.models import OutgoingPayment

from .categories import merge_payment_state, validate_payment

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = frozenset({
    'payment_category',
    'expense_category_id',
    'staff_id',
    'product_id',
    'payee_name',
    'amount',
    'payment_date',
    'payment_method',
    'status',
    'reference_number',
    'notes',
    'attachments',
})


def create_outgoing_payment(*, created_by=None, gateway=None, **data) -> OutgoingPayment:
    """
    Validate, number and store a new outgoing payment.

    Args:
        created_by: User recording the payment
        gateway: Persistence gateway override
        **data: payment_category, payee field(s), amount, payment_date,
            payment_method, status, reference_number, notes, attachments

    Returns:
        Saved OutgoingPayment

    Raises:
        MissingRequiredFieldError: If the category's payee field is absent
        ConflictingFieldError: If a forbidden payee field is present
        DanglingReferenceError: If a referenced record does not exist
        ValidationError: If amount, method or status are invalid
        NumberCollisionError: If no unique number could be issued
    """
    gateway = gateway or default_gateway
    normalized = validate_payment(data, gateway=gateway)

    payment = OutgoingPayment(created_by=created_by, **normalized.as_fields())

    def insert(number):
        payment.pk = None
        payment._state.adding = True
        payment.number = number
        return gateway.save_payment(payment)

    payment = issue_number(NumberSeries.OUTGOING_PAYMENT, insert, gateway=gateway)
    logger.info(
        "Created outgoing payment %s (%s, %s)",
        payment.number, payment.payment_category, payment.amount,
    )
    return payment


@transaction.atomic
def update_outgoing_payment(*, payment_id, gateway=None, **changes) -> OutgoingPayment:
    """
    Update an outgoing payment.

    The category rules are applied to the merged state, not just to the
    submitted fields. Changing the category clears the previous payee field
    unless the update sets it again.

    Raises:
        PaymentNotFoundError: If the payment does not exist
        ValidationError: Or a subclass, as for creation
    """
    gateway = gateway or default_gateway

    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(
            f"Fields cannot be updated: {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
        )

    payment = gateway.load_payment(payment_id, for_update=True)
    previous_category = payment.payment_category

    normalized = validate_payment(merge_payment_state(payment, changes), gateway=gateway)
    for name, value in normalized.as_fields().items():
        setattr(payment, name, value)

    gateway.save_payment(payment)

    if previous_category != payment.payment_category:
        logger.info(
            "Outgoing payment %s recategorized: %s -> %s",
            payment.number, previous_category, payment.payment_category,
        )
    logger.info("Updated outgoing payment %s", payment.number)
    return payment


def delete_outgoing_payment(*, payment_id, gateway=None) -> None:
    """Delete an outgoing payment."""
    gateway = gateway or default_gateway
    gateway.delete_payment(payment_id)
    logger.info("Deleted outgoing payment %s", payment_id)


def preview_payment_number(*, gateway=None) -> str:
    """Next OP number, not reserved."""
    return next_number(NumberSeries.OUTGOING_PAYMENT, gateway=gateway)
