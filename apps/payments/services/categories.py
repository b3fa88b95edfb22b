"""
Outgoing payment category classifier.

Each payment category identifies its payee through exactly one field:

======================  =====================  ==========================
Category                Payee field            Forbidden fields
======================  =====================  ==========================
Expense Payment         expense_category_id    staff_id, product_id
                        (optional)
Staff Salary            staff_id               product_id, payee_name
Cloud Subscription      product_id             staff_id
Other Outgoing Payment  payee_name             staff_id, product_id
======================  =====================  ==========================

Validation runs in a fixed order: a missing mandatory field is reported
first, then a forbidden field, then any populated reference that does not
resolve. Fields that are neither the payee field nor forbidden are
dropped from the normalized result, so the stored row always carries a
single payee.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import ClassVar, Optional, Tuple, Union

from apps.core.exceptions import (
    ConflictingFieldError,
    DanglingReferenceError,
    MissingRequiredFieldError,
    ValidationError,
)
from apps.core.gateway import default_gateway
from apps.documents.services.calculations import to_decimal
from apps.payments.models import PaymentCategory, PaymentMethod, PaymentStatus


PAYEE_FIELDS = ('expense_category_id', 'staff_id', 'product_id', 'payee_name')

# Payee field -> gateway reference kind
REFERENCE_KINDS = {
    'expense_category_id': 'expense_category',
    'staff_id': 'staff',
    'product_id': 'product',
}


# =============================================================================
# Normalized payees (one variant per category)
# =============================================================================

@dataclass(frozen=True)
class ExpensePayee:
    category: ClassVar[str] = PaymentCategory.EXPENSE_PAYMENT
    expense_category_id: Optional[int] = None


@dataclass(frozen=True)
class StaffSalaryPayee:
    category: ClassVar[str] = PaymentCategory.STAFF_SALARY
    staff_id: int


@dataclass(frozen=True)
class CloudSubscriptionPayee:
    category: ClassVar[str] = PaymentCategory.CLOUD_SUBSCRIPTION
    product_id: int


@dataclass(frozen=True)
class OtherPayee:
    category: ClassVar[str] = PaymentCategory.OTHER_OUTGOING_PAYMENT
    payee_name: str


Payee = Union[ExpensePayee, StaffSalaryPayee, CloudSubscriptionPayee, OtherPayee]


@dataclass(frozen=True)
class CategoryRule:
    payee_field: str
    required: bool
    forbidden: Tuple[str, ...]
    variant: type
    required_message: str = ''


CATEGORY_RULES = {
    PaymentCategory.EXPENSE_PAYMENT: CategoryRule(
        payee_field='expense_category_id',
        required=False,
        forbidden=('staff_id', 'product_id'),
        variant=ExpensePayee,
    ),
    PaymentCategory.STAFF_SALARY: CategoryRule(
        payee_field='staff_id',
        required=True,
        forbidden=('product_id', 'payee_name'),
        variant=StaffSalaryPayee,
        required_message='Staff member is required for salary payments',
    ),
    PaymentCategory.CLOUD_SUBSCRIPTION: CategoryRule(
        payee_field='product_id',
        required=True,
        forbidden=('staff_id',),
        variant=CloudSubscriptionPayee,
        required_message='Product/Service is required for subscription payments',
    ),
    PaymentCategory.OTHER_OUTGOING_PAYMENT: CategoryRule(
        payee_field='payee_name',
        required=True,
        forbidden=('staff_id', 'product_id'),
        variant=OtherPayee,
        required_message='Payee name is required for other payments',
    ),
}


@dataclass(frozen=True)
class NormalizedPayment:
    """A validated, category-pure outgoing payment ready to be stored."""
    payee: Payee
    amount: Decimal
    payment_date: date
    payment_method: str
    status: str = PaymentStatus.SCHEDULED
    reference_number: str = ''
    notes: str = ''
    attachments: list = field(default_factory=list)

    @property
    def payment_category(self) -> str:
        return self.payee.category

    def as_fields(self) -> dict:
        """Column values; payee fields other than the category's are None."""
        fields = {name: None for name in PAYEE_FIELDS}
        fields.update(vars(self.payee))
        fields.update({
            'payment_category': self.payment_category,
            'amount': self.amount,
            'payment_date': self.payment_date,
            'payment_method': self.payment_method,
            'status': self.status,
            'reference_number': self.reference_number,
            'notes': self.notes,
            'attachments': self.attachments,
        })
        return fields


# =============================================================================
# Helpers
# =============================================================================

def _read(payment, name, default=None):
    if isinstance(payment, Mapping):
        return payment.get(name, default)
    return getattr(payment, name, default)


def _payee_value(payment, name):
    """Populated payee value, or None for null, blank and whitespace."""
    value = _read(payment, name)
    if isinstance(value, str):
        value = value.strip()
    if value in (None, ''):
        return None
    # Model instances stand for their primary key
    return getattr(value, 'pk', value)


def _check_choice(value, choices, field_name):
    if value not in choices.values:
        raise ValidationError(
            f"'{field_name}' must be one of: {', '.join(choices.values)}",
            field=field_name,
            value=value,
        )
    return value


# =============================================================================
# Classification
# =============================================================================

def classify_payee(payment, *, gateway=None) -> Payee:
    """
    Validate the payee fields of a payment and return its category variant.

    Args:
        payment: Mapping or object with ``payment_category`` and payee fields
        gateway: Persistence gateway used for existence checks

    Raises:
        ValidationError: If the category is unknown
        MissingRequiredFieldError: If the category's payee field is absent
        ConflictingFieldError: If a field forbidden for the category is set
        DanglingReferenceError: If a populated reference does not exist
    """
    gateway = gateway or default_gateway
    category = _check_choice(_read(payment, 'payment_category'), PaymentCategory, 'payment_category')
    rule = CATEGORY_RULES[category]
    values = {name: _payee_value(payment, name) for name in PAYEE_FIELDS}

    if rule.required and values[rule.payee_field] is None:
        raise MissingRequiredFieldError(
            field=rule.payee_field,
            category=category,
            message=rule.required_message or None,
        )

    for name in rule.forbidden:
        if values[name] is not None:
            raise ConflictingFieldError(field=name, category=category)

    for name, kind in REFERENCE_KINDS.items():
        identifier = values[name]
        if identifier is not None and not gateway.find_existing(kind, identifier):
            raise DanglingReferenceError(field=name, identifier=identifier)

    return rule.variant(**{rule.payee_field: values[rule.payee_field]})


def validate_payment(payment, *, gateway=None) -> NormalizedPayment:
    """
    Validate a whole outgoing payment and normalize it.

    Payee rules come first (see :func:`classify_payee`), then the amount,
    date, method and status.

    Returns:
        NormalizedPayment carrying only the category's payee field

    Raises:
        ValidationError: Or one of its subclasses, naming the offending field
    """
    payee = classify_payee(payment, gateway=gateway)

    raw_amount = _read(payment, 'amount')
    if raw_amount is None:
        raise ValidationError("'amount' is required", field='amount')
    amount = to_decimal(raw_amount, 'amount')
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero", field='amount')

    payment_date = _read(payment, 'payment_date')
    if payment_date is None:
        raise ValidationError("'payment_date' is required", field='payment_date')

    payment_method = _check_choice(_read(payment, 'payment_method'), PaymentMethod, 'payment_method')
    status = _check_choice(
        _read(payment, 'status') or PaymentStatus.SCHEDULED, PaymentStatus, 'status'
    )

    return NormalizedPayment(
        payee=payee,
        amount=amount,
        payment_date=payment_date,
        payment_method=payment_method,
        status=status,
        reference_number=_read(payment, 'reference_number') or '',
        notes=_read(payment, 'notes') or '',
        attachments=list(_read(payment, 'attachments') or []),
    )


def merge_payment_state(current, changes: Mapping) -> dict:
    """
    Full payment state after applying ``changes`` to ``current``.

    When the category changes, the previous category's payee field is
    cleared unless ``changes`` supplies it again, so switching from Staff
    Salary to Other Outgoing Payment does not trip over the old staff
    reference.
    """
    state = {
        'payment_category': current.payment_category,
        'amount': current.amount,
        'payment_date': current.payment_date,
        'payment_method': current.payment_method,
        'status': current.status,
        'reference_number': current.reference_number,
        'notes': current.notes,
        'attachments': current.attachments,
    }
    state.update({name: getattr(current, name) for name in PAYEE_FIELDS})

    new_category = changes.get('payment_category')
    if new_category and new_category != current.payment_category:
        previous_rule = CATEGORY_RULES.get(current.payment_category)
        if previous_rule and previous_rule.payee_field not in changes:
            state[previous_rule.payee_field] = None

    state.update(changes)
    return state
