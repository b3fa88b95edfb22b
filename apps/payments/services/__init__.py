"""
Payments app services layer.

``categories`` holds the pure payee classification rules;
``payment_management`` validates, numbers and persists payments.
"""

from .categories import (
    CATEGORY_RULES,
    CloudSubscriptionPayee,
    ExpensePayee,
    NormalizedPayment,
    OtherPayee,
    StaffSalaryPayee,
    classify_payee,
    merge_payment_state,
    validate_payment,
)

from .payment_management import (
    create_outgoing_payment,
    delete_outgoing_payment,
    preview_payment_number,
    update_outgoing_payment,
)


__all__ = [
    # Classification
    'CATEGORY_RULES',
    'CloudSubscriptionPayee',
    'ExpensePayee',
    'NormalizedPayment',
    'OtherPayee',
    'StaffSalaryPayee',
    'classify_payee',
    'merge_payment_state',
    'validate_payment',

    # Payment management
    'create_outgoing_payment',
    'delete_outgoing_payment',
    'preview_payment_number',
    'update_outgoing_payment',
]
