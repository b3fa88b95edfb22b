"""
Documents app services layer.

Pricing and lifecycle rules are pure functions (``calculations``,
``lifecycle``); ``document_management`` combines them with numbering and
persistence. State-changing operations run in transactions and lock the
rows they modify.
"""

from .calculations import (
    Discount,
    LineItemInput,
    Totals,
    aggregate_line_items,
    calculate_totals,
    compute_totals,
    discount_amount_for,
    round_money,
)

from .lifecycle import (
    allowed_transitions,
    can_transition,
    check_requested_transition,
    check_transition,
    ensure_editable,
    is_editable,
    is_overdue,
    is_terminal,
    requestable_transitions,
    transition,
)

from .document_management import (
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


__all__ = [
    # Calculations
    'Discount',
    'LineItemInput',
    'Totals',
    'aggregate_line_items',
    'calculate_totals',
    'compute_totals',
    'discount_amount_for',
    'round_money',

    # Lifecycle
    'allowed_transitions',
    'can_transition',
    'check_requested_transition',
    'check_transition',
    'ensure_editable',
    'is_editable',
    'is_overdue',
    'is_terminal',
    'requestable_transitions',
    'transition',

    # Document management
    'convert_quotation_to_invoice',
    'create_invoice',
    'create_quotation',
    'delete_document',
    'flag_overdue_invoices',
    'record_invoice_payment',
    'transition_document',
    'update_invoice',
    'update_quotation',
]
