"""
Line item aggregation and monetary totals.

Everything in this module is a pure function of its arguments: no database
access, no clock, no hidden state. Calling any function twice with the same
input gives the same output.

Line amounts and the subtotal are exact products and sums of ``Decimal``
values, as is the discount -> tax -> total chain. Rounding to cents happens
once, when figures are stored or displayed: :meth:`LineItemInput.as_fields`
for line amounts and :meth:`Totals.rounded` for document totals.

Example:
    The worked example from the pricing sheet::

        from decimal import Decimal
        from apps.documents.services.calculations import (
            Discount, LineItemInput, compute_totals,
        )

        totals = compute_totals(
            [LineItemInput(quantity=2, unit_price=50), LineItemInput(quantity=1, unit_price=25)],
            discount=Discount('percentage', Decimal('10')),
            tax_rate_percent=Decimal('8'),
        ).rounded()
        # subtotal 125.00, discount 12.50, taxable 112.50, tax 9.00, total 121.50
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple

from apps.core.exceptions import EmptyDocumentError, InvalidDiscountError, ValidationError
from apps.documents.models import DiscountType

ZERO = Decimal('0')
HUNDRED = Decimal('100')
TWO_PLACES = Decimal('0.01')


def round_money(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value, field: str) -> Decimal:
    """
    Coerce ints, strings and Decimals to Decimal.

    Floats go through ``str`` so that 0.1 stays 0.1 instead of its binary
    expansion.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"'{field}' must be a number", field=field)
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"'{field}' must be a number, got {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"'{field}' must be a finite number", field=field)
    return result


@dataclass(frozen=True)
class LineItemInput:
    """A line item as priced by the aggregator."""
    quantity: Decimal
    unit_price: Decimal
    product_id: Optional[int] = None
    product_name: str = ''
    description: str = ''
    amount: Optional[Decimal] = None

    def as_fields(self) -> dict:
        """Column values for a stored line item; the amount is rounded to cents."""
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'description': self.description,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'amount': round_money(self.amount) if self.amount is not None else None,
        }


@dataclass(frozen=True)
class Discount:
    type: str = DiscountType.PERCENTAGE
    value: Decimal = ZERO


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    amount_paid: Optional[Decimal] = None
    balance_due: Optional[Decimal] = None

    def rounded(self) -> 'Totals':
        """
        Round to cents for storage.

        Subtotal, discount and tax are rounded individually; taxable amount,
        total and balance are then rebuilt from the rounded parts so the
        stored columns satisfy ``total == subtotal - discount + tax`` exactly.
        """
        subtotal = round_money(self.subtotal)
        discount_amount = round_money(self.discount_amount)
        tax_amount = round_money(self.tax_amount)
        taxable_amount = subtotal - discount_amount
        total_amount = taxable_amount + tax_amount
        amount_paid = balance_due = None
        if self.amount_paid is not None:
            amount_paid = round_money(self.amount_paid)
            balance_due = total_amount - amount_paid
        return Totals(
            subtotal=subtotal,
            discount_amount=discount_amount,
            taxable_amount=taxable_amount,
            tax_amount=tax_amount,
            total_amount=total_amount,
            amount_paid=amount_paid,
            balance_due=balance_due,
        )

    def as_fields(self) -> dict:
        """Document column values (rounded)."""
        rounded = self.rounded()
        fields = {
            'subtotal': rounded.subtotal,
            'discount_amount': rounded.discount_amount,
            'tax_amount': rounded.tax_amount,
            'total_amount': rounded.total_amount,
        }
        if rounded.balance_due is not None:
            fields['balance_due'] = rounded.balance_due
        return fields


def _read(item, name, default=None):
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def _product_id(item):
    product_id = _read(item, 'product_id')
    if product_id is None:
        product = _read(item, 'product')
        product_id = getattr(product, 'pk', product)
    return product_id


def aggregate_line_items(items: Iterable) -> Tuple[List[LineItemInput], Decimal]:
    """
    Price every line item and sum the document subtotal.

    Items may be mappings (validated request data), ``LineItemInput``
    instances or stored line item rows; only ``quantity`` and ``unit_price``
    are required.

    Args:
        items: Ordered line items

    Returns:
        Tuple of (priced items in input order, subtotal)

    Raises:
        EmptyDocumentError: If there are no items
        ValidationError: If a quantity is not positive or a price is negative
    """
    items = list(items or [])
    if not items:
        raise EmptyDocumentError()

    priced = []
    subtotal = ZERO
    for index, item in enumerate(items):
        quantity = to_decimal(_read(item, 'quantity'), f'line_items[{index}].quantity')
        unit_price = to_decimal(_read(item, 'unit_price'), f'line_items[{index}].unit_price')

        if quantity <= ZERO:
            raise ValidationError(
                f"Quantity must be greater than zero (line {index + 1})",
                field=f'line_items[{index}].quantity',
            )
        if unit_price < ZERO:
            raise ValidationError(
                f"Unit price cannot be negative (line {index + 1})",
                field=f'line_items[{index}].unit_price',
            )

        amount = quantity * unit_price
        priced.append(LineItemInput(
            quantity=quantity,
            unit_price=unit_price,
            product_id=_product_id(item),
            product_name=_read(item, 'product_name') or '',
            description=_read(item, 'description') or '',
            amount=amount,
        ))
        subtotal += amount

    return priced, subtotal


def discount_amount_for(subtotal: Decimal, discount_type, discount_value) -> Decimal:
    """
    Unrounded discount for a subtotal.

    Percentage discounts take ``value`` percent of the subtotal; fixed
    discounts take ``value`` itself. The result is clamped to
    ``[0, subtotal]``: a fixed discount above the subtotal leaves nothing to
    tax rather than producing a negative total.

    Raises:
        InvalidDiscountError: If the value is negative, a percentage exceeds
            100, or the type is unknown
    """
    discount_type = discount_type or DiscountType.PERCENTAGE
    value = to_decimal(discount_value if discount_value is not None else ZERO, 'discount_value')

    if discount_type not in DiscountType.values:
        raise InvalidDiscountError(
            f"Unknown discount type {discount_type!r}", field='discount_type'
        )
    if value < ZERO:
        raise InvalidDiscountError("Discount cannot be negative", field='discount_value')

    if discount_type == DiscountType.PERCENTAGE:
        if value > HUNDRED:
            raise InvalidDiscountError(
                "Percentage discount cannot exceed 100", field='discount_value'
            )
        amount = subtotal * value / HUNDRED
    else:
        amount = value

    return min(max(amount, ZERO), subtotal)


def calculate_totals(
    subtotal,
    discount_type=DiscountType.PERCENTAGE,
    discount_value=ZERO,
    tax_rate_percent=ZERO,
    amount_paid=None,
) -> Totals:
    """
    Derive discount, tax, total and (for invoices) balance from a subtotal.

    Args:
        subtotal: Sum of line amounts
        discount_type: 'percentage' or 'fixed'
        discount_value: Percent or currency amount, >= 0
        tax_rate_percent: Flat tax rate, >= 0
        amount_paid: Invoice payments so far; None for quotations

    Returns:
        Unrounded Totals; call ``.rounded()`` before storing

    Raises:
        InvalidDiscountError: See :func:`discount_amount_for`
        ValidationError: If the tax rate or amount paid is negative
    """
    subtotal = to_decimal(subtotal, 'subtotal')
    if subtotal < ZERO:
        raise ValidationError("Subtotal cannot be negative", field='subtotal')

    tax_rate = to_decimal(tax_rate_percent if tax_rate_percent is not None else ZERO, 'tax_rate_percent')
    if tax_rate < ZERO:
        raise ValidationError("Tax rate cannot be negative", field='tax_rate_percent')

    discount_amount = discount_amount_for(subtotal, discount_type, discount_value)
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * tax_rate / HUNDRED
    total_amount = taxable_amount + tax_amount

    balance_due = None
    if amount_paid is not None:
        amount_paid = to_decimal(amount_paid, 'amount_paid')
        if amount_paid < ZERO:
            raise ValidationError("Amount paid cannot be negative", field='amount_paid')
        # May go negative on overpayment
        balance_due = total_amount - amount_paid

    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        total_amount=total_amount,
        amount_paid=amount_paid,
        balance_due=balance_due,
    )


def compute_totals(line_items, discount: Optional[Discount] = None, tax_rate_percent=ZERO, amount_paid=None) -> Totals:
    """Aggregate line items and run the totals calculator in one call."""
    discount = discount or Discount()
    _, subtotal = aggregate_line_items(line_items)
    return calculate_totals(
        subtotal,
        discount_type=discount.type,
        discount_value=discount.value,
        tax_rate_percent=tax_rate_percent,
        amount_paid=amount_paid,
    )
