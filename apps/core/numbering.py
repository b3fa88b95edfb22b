"""
Document number generation.

Numbers look like ``INV-2025-0007``: a series prefix, the numbering year
and a zero-padded sequence that restarts at 1 every year. Formatting and
parsing are pure; :func:`issue_number` ties a freshly generated number to
the insert that uses it and retries when another writer got there first.
"""

import logging
from enum import Enum
from typing import Callable, Optional, TypeVar

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from .exceptions import NumberCollisionError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar('T')

SEQUENCE_WIDTH = 4


class NumberSeries(str, Enum):
    """Independent numbering sequences."""
    QUOTATION = 'quotation'
    INVOICE = 'invoice'
    OUTGOING_PAYMENT = 'outgoing_payment'


def series_prefix(series: NumberSeries) -> str:
    """Configured prefix for a series (QUO, INV, OP by default)."""
    prefixes = {
        NumberSeries.QUOTATION: settings.BILLING_QUOTATION_PREFIX,
        NumberSeries.INVOICE: settings.BILLING_INVOICE_PREFIX,
        NumberSeries.OUTGOING_PAYMENT: settings.BILLING_PAYMENT_PREFIX,
    }
    return prefixes[NumberSeries(series)]


def format_number(prefix: str, year: int, sequence: int) -> str:
    """
    Format a document number.

    Args:
        prefix: Series prefix, e.g. 'INV'
        year: Numbering year
        sequence: 1-based position within the year

    Returns:
        Number such as 'INV-2025-0007'

    Raises:
        ValidationError: If sequence is not positive
    """
    if sequence < 1:
        raise ValidationError(f"Sequence must be positive, got {sequence}", field='sequence')
    return f"{prefix}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(number: str) -> int:
    """Return the trailing sequence of a stored number ('QUO-2025-0012' -> 12)."""
    try:
        return int(number.rsplit('-', 1)[-1])
    except (AttributeError, ValueError):
        raise ValidationError(f"Malformed document number: {number!r}", field='number')


def number_after(prefix: str, year: int, last_sequence: Optional[int]) -> str:
    """Number that follows ``last_sequence`` (or the first one of the year)."""
    return format_number(prefix, year, (last_sequence or 0) + 1)


def current_year() -> int:
    return timezone.localdate().year


def next_number(series: NumberSeries, *, year: Optional[int] = None, gateway=None) -> str:
    """
    Preview the next number for a series without reserving it.

    The value is only a hint for forms: another writer may take it before
    the caller inserts. Use :func:`issue_number` to actually assign one.
    """
    from .gateway import default_gateway

    gateway = gateway or default_gateway
    year = year or current_year()
    last = gateway.last_document_number(series, year)
    return number_after(series_prefix(series), year, last)


def issue_number(
    series: NumberSeries,
    create: Callable[[str], T],
    *,
    year: Optional[int] = None,
    gateway=None,
    max_attempts: Optional[int] = None,
) -> T:
    """
    Generate the next number and insert the record that carries it.

    Each attempt runs in its own transaction: read the last issued number,
    format the next one and call ``create(number)``. A unique constraint on
    the number column rejects a concurrent duplicate; the attempt is then
    retried with a fresh read.

    Args:
        series: Numbering series
        create: Callback inserting the record; receives the number
        year: Numbering year (defaults to the current local year)
        gateway: Persistence gateway (defaults to the ORM gateway)
        max_attempts: Retry budget (defaults to BILLING_NUMBER_MAX_ATTEMPTS)

    Returns:
        Whatever ``create`` returns

    Raises:
        NumberCollisionError: If every attempt collided
        StorageUnavailableError: If the database cannot be reached
    """
    from .gateway import default_gateway

    gateway = gateway or default_gateway
    year = year or current_year()
    max_attempts = max_attempts or settings.BILLING_NUMBER_MAX_ATTEMPTS
    prefix = series_prefix(series)

    for attempt in range(1, max_attempts + 1):
        number = number_after(prefix, year, gateway.last_document_number(series, year))
        try:
            with transaction.atomic():
                record = create(number)
        except IntegrityError:
            # Only a clash on the number itself is worth another attempt
            if not gateway.number_exists(series, number):
                raise
            logger.warning(
                "Number %s already taken (attempt %d/%d)", number, attempt, max_attempts
            )
            continue

        logger.info("Issued %s", number)
        return record

    raise NumberCollisionError(
        f"Failed to issue a unique {NumberSeries(series).value} number after {max_attempts} attempts",
        series=NumberSeries(series).value,
        attempts=max_attempts,
    )
