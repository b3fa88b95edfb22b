"""
Persistence gateway.

The calculation, lifecycle and classification code never talks to the ORM
directly; it goes through this gateway for the few things it needs from
storage: reference-existence checks, the last issued number of a series,
and loading/saving documents and payments.

Models are resolved lazily through the app registry so that this module
can be imported by every billing app without import cycles.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Optional

from django.apps import apps
from django.db import InterfaceError, OperationalError, transaction
from django.db.models.functions import Length

from .exceptions import (
    DocumentNotFoundError,
    PaymentNotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from .numbering import NumberSeries, parse_sequence, series_prefix

logger = logging.getLogger(__name__)


REFERENCE_MODELS = {
    'staff': 'directory.Staff',
    'product': 'directory.Product',
    'expense_category': 'directory.ExpenseCategory',
    'client': 'directory.Client',
}

DOCUMENT_MODELS = {
    'quotation': 'documents.Quotation',
    'invoice': 'documents.Invoice',
}

SERIES_MODELS = {
    NumberSeries.QUOTATION: 'documents.Quotation',
    NumberSeries.INVOICE: 'documents.Invoice',
    NumberSeries.OUTGOING_PAYMENT: 'payments.OutgoingPayment',
}


@contextmanager
def storage_errors():
    """Translate connection-level database failures into StorageUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("Storage unavailable: %s", exc)
        raise StorageUnavailableError(reason=str(exc)) from exc


def _model(label):
    return apps.get_model(label)


class PersistenceGateway:
    """ORM-backed storage contract used by the billing services."""

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def _reference_model(self, kind: str):
        try:
            return _model(REFERENCE_MODELS[kind])
        except KeyError:
            raise ValidationError(f"Unknown reference kind: {kind}", field='kind')

    def find_existing(self, kind: str, pk) -> bool:
        """Whether a staff/product/expense_category/client record exists."""
        model = self._reference_model(kind)
        if pk in (None, ''):
            return False
        with storage_errors():
            try:
                return model.objects.filter(pk=pk).exists()
            except (TypeError, ValueError):
                # Identifier of the wrong shape can never match a row
                return False

    def get_reference(self, kind: str, pk):
        """Referenced record, or None when it does not exist."""
        model = self._reference_model(kind)
        if pk in (None, ''):
            return None
        with storage_errors():
            try:
                return model.objects.filter(pk=pk).first()
            except (TypeError, ValueError):
                return None

    # ------------------------------------------------------------------
    # Numbering
    # ------------------------------------------------------------------

    def last_document_number(self, series: NumberSeries, year: int) -> Optional[int]:
        """Highest sequence issued for a series in a year, or None."""
        model = _model(SERIES_MODELS[NumberSeries(series)])
        prefix = f"{series_prefix(series)}-{year}-"
        with storage_errors():
            # Longer numbers first so that 10000 sorts above 9999
            number = (
                model.objects
                .filter(number__startswith=prefix)
                .annotate(number_length=Length('number'))
                .order_by('-number_length', '-number')
                .values_list('number', flat=True)
                .first()
            )
        return parse_sequence(number) if number else None

    def number_exists(self, series: NumberSeries, number: str) -> bool:
        model = _model(SERIES_MODELS[NumberSeries(series)])
        with storage_errors():
            return model.objects.filter(number=number).exists()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def load_document(self, document_type: str, pk, *, for_update: bool = False):
        """
        Load a quotation or invoice with its line items.

        Args:
            document_type: 'quotation' or 'invoice'
            pk: Primary key
            for_update: Lock the row until the surrounding transaction ends

        Raises:
            DocumentNotFoundError: If no such document exists
        """
        model = _model(DOCUMENT_MODELS[document_type])
        queryset = model.objects.select_related('client').prefetch_related('line_items')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        with storage_errors():
            try:
                return queryset.get(pk=pk)
            except (model.DoesNotExist, ValueError, TypeError):
                raise DocumentNotFoundError(
                    f"{document_type.capitalize()} with ID {pk} not found",
                    document_type=document_type,
                    id=pk,
                )

    def save_document(self, document, line_items: Optional[Iterable] = None):
        """
        Persist a document and, when given, replace its whole line-item set.

        Line items are never patched individually: the old set is deleted and
        the new one inserted in list order inside the same transaction.
        """
        with storage_errors(), transaction.atomic():
            document.save()
            if line_items is not None:
                item_model = document.line_items.model
                document.line_items.all().delete()
                item_model.objects.bulk_create([
                    item_model(document=document, position=position, **fields)
                    for position, fields in enumerate(line_items)
                ])
                # Drop any prefetched set so readers see the replacement
                getattr(document, '_prefetched_objects_cache', {}).pop('line_items', None)
        return document

    def delete_document(self, document_type: str, pk) -> None:
        document = self.load_document(document_type, pk)
        with storage_errors():
            document.delete()

    # ------------------------------------------------------------------
    # Outgoing payments
    # ------------------------------------------------------------------

    def load_payment(self, pk, *, for_update: bool = False):
        model = _model('payments.OutgoingPayment')
        queryset = model.objects.select_related('staff', 'product', 'expense_category')
        if for_update:
            queryset = queryset.select_for_update(of=('self',))
        with storage_errors():
            try:
                return queryset.get(pk=pk)
            except (model.DoesNotExist, ValueError, TypeError):
                raise PaymentNotFoundError(f"Outgoing payment with ID {pk} not found", id=pk)

    def save_payment(self, payment):
        with storage_errors():
            payment.save()
        return payment

    def delete_payment(self, pk) -> None:
        payment = self.load_payment(pk)
        with storage_errors():
            payment.delete()


default_gateway = PersistenceGateway()
