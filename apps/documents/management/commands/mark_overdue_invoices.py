"""
Management command to move past-due invoices to 'overdue'.

Usage:
    python manage.py mark_overdue_invoices
    python manage.py mark_overdue_invoices --as-of 2025-03-31
    python manage.py mark_overdue_invoices --dry-run

Only pending_payment invoices with a positive balance and a due date
before the reference day are transitioned.
"""

from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.documents.models import Invoice, InvoiceStatus
from apps.documents.services import flag_overdue_invoices, is_overdue


class Command(BaseCommand):
    help = 'Transition past-due pending_payment invoices to overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--as-of',
            help='Reference day (YYYY-MM-DD), defaults to today',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the invoices that would be flagged without changing them',
        )

    def handle(self, *args, **options):
        as_of = timezone.localdate()
        if options['as_of']:
            try:
                as_of = date.fromisoformat(options['as_of'])
            except ValueError:
                raise CommandError(f"Invalid date: {options['as_of']}")

        if options['dry_run']:
            pending = Invoice.objects.filter(status=InvoiceStatus.PENDING_PAYMENT)
            for invoice in pending:
                if is_overdue(invoice, as_of):
                    self.stdout.write(f'  {invoice.number} (due {invoice.due_date}, balance {invoice.balance_due})')
            return

        flagged = flag_overdue_invoices(as_of=as_of)
        for invoice in flagged:
            self.stdout.write(f'  {invoice.number} -> overdue')

        self.stdout.write(self.style.SUCCESS(f'Flagged {len(flagged)} invoice(s) as of {as_of}'))
