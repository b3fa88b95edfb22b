# Generated manually for the documents app

import apps.documents.models
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


DISCOUNT_TYPES = [('percentage', 'Percentage'), ('fixed', 'Fixed')]

QUOTATION_STATUSES = [
    ('draft', 'Draft'),
    ('sent', 'Sent'),
    ('accepted', 'Accepted'),
    ('rejected', 'Rejected'),
    ('expired', 'Expired'),
    ('converted', 'Converted'),
]

INVOICE_STATUSES = [
    ('draft', 'Draft'),
    ('sent', 'Sent'),
    ('pending_payment', 'Pending Payment'),
    ('paid', 'Paid'),
    ('overdue', 'Overdue'),
    ('cancelled', 'Cancelled'),
]


def document_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('client_name', models.CharField(max_length=200)),
        ('client_email', models.EmailField(blank=True, max_length=255)),
        ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
        ('discount_type', models.CharField(choices=DISCOUNT_TYPES, default='percentage', max_length=20)),
        ('discount_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, validators=[MinValueValidator(Decimal('0.00'))])),
        ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
        ('tax_rate_percent', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5, validators=[MinValueValidator(Decimal('0.00'))])),
        ('tax_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
        ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
        ('currency', models.CharField(default=apps.documents.models.default_currency, max_length=3)),
        ('notes', models.TextField(blank=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def line_item_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('product_name', models.CharField(max_length=200)),
        ('description', models.TextField(blank=True)),
        ('quantity', models.DecimalField(decimal_places=3, max_digits=12)),
        ('unit_price', models.DecimalField(decimal_places=2, max_digits=14)),
        ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
        ('position', models.PositiveIntegerField(default=0)),
        ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='directory.product')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('directory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Quotation',
            fields=document_fields() + [
                ('number', models.CharField(db_column='quotation_number', editable=False, max_length=32, unique=True)),
                ('quotation_date', models.DateField()),
                ('valid_until_date', models.DateField()),
                ('status', models.CharField(choices=QUOTATION_STATUSES, default='draft', max_length=20)),
                ('terms_and_conditions', models.TextField(blank=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='quotations', to='directory.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='quotations_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'quotations',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['status'], name='quotations_status_idx'),
                    models.Index(fields=['client', 'status'], name='quotations_client_status_idx'),
                    models.Index(fields=['quotation_date'], name='quotations_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=document_fields() + [
                ('number', models.CharField(db_column='invoice_number', editable=False, max_length=32, unique=True)),
                ('issue_date', models.DateField()),
                ('due_date', models.DateField()),
                ('status', models.CharField(choices=INVOICE_STATUSES, default='draft', max_length=20)),
                ('amount_paid', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, validators=[MinValueValidator(Decimal('0.00'))])),
                ('balance_due', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('payment_terms', models.CharField(blank=True, max_length=200)),
                ('payment_instructions', models.TextField(blank=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='directory.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoices_created', to=settings.AUTH_USER_MODEL)),
                ('quotation', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invoice', to='documents.quotation')),
            ],
            options={
                'db_table': 'invoices',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['status'], name='invoices_status_idx'),
                    models.Index(fields=['client', 'status'], name='invoices_client_status_idx'),
                    models.Index(fields=['due_date', 'status'], name='invoices_due_status_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='QuotationLineItem',
            fields=line_item_fields() + [
                ('document', models.ForeignKey(db_column='quotation_id', on_delete=django.db.models.deletion.CASCADE, related_name='line_items', to='documents.quotation')),
            ],
            options={
                'db_table': 'quotation_line_items',
                'ordering': ['position', 'id'],
                'abstract': False,
                'constraints': [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name='quotation_item_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(unit_price__gte=0), name='quotation_item_price_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InvoiceLineItem',
            fields=line_item_fields() + [
                ('document', models.ForeignKey(db_column='invoice_id', on_delete=django.db.models.deletion.CASCADE, related_name='line_items', to='documents.invoice')),
            ],
            options={
                'db_table': 'invoice_line_items',
                'ordering': ['position', 'id'],
                'abstract': False,
                'constraints': [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name='invoice_item_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(unit_price__gte=0), name='invoice_item_price_non_negative'),
                ],
            },
        ),
    ]
