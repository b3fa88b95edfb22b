# Generated manually for the payments app

from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('directory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='OutgoingPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(db_column='payment_number', editable=False, max_length=32, unique=True)),
                ('payment_category', models.CharField(choices=[('Expense Payment', 'Expense Payment'), ('Staff Salary', 'Staff Salary'), ('Cloud Subscription', 'Cloud Subscription'), ('Other Outgoing Payment', 'Other Outgoing Payment')], max_length=30)),
                ('payee_name', models.CharField(blank=True, max_length=200, null=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[MinValueValidator(Decimal('0.01'))])),
                ('payment_date', models.DateField()),
                ('payment_method', models.CharField(choices=[('Cash', 'Cash'), ('Card', 'Card'), ('Bank Transfer', 'Bank Transfer'), ('Cheque', 'Cheque'), ('Online Payment', 'Online Payment'), ('Direct Debit', 'Direct Debit'), ('Other', 'Other')], max_length=20)),
                ('status', models.CharField(choices=[('Scheduled', 'Scheduled'), ('Processing', 'Processing'), ('Paid', 'Paid'), ('Failed', 'Failed'), ('Cancelled', 'Cancelled')], default='Scheduled', max_length=20)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('attachments', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='outgoing_payments_created', to=settings.AUTH_USER_MODEL)),
                ('expense_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='directory.expensecategory')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='directory.product')),
                ('staff', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='directory.staff')),
            ],
            options={
                'db_table': 'outgoing_payments',
                'ordering': ['-payment_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['payment_category'], name='out_payments_category_idx'),
                    models.Index(fields=['status'], name='out_payments_status_idx'),
                    models.Index(fields=['payment_date'], name='out_payments_date_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(amount__gt=0), name='outgoing_payment_amount_positive'),
                    models.CheckConstraint(
                        condition=(
                            models.Q(payment_category='Expense Payment', payee_name__isnull=True, product__isnull=True, staff__isnull=True)
                            | models.Q(expense_category__isnull=True, payee_name__isnull=True, payment_category='Staff Salary', product__isnull=True, staff__isnull=False)
                            | models.Q(expense_category__isnull=True, payee_name__isnull=True, payment_category='Cloud Subscription', product__isnull=False, staff__isnull=True)
                            | models.Q(expense_category__isnull=True, payee_name__isnull=False, payment_category='Other Outgoing Payment', product__isnull=True, staff__isnull=True)
                        ),
                        name='outgoing_payment_single_payee',
                    ),
                ],
            },
        ),
    ]
