# apps/fees/migrations/0001_initial.py

import decimal

from django.db import migrations, models
import django.db.models.deletion


TERM_CHOICES = [(1, 'Term 1'), (2, 'Term 2'), (3, 'Term 3')]


def base_fields(school_scoped=True):
    """Primary key, timestamps and audit columns shared by every fee table."""
    fields = [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('created_at', models.DateTimeField(db_index=True, verbose_name='Created At')),
        ('updated_at', models.DateTimeField(verbose_name='Updated At')),
        ('created_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Created By ID')),
        ('updated_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Updated By ID')),
        ('created_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Created From IP')),
        ('updated_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Updated From IP')),
    ]
    if school_scoped:
        fields.append(('school_id', models.PositiveIntegerField(db_index=True, verbose_name='School ID')))
    return fields


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('students', '0001_initial'),
    ]

    operations = [
        # =====================================================================
        # CATALOG, OVERRIDES, SCHOLARSHIPS
        # =====================================================================
        migrations.CreateModel(
            name='FeeStructure',
            fields=base_fields() + [
                ('class_level', models.CharField(db_index=True, max_length=50, verbose_name='Class Level')),
                ('fee_type', models.CharField(max_length=100, verbose_name='Fee Type')),
                ('description', models.CharField(blank=True, max_length=255, verbose_name='Description')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount')),
                ('term', models.PositiveSmallIntegerField(blank=True, choices=TERM_CHOICES, help_text='Leave empty for fees charged every term', null=True, verbose_name='Term')),
                ('year', models.PositiveIntegerField(db_index=True, verbose_name='Year')),
                ('boarding_status', models.CharField(choices=[('all', 'All Students'), ('day', 'Day Scholars'), ('boarding', 'Boarders')], default='all', max_length=10, verbose_name='Boarding Status')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is Active')),
            ],
            options={
                'verbose_name': 'Fee Structure',
                'ordering': ['class_level', 'fee_type'],
                'indexes': [
                    models.Index(fields=['school_id', 'year', 'term', 'is_active'], name='feestructure_period_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Scholarship',
            fields=base_fields() + [
                ('name', models.CharField(max_length=150, verbose_name='Name')),
                ('discount_type', models.CharField(choices=[('percentage', 'Percentage'), ('fixed', 'Fixed Amount')], max_length=10, verbose_name='Discount Type')),
                ('discount_value', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Discount Value')),
                ('fee_types', models.JSONField(blank=True, default=list, help_text='Fee types this scholarship covers. Empty means every fee type.', verbose_name='Fee Types')),
                ('description', models.TextField(blank=True, verbose_name='Description')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is Active')),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='StudentFeeOverride',
            fields=base_fields() + [
                ('fee_type', models.CharField(max_length=100, verbose_name='Fee Type')),
                ('custom_amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Custom Amount')),
                ('term', models.PositiveSmallIntegerField(blank=True, choices=TERM_CHOICES, null=True, verbose_name='Term')),
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('reason', models.CharField(blank=True, max_length=255, verbose_name='Reason')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is Active')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='fee_overrides', to='students.student', verbose_name='Student')),
            ],
            options={
                'verbose_name': 'Student Fee Override',
                'ordering': ['fee_type'],
                'constraints': [
                    models.UniqueConstraint(fields=('student', 'fee_type', 'year', 'term'), name='unique_fee_override_per_student_period'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StudentScholarship',
            fields=base_fields() + [
                ('term', models.PositiveSmallIntegerField(blank=True, choices=TERM_CHOICES, help_text='Leave empty for the whole year', null=True, verbose_name='Term')),
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='active', max_length=10, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('scholarship', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='fees.scholarship', verbose_name='Scholarship')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scholarships', to='students.student', verbose_name='Student')),
            ],
            options={
                'verbose_name': 'Student Scholarship',
                'constraints': [
                    models.UniqueConstraint(fields=('student', 'scholarship', 'year', 'term'), name='unique_scholarship_assignment_per_period'),
                ],
            },
        ),

        # =====================================================================
        # INVOICES
        # =====================================================================
        migrations.CreateModel(
            name='Invoice',
            fields=base_fields() + [
                ('invoice_number', models.CharField(max_length=50, unique=True, verbose_name='Invoice Number')),
                ('term', models.PositiveSmallIntegerField(choices=TERM_CHOICES, verbose_name='Term')),
                ('year', models.PositiveIntegerField(db_index=True, verbose_name='Year')),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Total Amount')),
                ('amount_paid', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, verbose_name='Amount Paid')),
                ('balance', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Balance')),
                ('status', models.CharField(choices=[('unpaid', 'Unpaid'), ('partial', 'Partially Paid'), ('paid', 'Paid in Full')], db_index=True, default='unpaid', max_length=10, verbose_name='Status')),
                ('due_date', models.DateField(blank=True, db_index=True, null=True, verbose_name='Due Date')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('reminder_sent_at', models.DateTimeField(blank=True, null=True, verbose_name='Reminder Sent At')),
                ('reminder_count', models.PositiveIntegerField(default=0, verbose_name='Reminder Count')),
                ('last_reminder_type', models.CharField(blank=True, max_length=20, verbose_name='Last Reminder Type')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='students.student', verbose_name='Student')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['school_id', 'year', 'term'], name='invoice_period_idx'),
                    models.Index(fields=['school_id', 'balance'], name='invoice_balance_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('school_id', 'student', 'term', 'year'), name='unique_invoice_per_student_term'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InvoiceItem',
            fields=base_fields(school_scoped=False) + [
                ('fee_type', models.CharField(max_length=100, verbose_name='Fee Type')),
                ('description', models.CharField(blank=True, max_length=255, verbose_name='Description')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount')),
                ('invoice', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='fees.invoice', verbose_name='Invoice')),
            ],
            options={
                'ordering': ['id'],
            },
        ),

        # =====================================================================
        # RECEIPTS AND PAYMENT PLANS
        # =====================================================================
        migrations.CreateModel(
            name='ReceiptSequence',
            fields=base_fields() + [
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('last_number', models.PositiveIntegerField(default=0, verbose_name='Last Number')),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(fields=('school_id', 'year'), name='unique_receipt_sequence_per_school_year'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PaymentPlan',
            fields=base_fields() + [
                ('plan_name', models.CharField(max_length=150, verbose_name='Plan Name')),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Total Amount')),
                ('down_payment', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, verbose_name='Down Payment')),
                ('installment_count', models.PositiveSmallIntegerField(verbose_name='Installment Count')),
                ('frequency', models.CharField(choices=[('weekly', 'Weekly'), ('monthly', 'Monthly')], default='monthly', max_length=10, verbose_name='Frequency')),
                ('start_date', models.DateField(verbose_name='Start Date')),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('defaulted', 'Defaulted'), ('cancelled', 'Cancelled')], db_index=True, default='active', max_length=10, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('invoice', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payment_plans', to='fees.invoice', verbose_name='Invoice')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_plans', to='students.student', verbose_name='Student')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='PlanInstallment',
            fields=base_fields(school_scoped=False) + [
                ('installment_number', models.PositiveSmallIntegerField(verbose_name='Installment Number')),
                ('due_date', models.DateField(verbose_name='Due Date')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount')),
                ('paid_amount', models.DecimalField(decimal_places=2, default=decimal.Decimal('0'), max_digits=12, verbose_name='Paid Amount')),
                ('paid_at', models.DateTimeField(blank=True, null=True, verbose_name='Paid At')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partial', 'Partially Paid'), ('paid', 'Paid')], default='pending', max_length=10, verbose_name='Status')),
                ('plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='installments', to='fees.paymentplan', verbose_name='Payment Plan')),
            ],
            options={
                'ordering': ['installment_number'],
                'constraints': [
                    models.UniqueConstraint(fields=('plan', 'installment_number'), name='unique_installment_number_per_plan'),
                ],
            },
        ),

        # =====================================================================
        # PAYMENTS
        # =====================================================================
        migrations.CreateModel(
            name='FeePayment',
            fields=base_fields() + [
                ('fee_type', models.CharField(max_length=100, verbose_name='Fee Type')),
                ('amount_due', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount Due')),
                ('amount_paid', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount Paid')),
                ('balance', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Balance')),
                ('term', models.PositiveSmallIntegerField(choices=TERM_CHOICES, verbose_name='Term')),
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('payment_date', models.DateField(db_index=True, verbose_name='Payment Date')),
                ('payment_method', models.CharField(max_length=50, verbose_name='Payment Method')),
                ('receipt_number', models.CharField(max_length=30, verbose_name='Receipt Number')),
                ('status', models.CharField(choices=[('partial', 'Partial'), ('paid', 'Paid')], max_length=10, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Notes')),
                ('received_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Received By ID')),
                ('is_voided', models.BooleanField(db_index=True, default=False, verbose_name='Is Voided')),
                ('void_reason', models.CharField(blank=True, max_length=255, verbose_name='Void Reason')),
                ('voided_at', models.DateTimeField(blank=True, null=True, verbose_name='Voided At')),
                ('voided_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Voided By ID')),
                ('installment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to='fees.planinstallment', verbose_name='Plan Installment')),
                ('invoice', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='payments', to='fees.invoice', verbose_name='Invoice')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='fee_payments', to='students.student', verbose_name='Student')),
            ],
            options={
                'ordering': ['-payment_date', '-id'],
                'indexes': [
                    models.Index(fields=['school_id', 'student', 'term', 'year'], name='feepayment_student_period_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('school_id', 'receipt_number'), name='unique_receipt_number_per_school'),
                ],
            },
        ),
    ]
