# apps/finance/migrations/0001_initial.py

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('students', '0001_initial'),
        ('fees', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='FinanceTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(verbose_name='Updated At')),
                ('created_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Created By ID')),
                ('updated_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Updated By ID')),
                ('created_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Created From IP')),
                ('updated_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Updated From IP')),
                ('school_id', models.PositiveIntegerField(db_index=True, verbose_name='School ID')),
                ('transaction_type', models.CharField(choices=[('debit', 'Debit (charge)'), ('credit', 'Credit (payment)')], db_index=True, max_length=10, verbose_name='Type')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount')),
                ('description', models.CharField(blank=True, max_length=255, verbose_name='Description')),
                ('term', models.PositiveSmallIntegerField(verbose_name='Term')),
                ('year', models.PositiveIntegerField(verbose_name='Year')),
                ('transaction_date', models.DateField(db_index=True, verbose_name='Transaction Date')),
                ('is_voided', models.BooleanField(db_index=True, default=False, verbose_name='Is Voided')),
                ('voided_at', models.DateTimeField(blank=True, null=True, verbose_name='Voided At')),
                ('fee_payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='finance_transactions', to='fees.feepayment', verbose_name='Fee Payment')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='finance_transactions', to='students.student', verbose_name='Student')),
            ],
            options={
                'verbose_name': 'Finance Transaction',
                'ordering': ['transaction_date', 'id'],
                'indexes': [
                    models.Index(fields=['school_id', 'student'], name='financetxn_student_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(verbose_name='Updated At')),
                ('created_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Created By ID')),
                ('updated_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Updated By ID')),
                ('created_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Created From IP')),
                ('updated_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Updated From IP')),
                ('school_id', models.PositiveIntegerField(db_index=True, verbose_name='School ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, verbose_name='Amount')),
                ('description', models.CharField(max_length=255, verbose_name='Description')),
                ('vendor', models.CharField(blank=True, max_length=150, verbose_name='Vendor')),
                ('expense_date', models.DateField(db_index=True, verbose_name='Expense Date')),
                ('term', models.PositiveSmallIntegerField(blank=True, null=True, verbose_name='Term')),
                ('year', models.PositiveIntegerField(blank=True, null=True, verbose_name='Year')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('paid', 'Paid')], db_index=True, default='pending', max_length=10, verbose_name='Status')),
            ],
            options={
                'ordering': ['-expense_date', '-id'],
            },
        ),
    ]
