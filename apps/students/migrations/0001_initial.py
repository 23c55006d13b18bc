# apps/students/migrations/0001_initial.py

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(db_index=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(verbose_name='Updated At')),
                ('created_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Created By ID')),
                ('updated_by_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Updated By ID')),
                ('created_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Created From IP')),
                ('updated_from_ip', models.GenericIPAddressField(blank=True, null=True, verbose_name='Updated From IP')),
                ('school_id', models.PositiveIntegerField(db_index=True, verbose_name='School ID')),
                ('first_name', models.CharField(max_length=100, verbose_name='First Name')),
                ('last_name', models.CharField(blank=True, max_length=100, verbose_name='Last Name')),
                ('admission_number', models.CharField(blank=True, max_length=50, verbose_name='Admission Number')),
                ('class_level', models.CharField(db_index=True, help_text='Current grade/class level, e.g. P5 or S2', max_length=50, verbose_name='Class Level')),
                ('boarding_status', models.CharField(choices=[('day', 'Day Scholar'), ('boarding', 'Boarder')], default='day', max_length=10, verbose_name='Boarding Status')),
                ('is_active', models.BooleanField(db_index=True, default=True, verbose_name='Is Active')),
            ],
            options={
                'ordering': ['class_level', 'first_name', 'last_name'],
                'indexes': [
                    models.Index(fields=['school_id', 'is_active', 'class_level'], name='student_roster_idx'),
                ],
            },
        ),
    ]
