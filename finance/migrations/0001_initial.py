from decimal import Decimal

import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
        ('core', '0001_initial'),
        ('students', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BillingRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=80, unique=True)),
                ('description', models.TextField(blank=True, max_length=400)),
                ('type', models.CharField(choices=[('late_fee', 'Late Fee'), ('early_discount', 'Early Payment Discount'), ('cutoff', 'Cutoff')], max_length=20)),
                ('scope', models.CharField(choices=[('standard', 'Standard Students'), ('scholarship', 'Scholarship Students'), ('all_students', 'All Students')], default='all_students', max_length=20)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=10)),
                ('fee_type', models.CharField(blank=True, choices=[('percentage', 'Percentage'), ('fixed', 'Fixed Amount')], max_length=10)),
                ('fee_value', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('start_day', models.PositiveSmallIntegerField(blank=True, help_text='First day of the month the rule applies', null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ('end_day', models.PositiveSmallIntegerField(blank=True, help_text='Last day of the month the rule applies', null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(31)])),
                ('max_uses', models.PositiveIntegerField(blank=True, null=True)),
                ('used_count', models.PositiveIntegerField(default=0)),
                ('cutoff_after_days', models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='BillingConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('scope', models.CharField(choices=[('all_students', 'All Students'), ('specific_groups', 'Specific Groups'), ('specific_grades', 'Specific Grades'), ('specific_students', 'Specific Students')], default='all_students', max_length=20)),
                ('target_grades', models.JSONField(blank=True, default=list)),
                ('recurrence', models.CharField(choices=[('four_monthly', 'Four-monthly'), ('semiannual', 'Semiannual'), ('saturday', 'Saturday'), ('monthly', 'Monthly'), ('daily', 'Daily'), ('weekly', 'Weekly'), ('annual', 'Annual'), ('one_time', 'One Time')], default='monthly', max_length=20)),
                ('type', models.CharField(choices=[('enrollment', 'Enrollment'), ('tuition', 'Tuition'), ('exam', 'Exam'), ('school_supplies', 'School Supplies'), ('life_insurance', 'Life Insurance'), ('meal_plan', 'Meal Plan'), ('other', 'Other')], default='tuition', max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('start_date', models.DateField()),
                ('end_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('required', 'Required'), ('optional', 'Optional'), ('inactive', 'Inactive')], default='required', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('rules', models.ManyToManyField(blank=True, related_name='billing_configs', to='finance.billingrule')),
                ('school_cycle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='billing_configs', to='core.schoolcycle')),
                ('target_groups', models.ManyToManyField(blank=True, related_name='billing_configs', to='academics.group')),
                ('target_students', models.ManyToManyField(blank=True, related_name='targeted_billing_configs', to='students.student')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Billing Configuration',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['school_cycle', 'status'], name='billcfg_cycle_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='Billing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('overdue', 'Overdue'), ('partial', 'Partially Paid'), ('late', 'Late')], default='pending', max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('total_discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('late_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('applied_discounts', models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('billing_config', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='billings', to='finance.billingconfig')),
                ('late_fee_rule', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='finance.billingrule')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='billings', to='students.student')),
            ],
            options={
                'ordering': ['billing_config__start_date', 'created_at'],
                'indexes': [models.Index(fields=['billing_config', 'status'], name='billing_config_status_idx')],
                'unique_together': {('student', 'billing_config')},
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('method', models.CharField(choices=[('cash', 'Cash'), ('bank_transfer', 'Bank Transfer'), ('card', 'Card'), ('other', 'Other')], default='cash', max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('billing', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='finance.billing')),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='students.student')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
