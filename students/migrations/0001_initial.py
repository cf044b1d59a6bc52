import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('birth_date', models.DateField(blank=True, null=True)),
                ('img_url', models.URLField(blank=True)),
                ('enrollment', models.CharField(help_text='Unique student ID/enrollment number', max_length=50, unique=True)),
                ('admission_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], default='active', max_length=10)),
                ('has_scholarship', models.BooleanField(default=False)),
                ('credit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Overpayments kept on account', max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='students', to='academics.group')),
                ('school_cycle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='students', to='core.schoolcycle')),
                ('tutor', models.ForeignKey(blank=True, limit_choices_to={'is_tutor': True}, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='students', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['last_name', 'name'],
                'indexes': [
                    models.Index(fields=['school_cycle', 'status'], name='student_cycle_status_idx'),
                    models.Index(fields=['group'], name='student_group_idx'),
                ],
            },
        ),
    ]
