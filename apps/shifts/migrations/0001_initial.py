# Generated manually for the shifts app

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('stores', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Shift',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('OPEN', 'Open'), ('CLOSED', 'Closed')], default='OPEN', max_length=10)),
                ('opening_cash', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14, validators=[MinValueValidator(Decimal('0'))])),
                ('cash_in', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('cash_out', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('expected_cash', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('actual_cash', models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ('notes', models.CharField(blank=True, max_length=250)),
                ('opened_at', models.DateTimeField(auto_now_add=True)),
                ('closed_at', models.DateTimeField(blank=True, null=True)),
                ('opened_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shifts', to=settings.AUTH_USER_MODEL)),
                ('register', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shifts', to='stores.register')),
                ('store', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='shifts', to='stores.store')),
            ],
            options={
                'db_table': 'shifts',
                'ordering': ['-opened_at'],
                'indexes': [
                    models.Index(fields=['store', 'opened_at'], name='shifts_store_opened_idx'),
                    models.Index(fields=['opened_by', 'status'], name='shifts_user_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'OPEN')), fields=('register',), name='unique_open_shift_per_register'),
                ],
            },
        ),
    ]
