# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def counterparty_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('name', models.CharField(max_length=255)),
        ('phone', models.CharField(blank=True, max_length=20, null=True)),
        ('email', models.EmailField(blank=True, max_length=254, null=True)),
        ('address', models.TextField(blank=True, null=True)),
        ('status', models.CharField(choices=[('Active', 'Active'), ('Inactive', 'Inactive')], default='Active', max_length=20)),
        ('is_approved', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def audit_user_fields():
    return [
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_created', to=settings.AUTH_USER_MODEL)),
        ('approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='%(class)s_approved', to=settings.AUTH_USER_MODEL)),
    ]


def transaction_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('transaction_id', models.CharField(max_length=32, unique=True)),
        ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
        ('description', models.TextField()),
        ('items', models.JSONField(blank=True, null=True)),
        ('is_approved', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def payment_fields():
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('payment_id', models.CharField(max_length=32, unique=True)),
        ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
        ('payment_mode', models.CharField(max_length=50)),
        ('reference_number', models.CharField(blank=True, max_length=100, null=True)),
        ('notes', models.TextField(blank=True, null=True)),
        ('is_approved', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Vyapari',
            fields=counterparty_fields() + audit_user_fields(),
            options={
                'db_table': 'vyaparis',
                'ordering': ['name'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Karigar',
            fields=counterparty_fields() + [
                ('specialization', models.CharField(blank=True, max_length=255, null=True)),
            ] + audit_user_fields(),
            options={
                'db_table': 'karigars',
                'ordering': ['name'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='VyapariTransaction',
            fields=transaction_fields() + audit_user_fields() + [
                ('vyapari', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='khata.vyapari')),
            ],
            options={
                'db_table': 'vyapari_transactions',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='KarigarTransaction',
            fields=transaction_fields() + audit_user_fields() + [
                ('karigar', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='khata.karigar')),
            ],
            options={
                'db_table': 'karigar_transactions',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='VyapariPayment',
            fields=payment_fields() + audit_user_fields() + [
                ('vyapari', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='khata.vyapari')),
            ],
            options={
                'db_table': 'vyapari_payments',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='KarigarPayment',
            fields=payment_fields() + audit_user_fields() + [
                ('karigar', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='khata.karigar')),
            ],
            options={
                'db_table': 'karigar_payments',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='LedgerSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('prefix', models.CharField(max_length=10)),
                ('year', models.PositiveIntegerField()),
                ('last_value', models.PositiveIntegerField(default=0)),
            ],
            options={
                'db_table': 'ledger_sequences',
                'constraints': [
                    models.UniqueConstraint(fields=('prefix', 'year'), name='unique_ledger_sequence_prefix_year'),
                ],
            },
        ),
    ]
