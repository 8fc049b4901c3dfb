# Generated manually
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('catalog', '0001_initial'),
        ('khata', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='productrequest',
            name='is_long_set',
            field=models.BooleanField(default=False),
        ),
        migrations.CreateModel(
            name='LongSetProduct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='long_set', to='catalog.product')),
            ],
            options={
                'db_table': 'long_set_products',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='LongSetPart',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('part_name', models.CharField(max_length=255)),
                ('part_description', models.TextField(blank=True, null=True)),
                ('cost_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('karigar', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='long_set_parts', to='khata.karigar')),
                ('long_set', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='parts', to='catalog.longsetproduct')),
            ],
            options={
                'db_table': 'long_set_parts',
                'ordering': ['id'],
            },
        ),
    ]
