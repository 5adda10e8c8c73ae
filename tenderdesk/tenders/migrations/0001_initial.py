# Generated manually for the initial schema

from decimal import Decimal
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models
import tenderdesk.core.ids


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('parties', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Tender',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
                ('title', models.CharField(max_length=255)),
                ('reference_number', models.CharField(max_length=100)),
                ('entity', models.CharField(help_text='Issuing entity', max_length=200)),
                ('description', models.TextField(blank=True)),
                ('submission_deadline', models.DateField()),
                ('estimated_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=16)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('contact_person', models.CharField(blank=True, max_length=200)),
                ('contact_phone', models.CharField(blank=True, max_length=30)),
                ('contact_email', models.EmailField(blank=True, max_length=254)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted'), ('won', 'Won'), ('lost', 'Lost'), ('cancelled', 'Cancelled')], default='draft', max_length=20)),
                ('awarded_value', models.DecimalField(blank=True, decimal_places=2, max_digits=16, null=True)),
                ('result_notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tenders', to='parties.client')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tenders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tenders',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_tender_status'),
                    models.Index(fields=['submission_deadline'], name='idx_tender_deadline'),
                ],
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='TenderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
                ('material_type', models.CharField(choices=[('rawMaterial', 'Raw Material'), ('localProduct', 'Local Product'), ('foreignProduct', 'Foreign Product'), ('manufacturedProduct', 'Manufactured Product')], max_length=30)),
                ('material_internal_id', models.CharField(max_length=50)),
                ('material_name', models.CharField(max_length=255)),
                ('unit', models.CharField(blank=True, max_length=100)),
                ('category', models.CharField(blank=True, max_length=200)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=14)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=16)),
                ('supplier_info', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='tenders.tender')),
                ('raw_material', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tender_items', to='catalog.rawmaterial')),
                ('local_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tender_items', to='catalog.localproduct')),
                ('foreign_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tender_items', to='catalog.foreignproduct')),
                ('manufactured_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tender_items', to='catalog.manufacturedproduct')),
            ],
            options={
                'db_table': 'tender_items',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('tender', 'material_type', 'material_internal_id'), name='uniq_tender_item_material'),
                ],
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='CompetitorPrice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('competitor_name', models.CharField(max_length=200)),
                ('competitor_email', models.EmailField(blank=True, max_length=254)),
                ('competitor_phone', models.CharField(blank=True, max_length=30)),
                ('competitor_city', models.CharField(blank=True, max_length=100)),
                ('price', models.DecimalField(decimal_places=2, max_digits=16)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='competitor_prices', to='tenders.tender')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='competitor_prices', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'competitor_prices',
                'ordering': ['price', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('tender', 'competitor_name'), name='uniq_competitor_per_tender'),
                ],
            },
        ),
    ]
