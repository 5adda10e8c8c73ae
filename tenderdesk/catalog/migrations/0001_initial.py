# Generated manually for the initial schema

from decimal import Decimal
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models
import tenderdesk.core.ids


def material_fields(related_name):
    return [
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
        ('name', models.CharField(max_length=255)),
        ('category', models.CharField(max_length=200)),
        ('unit', models.CharField(max_length=100)),
        ('description', models.TextField(blank=True)),
        ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
        ('supplier', models.CharField(blank=True, max_length=200)),
        ('is_active', models.BooleanField(default=True)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('lowest_price_supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name=related_name, to='parties.supplier')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, unique=True)),
                ('description', models.TextField(blank=True)),
                ('is_default', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name_plural': 'categories',
                'db_table': 'categories',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Unit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('description', models.TextField(blank=True)),
                ('is_default', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'units',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='RawMaterial',
            fields=material_fields('cheapest_rawmaterials'),
            options={
                'db_table': 'raw_materials',
                'ordering': ['name'],
                'abstract': False,
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='LocalProduct',
            fields=material_fields('cheapest_localproducts'),
            options={
                'db_table': 'local_products',
                'ordering': ['name'],
                'abstract': False,
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='ForeignProduct',
            fields=material_fields('cheapest_foreignproducts') + [
                ('country', models.CharField(blank=True, max_length=100)),
                ('currency', models.CharField(blank=True, default='USD', max_length=10)),
            ],
            options={
                'db_table': 'foreign_products',
                'ordering': ['name'],
                'abstract': False,
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='PriceQuote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
                ('supplier_name', models.CharField(blank=True, max_length=200)),
                ('supplier_type', models.CharField(blank=True, max_length=20)),
                ('price', models.DecimalField(decimal_places=2, max_digits=14)),
                ('quote_date', models.DateField(default=django.utils.timezone.localdate)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('raw_material', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='price_quotes', to='catalog.rawmaterial')),
                ('local_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='price_quotes', to='catalog.localproduct')),
                ('foreign_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='price_quotes', to='catalog.foreignproduct')),
                ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='price_quotes', to='parties.supplier')),
            ],
            options={
                'db_table': 'price_quotes',
                'ordering': ['price', 'id'],
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='ManufacturedProduct',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
                ('title', models.CharField(max_length=255)),
                ('reference_number', models.CharField(blank=True, max_length=100)),
                ('entity', models.CharField(blank=True, help_text='Manufacturer', max_length=200)),
                ('submission_deadline', models.DateField(blank=True, help_text='Expected production date', null=True)),
                ('estimated_value', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('in_progress', 'In Progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='draft', max_length=20)),
                ('unit', models.CharField(blank=True, default='Piece', max_length=100)),
                ('category', models.CharField(blank=True, max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'manufactured_products',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_manufactured_status'),
                ],
            },
            bases=(tenderdesk.core.ids.InternalIdMixin, models.Model),
        ),
        migrations.CreateModel(
            name='ManufacturedProductComponent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('material_type', models.CharField(choices=[('rawMaterial', 'Raw Material'), ('localProduct', 'Local Product'), ('foreignProduct', 'Foreign Product')], max_length=30)),
                ('material_internal_id', models.CharField(max_length=50)),
                ('material_name', models.CharField(max_length=255)),
                ('unit', models.CharField(blank=True, max_length=100)),
                ('category', models.CharField(blank=True, max_length=200)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('1'), max_digits=14)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='components', to='catalog.manufacturedproduct')),
                ('raw_material', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='component_uses', to='catalog.rawmaterial')),
                ('local_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='component_uses', to='catalog.localproduct')),
                ('foreign_product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='component_uses', to='catalog.foreignproduct')),
            ],
            options={
                'db_table': 'manufactured_product_components',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'material_type', 'material_internal_id'), name='uniq_component_material'),
                ],
            },
        ),
    ]
