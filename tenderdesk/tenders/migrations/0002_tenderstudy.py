from decimal import Decimal
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('tenders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TenderStudy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fixed_profit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=16)),
                ('percentage_profit', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=7)),
                ('per_item', models.BooleanField(default=False)),
                ('item_profits', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tender', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='study', to='tenders.tender')),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tender_studies', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'tender_studies',
                'verbose_name_plural': 'tender studies',
            },
        ),
    ]
