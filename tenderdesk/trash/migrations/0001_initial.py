# Generated manually for the initial schema

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TrashItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('internal_id', models.CharField(blank=True, max_length=50, unique=True)),
                ('original_model', models.CharField(help_text='app_label.model of the trashed record', max_length=100)),
                ('original_id', models.CharField(max_length=100)),
                ('display_name', models.CharField(max_length=255)),
                ('payload', models.JSONField(default=list, help_text='Serialized objects, restore order (parents first)')),
                ('object_count', models.PositiveIntegerField(default=0)),
                ('context', models.JSONField(blank=True, default=dict, help_text='Where the record belonged (tender, product, ...)')),
                ('detached', models.JSONField(blank=True, default=list, help_text='Nullable references cleared by the deletion, relinked on restore')),
                ('deleted_at', models.DateTimeField(auto_now_add=True)),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trashed_items', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'trash_items',
                'ordering': ['-deleted_at', '-id'],
                'constraints': [
                    models.UniqueConstraint(fields=('original_model', 'original_id'), name='uniq_trash_original'),
                ],
                'indexes': [
                    models.Index(fields=['original_model'], name='idx_trash_model'),
                ],
            },
        ),
    ]
