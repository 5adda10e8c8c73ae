from django.db import models
from tenderdesk.core.models import User


class TrashItem(models.Model):
    """Soft-deleted record together with everything its deletion cascaded to"""
    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    original_model = models.CharField(max_length=100, help_text="app_label.model of the trashed record")
    original_id = models.CharField(max_length=100)
    display_name = models.CharField(max_length=255)
    payload = models.JSONField(default=list, help_text="Serialized objects, restore order (parents first)")
    object_count = models.PositiveIntegerField(default=0)
    context = models.JSONField(default=dict, blank=True, help_text="Where the record belonged (tender, product, ...)")
    detached = models.JSONField(default=list, blank=True, help_text="Nullable references cleared by the deletion, relinked on restore")
    deleted_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='trashed_items')
    deleted_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.display_name} ({self.original_model})"

    def save(self, *args, **kwargs):
        if not self.internal_id:
            from tenderdesk.core.ids import generate_internal_id
            self.internal_id = generate_internal_id('TRASH_ITEM')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'trash_items'
        ordering = ['-deleted_at', '-id']
        constraints = [
            models.UniqueConstraint(fields=['original_model', 'original_id'], name='uniq_trash_original'),
        ]
        indexes = [
            models.Index(fields=['original_model'], name='idx_trash_model'),
        ]
