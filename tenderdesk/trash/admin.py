from django.contrib import admin
from .models import TrashItem


@admin.register(TrashItem)
class TrashItemAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'original_model', 'original_id', 'object_count', 'deleted_by', 'deleted_at']
    list_filter = ['original_model', 'deleted_at']
    search_fields = ['display_name', 'original_id', 'internal_id']
    ordering = ['-deleted_at']
    readonly_fields = ['internal_id', 'original_model', 'original_id', 'payload', 'context', 'deleted_by', 'deleted_at']
