from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, ActivityLog, PendingData, Document


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_active', 'is_staff', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Additional Info', {'fields': ('phone',)}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Additional Info', {'fields': ('phone',)}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['internal_id', 'user', 'action', 'model_name', 'object_id', 'object_name', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'model_name', 'object_id', 'object_name', 'description']
    ordering = ['-created_at']
    readonly_fields = ['internal_id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                       'description', 'changes', 'ip_address', 'created_at']


@admin.register(PendingData)
class PendingDataAdmin(admin.ModelAdmin):
    list_display = ['user', 'key', 'updated_at']
    search_fields = ['user__username', 'key']
    ordering = ['-updated_at']


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'owner_type', 'owner_id', 'size', 'uploaded_by', 'created_at']
    list_filter = ['owner_type', 'created_at']
    search_fields = ['file_name', 'description']
    ordering = ['-created_at']
    readonly_fields = ['file_name', 'content_type', 'size', 'created_at']
