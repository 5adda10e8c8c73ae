from django.contrib import admin
from .models import Client, Supplier


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['name', 'internal_id', 'phone', 'email', 'tax_number', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'phone', 'email', 'tax_number', 'internal_id']
    ordering = ['name']
    readonly_fields = ['internal_id', 'created_at', 'updated_at']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['name', 'internal_id', 'supplier_type', 'country', 'phone', 'email', 'is_active', 'created_at']
    list_filter = ['supplier_type', 'is_active', 'country']
    search_fields = ['name', 'phone', 'email', 'tax_number', 'internal_id']
    ordering = ['name']
    readonly_fields = ['internal_id', 'created_at', 'updated_at']
