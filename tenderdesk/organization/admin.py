from django.contrib import admin
from .models import Company, Employee


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'internal_id', 'email', 'phone', 'tax_number', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'email', 'phone', 'tax_number', 'commercial_register', 'internal_id']
    ordering = ['name']
    readonly_fields = ['internal_id', 'created_at', 'updated_at']


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'internal_id', 'email', 'department', 'role', 'status', 'company', 'hire_date']
    list_filter = ['role', 'status', 'department', 'company']
    search_fields = ['full_name', 'email', 'phone', 'national_id', 'internal_id']
    ordering = ['full_name']
    readonly_fields = ['internal_id', 'user', 'created_at', 'updated_at']
