from django.contrib import admin
from .models import (
    Category, Unit, RawMaterial, LocalProduct, ForeignProduct, PriceQuote,
    ManufacturedProduct, ManufacturedProductComponent
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_default', 'created_at']
    list_filter = ['is_default']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_default', 'created_at']
    list_filter = ['is_default']
    search_fields = ['name']
    ordering = ['name']


class PriceQuoteInline(admin.TabularInline):
    model = PriceQuote
    extra = 0
    fields = ['supplier', 'supplier_name', 'price', 'quote_date', 'notes']


class MaterialAdmin(admin.ModelAdmin):
    list_display = ['name', 'internal_id', 'category', 'unit', 'price', 'supplier', 'is_active', 'updated_at']
    list_filter = ['category', 'unit', 'is_active']
    search_fields = ['name', 'internal_id', 'supplier', 'description']
    ordering = ['name']
    readonly_fields = ['internal_id', 'lowest_price_supplier', 'created_at', 'updated_at']
    inlines = [PriceQuoteInline]


@admin.register(RawMaterial)
class RawMaterialAdmin(MaterialAdmin):
    pass


@admin.register(LocalProduct)
class LocalProductAdmin(MaterialAdmin):
    pass


@admin.register(ForeignProduct)
class ForeignProductAdmin(MaterialAdmin):
    list_display = MaterialAdmin.list_display + ['country', 'currency']
    list_filter = MaterialAdmin.list_filter + ['country']


@admin.register(PriceQuote)
class PriceQuoteAdmin(admin.ModelAdmin):
    list_display = ['internal_id', 'supplier_name', 'price', 'quote_date', 'raw_material', 'local_product', 'foreign_product']
    list_filter = ['supplier_type', 'quote_date']
    search_fields = ['supplier_name', 'internal_id']
    ordering = ['-quote_date']
    readonly_fields = ['internal_id', 'created_at', 'updated_at']


class ManufacturedProductComponentInline(admin.TabularInline):
    model = ManufacturedProductComponent
    extra = 0
    fields = ['material_type', 'material_name', 'unit', 'quantity', 'unit_price']
    readonly_fields = ['material_type', 'material_name', 'unit']


@admin.register(ManufacturedProduct)
class ManufacturedProductAdmin(admin.ModelAdmin):
    list_display = ['title', 'internal_id', 'reference_number', 'entity', 'status', 'estimated_value', 'submission_deadline']
    list_filter = ['status', 'submission_deadline']
    search_fields = ['title', 'reference_number', 'entity', 'internal_id']
    ordering = ['-created_at']
    readonly_fields = ['internal_id', 'created_at', 'updated_at']
    inlines = [ManufacturedProductComponentInline]
