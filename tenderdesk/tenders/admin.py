from django.contrib import admin
from .models import Tender, TenderItem, CompetitorPrice, TenderStudy


class TenderItemInline(admin.TabularInline):
    model = TenderItem
    extra = 0
    fields = ['material_type', 'material_internal_id', 'material_name', 'quantity', 'unit_price', 'total_price']
    readonly_fields = ['material_internal_id', 'material_name', 'total_price']


class CompetitorPriceInline(admin.TabularInline):
    model = CompetitorPrice
    extra = 0
    fields = ['competitor_name', 'competitor_city', 'price', 'notes']


class TenderStudyInline(admin.StackedInline):
    model = TenderStudy
    extra = 0
    max_num = 1
    fields = ['fixed_profit', 'percentage_profit', 'per_item', 'item_profits', 'notes']


@admin.register(Tender)
class TenderAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'title', 'entity', 'client', 'status', 'submission_deadline', 'estimated_value']
    list_filter = ['status', 'submission_deadline']
    search_fields = ['title', 'reference_number', 'entity', 'internal_id']
    ordering = ['-created_at']
    readonly_fields = ['internal_id', 'estimated_value', 'created_by', 'created_at', 'updated_at']
    inlines = [TenderItemInline, CompetitorPriceInline, TenderStudyInline]


@admin.register(TenderItem)
class TenderItemAdmin(admin.ModelAdmin):
    list_display = ['material_name', 'tender', 'material_type', 'quantity', 'unit_price', 'total_price']
    list_filter = ['material_type']
    search_fields = ['material_name', 'material_internal_id', 'tender__title']
    readonly_fields = ['internal_id', 'total_price', 'created_at', 'updated_at']
