from decimal import Decimal, InvalidOperation

from django.db import transaction
from rest_framework import serializers
from .models import Tender, TenderItem, CompetitorPrice, TenderStudy


class TenderItemSerializer(serializers.ModelSerializer):
    material_available = serializers.SerializerMethodField()

    class Meta:
        model = TenderItem
        fields = [
            'id', 'internal_id', 'tender', 'material_type', 'raw_material', 'local_product',
            'foreign_product', 'manufactured_product', 'material_internal_id', 'material_name',
            'unit', 'category', 'quantity', 'unit_price', 'total_price', 'supplier_info',
            'notes', 'material_available', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'internal_id', 'tender', 'material_type', 'raw_material', 'local_product',
            'foreign_product', 'manufactured_product', 'material_internal_id', 'material_name',
            'unit', 'category', 'total_price', 'supplier_info', 'created_at', 'updated_at'
        ]

    def get_material_available(self, obj):
        return obj.material is not None

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Quantity must be greater than zero")
        return value

    def validate_unit_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Unit price cannot be negative")
        return value


class CompetitorPriceSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompetitorPrice
        fields = [
            'id', 'tender', 'competitor_name', 'competitor_email', 'competitor_phone',
            'competitor_city', 'price', 'notes', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['tender', 'created_by', 'created_at', 'updated_at']

    def validate_competitor_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Competitor name is required")
        tender = self.context.get('tender') or getattr(self.instance, 'tender', None)
        if tender is not None:
            queryset = tender.competitor_prices.filter(competitor_name__iexact=value)
            if self.instance:
                queryset = queryset.exclude(pk=self.instance.pk)
            if queryset.exists():
                raise serializers.ValidationError("Competitor already added to this tender")
        return value

    def validate_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Price must be greater than zero")
        return value


class TenderListSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Tender
        fields = [
            'id', 'internal_id', 'title', 'reference_number', 'entity', 'client', 'client_name',
            'submission_deadline', 'estimated_value', 'status', 'awarded_value',
            'item_count', 'created_at', 'updated_at'
        ]

    def get_item_count(self, obj):
        count = getattr(obj, 'num_items', None)
        return obj.items.count() if count is None else count


class TenderSerializer(serializers.ModelSerializer):
    """
    Full tender with its items and competitor prices.

    Items may be sent with a new tender through context['items_data'], each
    as {material_type, material_id or material_internal_id, quantity}.
    Repeated materials are merged into one item.
    """
    items = TenderItemSerializer(many=True, read_only=True)
    competitor_prices = CompetitorPriceSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Tender
        fields = [
            'id', 'internal_id', 'title', 'reference_number', 'entity', 'client', 'client_name',
            'description', 'submission_deadline', 'estimated_value', 'location', 'contact_person',
            'contact_phone', 'contact_email', 'status', 'awarded_value', 'result_notes',
            'items', 'competitor_prices', 'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        # status and result change only through the status endpoint
        read_only_fields = [
            'internal_id', 'estimated_value', 'status', 'awarded_value', 'result_notes',
            'created_by', 'created_at', 'updated_at'
        ]

    def _required_text(self, value, label):
        value = value.strip()
        if not value:
            raise serializers.ValidationError(f"{label} is required")
        return value

    def validate_title(self, value):
        return self._required_text(value, "Title")

    def validate_reference_number(self, value):
        return self._required_text(value, "Reference number")

    def validate_entity(self, value):
        return self._required_text(value, "Entity")

    @transaction.atomic
    def create(self, validated_data):
        from tenderdesk.catalog.services import resolve_material, MaterialNotFound
        from .services import add_material
        items_data = self.context.get('items_data') or []
        tender = super().create(validated_data)
        for item_data in items_data:
            try:
                material = resolve_material(
                    item_data.get('material_type'),
                    item_data.get('material_id'),
                    item_data.get('material_internal_id'),
                )
                add_material(tender, item_data.get('material_type'), material, item_data.get('quantity', 1))
            except (MaterialNotFound, ValueError) as e:
                raise serializers.ValidationError({'items': str(e)})
        if items_data:
            tender.refresh_from_db()
        return tender


class TenderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Tender.STATUS_CHOICES)
    awarded_value = serializers.DecimalField(max_digits=16, decimal_places=2, required=False, allow_null=True)
    result_notes = serializers.CharField(required=False, allow_blank=True)

    def validate_awarded_value(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Awarded value cannot be negative")
        return value

    def validate(self, attrs):
        if attrs.get('awarded_value') is not None and attrs['status'] != 'won':
            raise serializers.ValidationError({'awarded_value': "Only a won tender has an awarded value"})
        return attrs


class TenderStudySerializer(serializers.ModelSerializer):
    PROFIT_TYPES = ('fixed', 'percentage')

    class Meta:
        model = TenderStudy
        fields = [
            'id', 'tender', 'fixed_profit', 'percentage_profit', 'per_item', 'item_profits',
            'notes', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['tender', 'updated_by', 'created_at', 'updated_at']

    def validate_fixed_profit(self, value):
        if value < 0:
            raise serializers.ValidationError("Fixed profit cannot be negative")
        return value

    def validate_percentage_profit(self, value):
        if value < 0:
            raise serializers.ValidationError("Percentage profit cannot be negative")
        return value

    def validate_item_profits(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("Expected an object keyed by item internal id")
        cleaned = {}
        for key, entry in value.items():
            if not isinstance(entry, dict) or entry.get('type', 'fixed') not in self.PROFIT_TYPES:
                raise serializers.ValidationError(f"{key}: type must be fixed or percentage")
            try:
                amount = Decimal(str(entry.get('value') or 0))
            except InvalidOperation:
                raise serializers.ValidationError(f"{key}: value must be a number")
            if amount < 0:
                raise serializers.ValidationError(f"{key}: value cannot be negative")
            cleaned[key] = {'type': entry.get('type', 'fixed'), 'value': str(amount)}
        return cleaned
