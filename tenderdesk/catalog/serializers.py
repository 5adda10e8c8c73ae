from decimal import Decimal

from django.db import transaction
from rest_framework import serializers
from .models import (
    Category, Unit, RawMaterial, LocalProduct, ForeignProduct, PriceQuote,
    ManufacturedProduct, ManufacturedProductComponent, QUOTED_MATERIAL_FIELDS
)
from .pricing import cheapest_quote


class NamedSettingSerializer(serializers.ModelSerializer):
    """Categories and units: names are unique regardless of case"""

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        queryset = self.Meta.model.objects.filter(name__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(f"{value} already exists")
        return value


class CategorySerializer(NamedSettingSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UnitSerializer(NamedSettingSerializer):
    class Meta:
        model = Unit
        fields = ['id', 'name', 'description', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PriceQuoteSerializer(serializers.ModelSerializer):
    material_type = serializers.CharField(read_only=True)
    material_name = serializers.SerializerMethodField()
    is_lowest = serializers.SerializerMethodField()

    class Meta:
        model = PriceQuote
        fields = [
            'id', 'internal_id', 'raw_material', 'local_product', 'foreign_product',
            'material_type', 'material_name', 'supplier', 'supplier_name', 'supplier_type',
            'price', 'quote_date', 'notes', 'is_lowest', 'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'created_at', 'updated_at']

    def get_material_name(self, obj):
        material = obj.material
        return material.name if material else None

    def get_is_lowest(self, obj):
        material = obj.material
        if material is None:
            return False
        best = cheapest_quote(material.price_quotes.order_by('created_at', 'id'))
        return best is not None and best.pk == obj.pk

    def validate_price(self, value):
        if value is None or value <= 0:
            raise serializers.ValidationError("Price must be greater than zero")
        return value

    def validate(self, attrs):
        attached = [
            field for field in QUOTED_MATERIAL_FIELDS.values()
            if attrs.get(field, getattr(self.instance, field, None) if self.instance else None)
        ]
        if len(attached) != 1:
            raise serializers.ValidationError("A price quote must belong to exactly one material")
        if self.instance:
            for field in QUOTED_MATERIAL_FIELDS.values():
                if field in attrs and attrs[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({field: "A price quote cannot be moved to another material"})
        supplier = attrs.get('supplier', getattr(self.instance, 'supplier', None))
        supplier_name = attrs.get('supplier_name', getattr(self.instance, 'supplier_name', ''))
        if not supplier and not (supplier_name or '').strip():
            raise serializers.ValidationError({'supplier': "Choose a supplier or enter a supplier name"})
        return attrs


class NestedPriceQuoteSerializer(PriceQuoteSerializer):
    """Quote entered together with its material; the material is set on save"""

    def validate(self, attrs):
        if not attrs.get('supplier') and not (attrs.get('supplier_name') or '').strip():
            raise serializers.ValidationError({'supplier': "Choose a supplier or enter a supplier name"})
        return attrs


class MaterialSerializer(serializers.ModelSerializer):
    """
    Base serializer for raw materials, local and foreign products.

    Quotes may be sent with a new material through context['quotes_data'];
    then the price is taken from the cheapest of them.
    """
    price_quotes = PriceQuoteSerializer(many=True, read_only=True)
    quote_count = serializers.SerializerMethodField()
    material_type = serializers.SerializerMethodField()
    lowest_price_supplier_name = serializers.CharField(source='lowest_price_supplier.name', read_only=True, default=None)

    material_fields = [
        'id', 'internal_id', 'material_type', 'name', 'category', 'unit', 'description', 'price',
        'supplier', 'lowest_price_supplier', 'lowest_price_supplier_name', 'is_active',
        'quote_count', 'price_quotes', 'created_at', 'updated_at'
    ]

    def get_quote_count(self, obj):
        return obj.price_quotes.count()

    def get_material_type(self, obj):
        return obj.MATERIAL_TYPE

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_category(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Category is required")
        return value

    def validate_unit(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Unit is required")
        return value

    def _quotes_data(self):
        return self.context.get('quotes_data') or []

    def validate(self, attrs):
        attrs = super().validate(attrs)
        has_quotes = bool(self._quotes_data()) or (
            self.instance is not None and self.instance.price_quotes.exists()
        )
        price = attrs.get('price', getattr(self.instance, 'price', None))
        if not has_quotes and (price is None or price <= Decimal('0')):
            raise serializers.ValidationError({'price': "Price must be greater than zero"})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        quotes_data = self._quotes_data()
        if quotes_data and not validated_data.get('price'):
            validated_data['price'] = Decimal('0.00')
        material = super().create(validated_data)

        if quotes_data:
            field = QUOTED_MATERIAL_FIELDS[material.MATERIAL_TYPE]
            for quote_data in quotes_data:
                quote_serializer = NestedPriceQuoteSerializer(data=quote_data)
                if not quote_serializer.is_valid():
                    raise serializers.ValidationError({'price_quotes': quote_serializer.errors})
                quote_serializer.save(**{field: material})
            material.refresh_from_db()
        return material


class RawMaterialSerializer(MaterialSerializer):
    class Meta:
        model = RawMaterial
        fields = MaterialSerializer.material_fields
        read_only_fields = ['internal_id', 'lowest_price_supplier', 'created_at', 'updated_at']


class LocalProductSerializer(MaterialSerializer):
    class Meta:
        model = LocalProduct
        fields = MaterialSerializer.material_fields
        read_only_fields = ['internal_id', 'lowest_price_supplier', 'created_at', 'updated_at']


class ForeignProductSerializer(MaterialSerializer):
    class Meta:
        model = ForeignProduct
        fields = MaterialSerializer.material_fields + ['country', 'currency']
        read_only_fields = ['internal_id', 'lowest_price_supplier', 'created_at', 'updated_at']


class ManufacturedProductComponentSerializer(serializers.ModelSerializer):
    total_price = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)
    material_available = serializers.SerializerMethodField()

    class Meta:
        model = ManufacturedProductComponent
        fields = [
            'id', 'product', 'material_type', 'raw_material', 'local_product', 'foreign_product',
            'material_internal_id', 'material_name', 'unit', 'category', 'quantity', 'unit_price',
            'total_price', 'material_available', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'product', 'material_type', 'raw_material', 'local_product', 'foreign_product',
            'material_internal_id', 'material_name', 'unit', 'category', 'created_at', 'updated_at'
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


class ManufacturedProductListSerializer(serializers.ModelSerializer):
    component_count = serializers.SerializerMethodField()

    class Meta:
        model = ManufacturedProduct
        fields = [
            'id', 'internal_id', 'title', 'reference_number', 'entity', 'submission_deadline',
            'estimated_value', 'status', 'unit', 'category', 'component_count', 'created_at', 'updated_at'
        ]

    def get_component_count(self, obj):
        count = getattr(obj, 'num_components', None)
        return obj.components.count() if count is None else count


class ManufacturedProductSerializer(serializers.ModelSerializer):
    components = ManufacturedProductComponentSerializer(many=True, read_only=True)
    total_cost = serializers.SerializerMethodField()

    class Meta:
        model = ManufacturedProduct
        fields = [
            'id', 'internal_id', 'title', 'reference_number', 'entity', 'submission_deadline',
            'estimated_value', 'description', 'status', 'unit', 'category',
            'components', 'total_cost', 'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'created_at', 'updated_at']

    def get_total_cost(self, obj):
        return obj.get_total_cost()

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title is required")
        return value

    def validate_estimated_value(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Estimated value cannot be negative")
        return value

    @transaction.atomic
    def create(self, validated_data):
        from .services import resolve_material, add_component, MaterialNotFound
        components_data = self.context.get('components_data') or []
        product = super().create(validated_data)
        for component_data in components_data:
            try:
                material = resolve_material(
                    component_data.get('material_type'),
                    component_data.get('material_id'),
                    component_data.get('material_internal_id'),
                )
                add_component(product, component_data.get('material_type'), material,
                              component_data.get('quantity', 1))
            except (MaterialNotFound, ValueError) as e:
                raise serializers.ValidationError({'components': str(e)})
        if components_data:
            product.refresh_from_db()
        return product
