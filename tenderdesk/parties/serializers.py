from rest_framework import serializers
from .models import Client, Supplier
from .validators import validate_unique_party_fields


class PartyUniquenessMixin:
    """Reject contact details another client or supplier already uses"""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        for field in ('name', 'phone', 'email', 'tax_number', 'contact_person'):
            if isinstance(attrs.get(field), str):
                attrs[field] = attrs[field].strip()
        errors = validate_unique_party_fields(attrs, exclude=self.instance)
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class ClientSerializer(PartyUniquenessMixin, serializers.ModelSerializer):
    tender_count = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'internal_id', 'name', 'email', 'phone', 'address', 'tax_number',
            'contact_person', 'notes', 'is_active', 'tender_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'created_at', 'updated_at']

    def get_tender_count(self, obj):
        return obj.tenders.count()


class SupplierSerializer(PartyUniquenessMixin, serializers.ModelSerializer):
    quote_count = serializers.SerializerMethodField()

    class Meta:
        model = Supplier
        fields = [
            'id', 'internal_id', 'supplier_type', 'name', 'email', 'phone', 'country', 'address',
            'tax_number', 'contact_person', 'notes', 'is_active', 'quote_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['internal_id', 'created_at', 'updated_at']

    def get_quote_count(self, obj):
        return obj.price_quotes.count()

    def validate(self, attrs):
        attrs = super().validate(attrs)
        supplier_type = attrs.get('supplier_type', getattr(self.instance, 'supplier_type', 'local'))
        if self.instance and 'supplier_type' in attrs and attrs['supplier_type'] != self.instance.supplier_type:
            raise serializers.ValidationError({'supplier_type': "Supplier type cannot be changed"})
        if supplier_type == 'foreign':
            errors = {}
            name = attrs.get('name', getattr(self.instance, 'name', ''))
            if len(name or '') < 2:
                errors['name'] = "Supplier name must be at least 2 characters"
            phone = attrs.get('phone', getattr(self.instance, 'phone', ''))
            if phone and len(phone) < 10:
                errors['phone'] = "Phone number must be at least 10 characters"
            if errors:
                raise serializers.ValidationError(errors)
        return attrs
