import django_filters
from django.db.models import Q
from .models import RawMaterial, LocalProduct, ForeignProduct, ManufacturedProduct


class MaterialFilter(django_filters.FilterSet):
    """Filters shared by raw materials, local products and foreign products"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    unit = django_filters.CharFilter(field_name='unit', lookup_expr='iexact')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')
    lowest_price_supplier = django_filters.NumberFilter(field_name='lowest_price_supplier_id')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')
    active = django_filters.BooleanFilter(field_name='is_active')
    has_quotes = django_filters.BooleanFilter(method='filter_has_quotes', label='Has price quotes')

    class Meta:
        model = RawMaterial
        fields = ['search', 'category', 'unit', 'supplier', 'lowest_price_supplier',
                  'min_price', 'max_price', 'active', 'has_quotes']

    def filter_search(self, queryset, name, value):
        """Every word must appear in the name, description, category or supplier"""
        value = (value or '').strip()
        if not value:
            return queryset
        exact = queryset.filter(internal_id__iexact=value)
        if exact.exists():
            return exact
        for word in value.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(description__icontains=word) |
                Q(category__icontains=word) |
                Q(supplier__icontains=word)
            )
        return queryset

    def filter_has_quotes(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(price_quotes__isnull=not value).distinct()


class RawMaterialFilter(MaterialFilter):
    class Meta(MaterialFilter.Meta):
        model = RawMaterial


class LocalProductFilter(MaterialFilter):
    class Meta(MaterialFilter.Meta):
        model = LocalProduct


class ForeignProductFilter(MaterialFilter):
    country = django_filters.CharFilter(field_name='country', lookup_expr='iexact')
    currency = django_filters.CharFilter(field_name='currency', lookup_expr='iexact')

    class Meta(MaterialFilter.Meta):
        model = ForeignProduct
        fields = MaterialFilter.Meta.fields + ['country', 'currency']


class ManufacturedProductFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=ManufacturedProduct.STATUS_CHOICES)
    deadline_from = django_filters.DateFilter(field_name='submission_deadline', lookup_expr='gte')
    deadline_to = django_filters.DateFilter(field_name='submission_deadline', lookup_expr='lte')

    class Meta:
        model = ManufacturedProduct
        fields = ['search', 'status', 'deadline_from', 'deadline_to']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(reference_number__icontains=value) |
            Q(entity__icontains=value) |
            Q(internal_id__iexact=value)
        )
