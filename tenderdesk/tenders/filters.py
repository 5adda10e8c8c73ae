import django_filters
from django.db.models import Q
from .models import Tender


class TenderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Tender.STATUS_CHOICES)
    client = django_filters.NumberFilter(field_name='client_id')
    entity = django_filters.CharFilter(field_name='entity', lookup_expr='icontains')
    deadline_from = django_filters.DateFilter(field_name='submission_deadline', lookup_expr='gte')
    deadline_to = django_filters.DateFilter(field_name='submission_deadline', lookup_expr='lte')
    has_items = django_filters.BooleanFilter(method='filter_has_items', label='Has items')

    class Meta:
        model = Tender
        fields = ['search', 'status', 'client', 'entity', 'deadline_from', 'deadline_to', 'has_items']

    def filter_search(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(
            Q(title__icontains=value) |
            Q(reference_number__icontains=value) |
            Q(entity__icontains=value) |
            Q(client__name__icontains=value) |
            Q(internal_id__iexact=value)
        )

    def filter_has_items(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(items__isnull=not value).distinct()
