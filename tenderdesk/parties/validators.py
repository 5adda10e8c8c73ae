"""
Contact details shared by clients and suppliers must not collide
"""
from django.db.models.functions import Lower, Trim
from .models import Client, Supplier

UNIQUE_PARTY_FIELDS = ('phone', 'email', 'tax_number')

FIELD_LABELS = {
    'phone': 'phone number',
    'email': 'email address',
    'tax_number': 'tax number',
}


def _party_sources():
    return [
        ('client', Client.objects.all()),
        ('local supplier', Supplier.objects.filter(supplier_type='local')),
        ('foreign supplier', Supplier.objects.filter(supplier_type='foreign')),
    ]


def find_party_conflict(field, value, exclude=None):
    """
    Return the label of the kind of record already using ``value`` for
    ``field`` (compared trimmed and case-insensitive), or None.

    ``exclude`` is the instance being edited.
    """
    normalized = (value or '').strip().lower()
    if not normalized:
        return None
    for label, queryset in _party_sources():
        if exclude is not None and exclude.pk and queryset.model is exclude.__class__:
            queryset = queryset.exclude(pk=exclude.pk)
        match = queryset.annotate(_normalized=Lower(Trim(field))).filter(_normalized=normalized)
        if match.exists():
            return label
    return None


def validate_unique_party_fields(data, exclude=None):
    """Check phone, email and tax number. Returns {field: message} for every collision."""
    errors = {}
    for field in UNIQUE_PARTY_FIELDS:
        conflict = find_party_conflict(field, data.get(field), exclude=exclude)
        if conflict:
            errors[field] = f"This {FIELD_LABELS[field]} is already used by a {conflict}"
    return errors
