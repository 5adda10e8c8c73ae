"""Default categories and units for a fresh installation"""
import logging

from django.db import transaction
from .models import Category, Unit

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    'Building materials',
    'Tools and equipment',
    'Electrical materials',
    'Plumbing materials',
    'Finishing materials',
]

DEFAULT_UNITS = [
    'Piece',
    'Meter',
    'Square meter',
    'Cubic meter',
    'Kilogram',
    'Liter',
    'Ton',
    'Box',
]


@transaction.atomic
def seed_default_settings():
    """
    Create the default categories and units.

    A table that already holds rows is left alone. Returns how many of each
    were created.
    """
    result = {'categories': 0, 'units': 0}
    if not Category.objects.exists():
        Category.objects.bulk_create([Category(name=name, is_default=True) for name in DEFAULT_CATEGORIES])
        result['categories'] = len(DEFAULT_CATEGORIES)
    if not Unit.objects.exists():
        Unit.objects.bulk_create([Unit(name=name, is_default=True) for name in DEFAULT_UNITS])
        result['units'] = len(DEFAULT_UNITS)
    if any(result.values()):
        # bulk_create skips post_save
        from .cache import invalidate_settings_cache
        invalidate_settings_cache()
        logger.info(f"Seeded {result['categories']} categories and {result['units']} units")
    return result
