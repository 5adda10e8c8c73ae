"""
Cached categories and units.

Every form of the client reads these lists, so they are served from the
cache and invalidated by signals whenever a category or unit changes.
"""
from django.core.cache import cache
import logging

logger = logging.getLogger(__name__)

SETTINGS_CACHE_KEY = 'catalog:settings'
# 15 minutes (change infrequently)
SETTINGS_CACHE_TTL = 900


def build_settings_payload():
    from tenderdesk.core.utils import data_version
    from .models import Category, Unit
    from .serializers import CategorySerializer, UnitSerializer
    categories = Category.objects.all().order_by('name')
    units = Unit.objects.all().order_by('name')
    return {
        'categories': CategorySerializer(categories, many=True).data,
        'units': UnitSerializer(units, many=True).data,
        'version': f"{data_version(categories)};{data_version(units)}",
    }


def get_settings_payload():
    """Categories and units, from cache when possible"""
    payload = cache.get(SETTINGS_CACHE_KEY)
    if payload is None:
        payload = build_settings_payload()
        cache.set(SETTINGS_CACHE_KEY, payload, SETTINGS_CACHE_TTL)
        logger.debug("Settings cache rebuilt")
    return payload


def invalidate_settings_cache():
    cache.delete(SETTINGS_CACHE_KEY)
    logger.debug("Settings cache invalidated")
