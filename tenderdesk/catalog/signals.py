"""
Keep derived catalog values in sync:
- material price and cheapest supplier follow the price quotes
- manufactured product value follows its components
- cached settings are dropped when categories or units change
"""
import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from tenderdesk.trash.services import item_restored
from .cache import invalidate_settings_cache
from .models import (
    Category, Unit, PriceQuote, ManufacturedProduct, ManufacturedProductComponent,
    QUOTED_MATERIAL_FIELDS
)
from .pricing import refresh_lowest_price

logger = logging.getLogger(__name__)


def _refresh_quoted_material(quote):
    for field in QUOTED_MATERIAL_FIELDS.values():
        material_id = getattr(quote, f'{field}_id')
        if material_id:
            model = quote._meta.get_field(field).related_model
            material = model.objects.filter(pk=material_id).first()
            if material is not None:
                refresh_lowest_price(material)


def _recalculate_product(product_id):
    product = ManufacturedProduct.objects.filter(pk=product_id).first()
    if product is not None:
        product.recalculate_estimated_value()


@receiver(post_save, sender=PriceQuote)
def price_quote_saved(sender, instance, raw=False, **kwargs):
    if raw:
        return
    _refresh_quoted_material(instance)


@receiver(post_delete, sender=PriceQuote)
def price_quote_deleted(sender, instance, **kwargs):
    _refresh_quoted_material(instance)


@receiver(item_restored, sender=PriceQuote)
def price_quote_restored(sender, instance, **kwargs):
    _refresh_quoted_material(instance)


@receiver(post_save, sender=ManufacturedProductComponent)
def component_saved(sender, instance, raw=False, **kwargs):
    if raw:
        return
    _recalculate_product(instance.product_id)


@receiver(post_delete, sender=ManufacturedProductComponent)
def component_deleted(sender, instance, **kwargs):
    _recalculate_product(instance.product_id)


@receiver(item_restored, sender=ManufacturedProductComponent)
def component_restored(sender, instance, **kwargs):
    _recalculate_product(instance.product_id)


@receiver([post_save, post_delete], sender=Category)
@receiver([post_save, post_delete], sender=Unit)
def settings_changed(sender, **kwargs):
    invalidate_settings_cache()


@receiver(item_restored, sender=Category)
@receiver(item_restored, sender=Unit)
def settings_restored(sender, **kwargs):
    invalidate_settings_cache()
