"""
Material lookups and snapshots shared by tender items and product components
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import F
from .models import MATERIAL_MODELS, QUOTED_MATERIAL_FIELDS, ManufacturedProductComponent
from .pricing import material_unit_price

logger = logging.getLogger(__name__)


class MaterialNotFound(Exception):
    pass


def resolve_material(material_type, material_id=None, internal_id=None):
    """Look a material up by type and primary key or internal id"""
    model = MATERIAL_MODELS.get(material_type)
    if model is None:
        raise MaterialNotFound(f"Unknown material type: {material_type}")
    lookup = {'pk': material_id} if material_id else {'internal_id': internal_id}
    material = model.objects.filter(**lookup).first()
    if material is None:
        raise MaterialNotFound(f"{model._meta.verbose_name.title()} {material_id or internal_id} does not exist")
    return material


def material_snapshot(material):
    """Values copied onto a line item when a material is added"""
    return {
        'material_internal_id': material.internal_id,
        'material_name': getattr(material, 'name', '') or str(material),
        'unit': getattr(material, 'unit', '') or '',
        'category': getattr(material, 'category', '') or '',
        'unit_price': material_unit_price(material),
    }


def material_link(material_type, material):
    """Foreign key kwargs pointing a line item at ``material``"""
    field = QUOTED_MATERIAL_FIELDS.get(material_type)
    if field is None:
        field = 'manufactured_product'
    return {field: material}


def add_component(product, material_type, material, quantity):
    """
    Add a material to a manufactured product.

    A material already present is merged: its quantity grows by ``quantity``
    and no new line is created. Returns (component, created).
    """
    try:
        quantity = Decimal(str(quantity))
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid quantity: {quantity}")
    if quantity <= 0:
        raise ValueError("Quantity must be greater than zero")
    if material_type not in QUOTED_MATERIAL_FIELDS:
        raise ValueError(f"{material_type} cannot be a component")

    for attempt in range(2):
        try:
            with transaction.atomic():
                return _add_or_merge_component(product, material_type, material, quantity)
        except IntegrityError:
            # Lost a race for the first line of this material; merge into it
            if attempt:
                raise
            logger.info(f"Concurrent add of {material.internal_id} to {product.internal_id}, retrying")


def _add_or_merge_component(product, material_type, material, quantity):
    existing = (
        ManufacturedProductComponent.objects.select_for_update()
        .filter(product=product, material_type=material_type, material_internal_id=material.internal_id)
        .first()
    )
    if existing:
        ManufacturedProductComponent.objects.filter(pk=existing.pk).update(quantity=F('quantity') + quantity)
        existing.refresh_from_db()
        existing.save(update_fields=['updated_at'])
        logger.info(f"Merged {material.internal_id} into {product.internal_id} (+{quantity})")
        return existing, False

    component = ManufacturedProductComponent.objects.create(
        product=product,
        material_type=material_type,
        quantity=quantity,
        **material_snapshot(material),
        **material_link(material_type, material),
    )
    return component, True
