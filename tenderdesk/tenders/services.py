"""
Tender line items: adding materials, refreshing prices and summaries.
Price study and result statistics.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import IntegrityError, transaction
from django.db.models import F
from tenderdesk.catalog.pricing import material_unit_price, material_supplier_info
from tenderdesk.catalog.services import material_snapshot, material_link
from .models import CENTS, TenderItem, TenderStudy

logger = logging.getLogger(__name__)


class DuplicateItem(Exception):
    """The material is already part of the tender"""


def _parse_quantity(quantity):
    try:
        quantity = Decimal(str(quantity))
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid quantity: {quantity}")
    if quantity <= 0:
        raise ValueError("Quantity must be greater than zero")
    return quantity


def add_material(tender, material_type, material, quantity, merge=True):
    """
    Add a material to a tender.

    When the tender already has an item for the same material type and
    internal id, its quantity grows by ``quantity`` instead of creating a
    second item. With ``merge=False`` that case raises DuplicateItem.
    Returns (item, created).
    """
    quantity = _parse_quantity(quantity)
    if material_type not in TenderItem.MATERIAL_FIELDS:
        raise ValueError(f"Unknown material type: {material_type}")

    # A concurrent first add of the same material wins the unique constraint;
    # the second attempt then finds its row and merges into it.
    for attempt in range(2):
        try:
            with transaction.atomic():
                return _add_or_merge(tender, material_type, material, quantity, merge)
        except IntegrityError:
            if attempt:
                raise
            logger.info(f"Concurrent add of {material.internal_id} to {tender.internal_id}, retrying")


def _add_or_merge(tender, material_type, material, quantity, merge):
    existing = (
        TenderItem.objects.select_for_update()
        .filter(tender=tender, material_type=material_type, material_internal_id=material.internal_id)
        .first()
    )
    if existing:
        if not merge:
            raise DuplicateItem(f"{existing.material_name} is already in this tender")
        TenderItem.objects.filter(pk=existing.pk).update(quantity=F('quantity') + quantity)
        existing.refresh_from_db()
        # save() recomputes total_price from the merged quantity
        existing.save(update_fields=['quantity', 'updated_at'])
        logger.info(f"Merged {material.internal_id} into {tender.internal_id} (+{quantity})")
        return existing, False

    item = TenderItem.objects.create(
        tender=tender,
        material_type=material_type,
        quantity=quantity,
        supplier_info=material_supplier_info(material),
        **material_snapshot(material),
        **material_link(material_type, material),
    )
    return item, True


def refresh_pricing(tender):
    """
    Re-read the current price of every item's material.

    Items whose material no longer exists keep their snapshot. Returns the
    number of items that changed.
    """
    updated = 0
    items = tender.items.select_related('raw_material', 'local_product', 'foreign_product', 'manufactured_product')
    with transaction.atomic():
        for item in items:
            material = item.material
            if material is None:
                continue
            unit_price = material_unit_price(material)
            supplier_info = material_supplier_info(material)
            if unit_price != item.unit_price or supplier_info != item.supplier_info:
                item.unit_price = unit_price
                item.supplier_info = supplier_info
                item.save(update_fields=['unit_price', 'supplier_info', 'updated_at'])
                updated += 1
    if updated:
        logger.info(f"Refreshed {updated} item prices on {tender.internal_id}")
    return updated


def tender_summary(tender):
    items = list(tender.items.all())
    by_type = {material_type: 0 for material_type, _ in TenderItem.MATERIAL_TYPE_CHOICES}
    total_price = Decimal('0.00')
    total_quantity = Decimal('0')
    for item in items:
        by_type[item.material_type] = by_type.get(item.material_type, 0) + 1
        total_price += item.total_price
        total_quantity += item.quantity
    return {
        'tender_id': tender.id,
        'item_count': len(items),
        'total_price': total_price,
        'total_quantity': total_quantity,
        'by_material_type': by_type,
    }


def _item_profit(base, entry):
    try:
        value = Decimal(str(entry.get('value') or 0))
    except InvalidOperation:
        value = Decimal('0')
    if entry.get('type') == 'percentage':
        return base * value / 100
    return value


def study_pricing(tender):
    """
    Our offer for a tender: the item costs plus the profit of its price study.

    Without a study there is no profit and the final price is the items total.
    Each item line carries its share of the profit and its sale price.
    """
    items = list(tender.items.all())
    base_cost = sum((item.total_price for item in items), Decimal('0.00'))
    study = TenderStudy.objects.filter(tender=tender).first()

    item_profits = {}
    if study is None:
        method = None
        total_profit = Decimal('0')
    elif study.per_item:
        method = 'per_item'
        for item in items:
            item_profits[item.pk] = _item_profit(item.total_price, study.item_profits.get(item.internal_id) or {})
        total_profit = sum(item_profits.values(), Decimal('0'))
    else:
        method = 'overall'
        total_profit = study.fixed_profit + base_cost * study.percentage_profit / 100
        for item in items:
            share = item.total_price / base_cost if base_cost > 0 else Decimal('0')
            item_profits[item.pk] = total_profit * share

    total_profit = total_profit.quantize(CENTS, rounding=ROUND_HALF_UP)
    margin = Decimal('0.00')
    if base_cost > 0:
        margin = (total_profit / base_cost * 100).quantize(CENTS, rounding=ROUND_HALF_UP)

    lines = []
    for item in items:
        profit = item_profits.get(item.pk, Decimal('0')).quantize(CENTS, rounding=ROUND_HALF_UP)
        lines.append({
            'item_id': item.pk,
            'internal_id': item.internal_id,
            'material_name': item.material_name,
            'base_price': item.total_price,
            'profit': profit,
            'sale_price': item.total_price + profit,
        })

    return {
        'tender_id': tender.id,
        'has_study': study is not None,
        'method': method,
        'base_cost': base_cost,
        'total_profit': total_profit,
        'profit_margin': margin,
        'final_price': base_cost + total_profit,
        'items': lines,
    }


def result_stats(tender):
    """
    Where our offer stands against the competitors' prices.

    Our price is the final price of the price study. The lowest, highest and
    average prices cover every bid, ours included.
    """
    pricing = study_pricing(tender)
    our_price = pricing['final_price']
    competitor_prices = [entry.price for entry in tender.competitor_prices.all() if entry.price > 0]
    all_prices = [price for price in [our_price] + competitor_prices if price > 0]

    rank = None
    if our_price > 0:
        rank = 1 + sum(1 for price in competitor_prices if price < our_price)
    average = None
    if all_prices:
        average = (sum(all_prices, Decimal('0')) / len(all_prices)).quantize(CENTS, rounding=ROUND_HALF_UP)

    return {
        'tender_id': tender.id,
        'status': tender.status,
        'items_total': pricing['base_cost'],
        'our_price': our_price,
        'awarded_value': tender.awarded_value,
        'competitor_count': len(competitor_prices),
        'total_bids': len(all_prices),
        'lowest_competitor_price': min(competitor_prices) if competitor_prices else None,
        'highest_competitor_price': max(competitor_prices) if competitor_prices else None,
        'lowest_price': min(all_prices) if all_prices else None,
        'highest_price': max(all_prices) if all_prices else None,
        'average_price': average,
        'our_rank': rank,
        'is_lowest': bool(rank == 1),
    }
