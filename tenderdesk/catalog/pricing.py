"""
Lowest-price selection across the price quotes attached to a material
"""
import logging
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def quote_price(quote):
    """Price of a quote (model or dict) as Decimal; missing or unparsable counts as 0"""
    value = quote.get('price') if isinstance(quote, dict) else getattr(quote, 'price', None)
    if value in (None, ''):
        return ZERO
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO


def cheapest_quote(quotes):
    """
    Return the quote with the lowest price, or None for no quotes.
    On equal prices the first quote encountered wins.
    """
    best = None
    best_price = None
    for quote in quotes:
        price = quote_price(quote)
        if best is None or price < best_price:
            best = quote
            best_price = price
    return best


def _quotes_for(material):
    quotes = getattr(material, 'price_quotes', None)
    if quotes is None:
        return []
    return list(quotes.select_related('supplier').order_by('created_at', 'id'))


def material_unit_price(material):
    """Cheapest quote price when the material has quotes, its own price otherwise"""
    best = cheapest_quote(_quotes_for(material))
    if best is not None:
        return quote_price(best)
    if hasattr(material, 'get_total_cost') and material.components.exists():
        return material.get_total_cost()
    return material.price if hasattr(material, 'price') else getattr(material, 'estimated_value', ZERO)


def material_supplier_info(material):
    """Name and type of the cheapest supplier, or the material's stored supplier"""
    best = cheapest_quote(_quotes_for(material))
    if best is not None:
        return {
            'supplier_id': best.supplier_id,
            'supplier_name': best.supplier_name,
            'supplier_type': best.supplier_type,
            'quote_id': best.id,
        }
    return {'supplier_name': getattr(material, 'supplier', '') or ''}


def refresh_lowest_price(material):
    """
    Point the material's price and supplier at its cheapest quote.

    Without quotes the material keeps its last price. Returns True when
    anything changed.
    """
    best = cheapest_quote(_quotes_for(material))
    if best is None:
        return False

    price = quote_price(best)
    supplier_name = best.supplier_name or (best.supplier.name if best.supplier else '')
    changed = (
        material.price != price or
        material.supplier != supplier_name or
        material.lowest_price_supplier_id != best.supplier_id
    )
    if changed:
        material.price = price
        material.supplier = supplier_name
        material.lowest_price_supplier_id = best.supplier_id
        material.save(update_fields=['price', 'supplier', 'lowest_price_supplier', 'updated_at'])
        logger.info(f"Lowest price of {material.internal_id} is now {price} ({supplier_name or 'no supplier'})")
    return changed
