"""Readable internal ids carried by every business entity"""
import secrets
import string
import time

ENTITY_PREFIXES = {
    # Products & materials
    'RAW_MATERIAL': 'rm',
    'LOCAL_PRODUCT': 'lp',
    'FOREIGN_PRODUCT': 'fp',
    'MANUFACTURED_PRODUCT': 'mp',

    # Business entities
    'TENDER': 'tdr',
    'CLIENT': 'cst',
    'LOCAL_SUPPLIER': 'ls',
    'FOREIGN_SUPPLIER': 'fs',
    'COMPANY': 'comp',
    'EMPLOYEE': 'emp',

    # Relations
    'PRICE_QUOTE': 'pq',
    'TENDER_ITEM': 'ti',

    # System
    'ACTIVITY': 'act',
    'TRASH_ITEM': 'trs',
}

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return ''.join(reversed(digits))


def generate_internal_id(entity_type: str, suffix: str = None) -> str:
    """
    Generate a unique internal id such as ``rm_lq2x8k3fa1b2c3``.

    The id is ``<prefix>_<base36 millisecond timestamp><6 random chars>``.
    An optional suffix is placed between the prefix and the timestamp.
    """
    if entity_type not in ENTITY_PREFIXES:
        raise ValueError(
            f"Invalid entity type: {entity_type}. Valid types: {', '.join(ENTITY_PREFIXES)}"
        )
    prefix = ENTITY_PREFIXES[entity_type]
    timestamp = to_base36(int(time.time() * 1000))
    random_part = ''.join(secrets.choice(_BASE36) for _ in range(6))
    if suffix:
        return f"{prefix}_{suffix}_{timestamp}{random_part}"
    return f"{prefix}_{timestamp}{random_part}"


def entity_type_for_id(internal_id: str):
    """Return the entity type an internal id was generated for, or None"""
    if not internal_id or '_' not in internal_id:
        return None
    prefix = internal_id.split('_', 1)[0].lower()
    for entity_type, entity_prefix in ENTITY_PREFIXES.items():
        if entity_prefix == prefix:
            return entity_type
    return None


class InternalIdMixin:
    """
    Model mixin filling ``internal_id`` on first save.

    Subclasses set ``ENTITY_TYPE`` or override ``get_entity_type()``.
    """
    ENTITY_TYPE = None

    def get_entity_type(self):
        return self.ENTITY_TYPE

    def save(self, *args, **kwargs):
        if not self.internal_id:
            self.internal_id = generate_internal_id(self.get_entity_type())
        super().save(*args, **kwargs)
