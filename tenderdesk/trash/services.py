"""
Trash: move records out of their tables into a restorable payload.

Trashing collects the record and everything its deletion would cascade to
(price quotes of a product, items of a tender, ...), serializes them with
Django's serialization framework and deletes them. Restoring saves the same
objects back with their original primary keys.
"""
import json
import logging

from django.apps import apps
from django.contrib.admin.utils import NestedObjects
from django.core import serializers
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.db import IntegrityError, models, router, transaction
from django.db.models import Q
from django.dispatch import Signal

from tenderdesk.core.models import Document
from .models import TrashItem

logger = logging.getLogger(__name__)

# sender=model class, kwargs: instance, trash_item
item_trashed = Signal()
item_restored = Signal()

DISPLAY_NAME_FIELDS = ('title', 'name', 'full_name', 'file_name', 'supplier_name')


class TrashError(Exception):
    """Base error for trash operations"""


class AlreadyInTrash(TrashError):
    pass


class TrashProtected(TrashError):
    pass


class RestoreConflict(TrashError):
    pass


def display_name_for(instance):
    for field in DISPLAY_NAME_FIELDS:
        value = getattr(instance, field, None)
        if value:
            return str(value)[:255]
    return 'Unnamed item'


def _model_label(model):
    return model._meta.label_lower


def _restore_order(models_in_payload):
    """Order models so every model comes after the models its foreign keys point to"""
    remaining = list(models_in_payload)
    ordered = []
    while remaining:
        progressed = False
        for model in list(remaining):
            targets = {
                field.related_model
                for field in model._meta.concrete_fields
                if field.is_relation and field.related_model is not model
            }
            if not targets.intersection(remaining):
                ordered.append(model)
                remaining.remove(model)
                progressed = True
        if not progressed:
            # Cycle between models: keep the remaining ones in collection order
            ordered.extend(remaining)
            break
    return ordered


def collect_for_trash(instance):
    """Return the instance plus everything its deletion cascades to, parents first"""
    using = router.db_for_write(instance.__class__, instance=instance)
    collector = NestedObjects(using=using)
    collector.collect([instance])
    if collector.protected:
        names = ', '.join(sorted({str(obj) for obj in collector.protected})[:5])
        raise TrashProtected(f"Cannot move to trash, still referenced by: {names}")

    by_model = {}
    for model, instances in collector.data.items():
        by_model.setdefault(model, []).extend(sorted(instances, key=lambda obj: obj.pk))

    objects = []
    for model in _restore_order(by_model.keys()):
        objects.extend(by_model[model])
    return objects


def owned_documents(objects):
    """Documents filed under any of `objects` (they refer to their owner by type and id)"""
    query = Q()
    for obj in objects:
        owner_type = Document.owner_type_for(obj.__class__)
        if owner_type:
            query |= Q(owner_type=owner_type, owner_id=obj.pk)
    if not query:
        return []
    return list(Document.objects.filter(query).order_by('pk'))


def detached_references(objects):
    """
    List the rows outside `objects` whose nullable reference to one of them
    the deletion will clear (SET_NULL), so restore can relink them.
    """
    collected = {(_model_label(obj.__class__), obj.pk) for obj in objects}
    detached = []
    for obj in objects:
        for rel in obj._meta.related_objects:
            if rel.many_to_many or rel.on_delete is not models.SET_NULL:
                continue
            related_model = rel.related_model
            label = _model_label(related_model)
            ids = [
                pk for pk in related_model._base_manager.filter(
                    **{rel.field.attname: obj.pk}
                ).values_list('pk', flat=True)
                if (label, pk) not in collected
            ]
            if ids:
                detached.append({
                    'model': label,
                    'field': rel.field.attname,
                    'target': obj.pk,
                    'ids': ids,
                })
    return detached


def move_to_trash(instance, user=None):
    """
    Move a record (and its cascade) to the trash.

    Returns the created TrashItem. Raises AlreadyInTrash when the same record
    is already trashed and TrashProtected when a protected relation blocks
    deletion.
    """
    label = _model_label(instance.__class__)
    original_id = str(instance.pk)
    if TrashItem.objects.filter(original_model=label, original_id=original_id).exists():
        raise AlreadyInTrash(f"{display_name_for(instance)} is already in the trash")

    context = instance.trash_context() if hasattr(instance, 'trash_context') else {}

    with transaction.atomic():
        objects = collect_for_trash(instance)
        documents = owned_documents(objects)
        objects.extend(documents)
        payload = json.loads(serializers.serialize('json', objects))
        detached = detached_references(objects)
        trash_item = TrashItem.objects.create(
            original_model=label,
            original_id=original_id,
            display_name=display_name_for(instance),
            payload=payload,
            object_count=len(payload),
            context=context or {},
            detached=detached,
            deleted_by=user if user is not None and user.is_authenticated else None,
        )
        instance.delete()
        if documents:
            # Stored files stay until the entry is purged
            Document.objects.filter(pk__in=[document.pk for document in documents]).delete()

    logger.info(f"Moved {label}#{original_id} to trash ({len(payload)} objects)")
    item_trashed.send(sender=instance.__class__, instance=instance, trash_item=trash_item)
    return trash_item


def _check_references(obj, restoring):
    """Null out dangling SET_NULL references, fail on missing required parents"""
    for field in obj._meta.concrete_fields:
        if not isinstance(field, models.ForeignKey):
            continue
        value = getattr(obj, field.attname)
        if value is None:
            continue
        target = field.related_model
        if (_model_label(target), str(value)) in restoring:
            continue
        if target._base_manager.filter(pk=value).exists():
            continue
        if field.null and field.remote_field.on_delete is models.SET_NULL:
            setattr(obj, field.attname, None)
            continue
        raise RestoreConflict(
            f"Cannot restore {display_name_for(obj)}: the {target._meta.verbose_name} "
            f"it belongs to no longer exists"
        )


def _check_document_owner(obj, restoring):
    if not isinstance(obj, Document):
        return
    owner_model = Document.owner_model_for(obj.owner_type)
    if (_model_label(owner_model), str(obj.owner_id)) in restoring:
        return
    if not owner_model._base_manager.filter(pk=obj.owner_id).exists():
        raise RestoreConflict(
            f"Cannot restore {display_name_for(obj)}: the {owner_model._meta.verbose_name} "
            f"it belongs to no longer exists"
        )


def _relink(detached):
    for entry in detached or []:
        try:
            model = apps.get_model(entry['model'])
        except LookupError:
            continue
        field = entry['field']
        model._base_manager.filter(
            pk__in=entry['ids'], **{f'{field}__isnull': True}
        ).update(**{field: entry['target']})


def restore(trash_item):
    """
    Put the trashed objects back with their original keys.

    Raises RestoreConflict when a record with the same key exists, when the
    parent record is gone, or when a uniqueness rule would be broken.
    Returns the restored root instance.
    """
    deserialized = list(serializers.deserialize('python', trash_item.payload, ignorenonexistent=True))
    restoring = {
        (_model_label(item.object.__class__), str(item.object.pk))
        for item in deserialized
    }

    for item in deserialized:
        obj = item.object
        if obj.__class__._base_manager.filter(pk=obj.pk).exists():
            raise RestoreConflict(f"{display_name_for(obj)} already exists, it cannot be restored twice")
        _check_references(obj, restoring)
        _check_document_owner(obj, restoring)
        try:
            obj.validate_unique()
            obj.validate_constraints()
        except ValidationError as e:
            raise RestoreConflict(f"Cannot restore {display_name_for(obj)}: {'; '.join(e.messages)}")

    try:
        with transaction.atomic():
            for item in deserialized:
                item.save()
            _relink(trash_item.detached)
            trash_item.delete()
    except IntegrityError as e:
        raise RestoreConflict(f"Cannot restore {trash_item.display_name}: {e}")

    root = None
    for item in deserialized:
        obj = item.object
        if _model_label(obj.__class__) == trash_item.original_model and str(obj.pk) == trash_item.original_id:
            root = obj
    for item in deserialized:
        item_restored.send(sender=item.object.__class__, instance=item.object, trash_item=trash_item)

    logger.info(f"Restored {trash_item.original_model}#{trash_item.original_id} from trash")
    return root


def _delete_stored_files(trash_item):
    for entry in trash_item.payload:
        try:
            model = apps.get_model(entry['model'])
        except (LookupError, KeyError):
            continue
        for field in model._meta.concrete_fields:
            if isinstance(field, models.FileField):
                name = entry.get('fields', {}).get(field.name)
                if name and default_storage.exists(name):
                    default_storage.delete(name)


def purge(trash_item):
    """Permanently delete a trash entry and any files its records stored"""
    _delete_stored_files(trash_item)
    trash_item.delete()
    logger.info(f"Purged {trash_item.original_model}#{trash_item.original_id} from trash")


def empty_trash():
    """Permanently delete everything in the trash. Returns the number of entries removed."""
    count = 0
    for trash_item in TrashItem.objects.all():
        purge(trash_item)
        count += 1
    return count
