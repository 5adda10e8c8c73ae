"""
Keep a tender's estimated value equal to the sum of its item totals
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from tenderdesk.trash.services import item_restored
from .models import Tender, TenderItem


def _recalculate_tender(tender_id):
    tender = Tender.objects.filter(pk=tender_id).first()
    if tender is not None:
        tender.recalculate_estimated_value()


@receiver(post_save, sender=TenderItem)
def tender_item_saved(sender, instance, raw=False, **kwargs):
    if raw:
        return
    _recalculate_tender(instance.tender_id)


@receiver(post_delete, sender=TenderItem)
def tender_item_deleted(sender, instance, **kwargs):
    _recalculate_tender(instance.tender_id)


@receiver(item_restored, sender=TenderItem)
def tender_item_restored(sender, instance, **kwargs):
    _recalculate_tender(instance.tender_id)


@receiver(item_restored, sender=Tender)
def tender_restored(sender, instance, **kwargs):
    instance.recalculate_estimated_value()
