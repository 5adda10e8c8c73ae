"""
Keep employee login accounts in step with the employee record
"""
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver
from tenderdesk.trash.services import item_trashed, item_restored
from .models import Employee

logger = logging.getLogger(__name__)


def _set_user_active(employee, active):
    if not employee.user_id:
        return
    from tenderdesk.core.models import User
    updated = User.objects.filter(pk=employee.user_id).exclude(is_active=active).update(is_active=active)
    if updated:
        logger.info(f"{'Activated' if active else 'Deactivated'} login of employee {employee.internal_id}")


@receiver(post_save, sender=Employee)
def sync_employee_login(sender, instance, raw=False, **kwargs):
    """Inactive employees cannot log in"""
    if raw:
        return
    _set_user_active(instance, instance.status == 'active')


@receiver(item_trashed, sender=Employee)
def disable_trashed_employee_login(sender, instance, **kwargs):
    _set_user_active(instance, False)


@receiver(item_restored, sender=Employee)
def enable_restored_employee_login(sender, instance, **kwargs):
    _set_user_active(instance, instance.status == 'active')
