"""Utility functions for activity logging, permissions and pagination"""
import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.paginator import Paginator
from django.db.models import Count, Max
from django.utils import timezone
from rest_framework.permissions import BasePermission
from rest_framework.response import Response

from .models import ActivityLog

User = get_user_model()

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def log_activity(request=None, action=None, model_name=None, object_id=None,
                 object_name=None, description='', changes=None, user=None):
    """
    Create an activity log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, trash, restore, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        object_name: Human-readable name of the object (e.g., tender title)
        description: Free text shown in the activity timeline
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)

    A log with the same user, action, model and object inside
    ACTIVITY_DEDUP_SECONDS is skipped. Failures are logged, never raised.
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user
        if audit_user is not None and not audit_user.is_authenticated:
            audit_user = None

        if not action or not model_name or object_id in (None, ''):
            logger.warning(
                f"Activity log skipped: missing required fields "
                f"(action={action}, model_name={model_name}, object_id={object_id})"
            )
            return None

        window = getattr(settings, 'ACTIVITY_DEDUP_SECONDS', 5)
        if window:
            recent = ActivityLog.objects.filter(
                user=audit_user,
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                created_at__gte=timezone.now() - timedelta(seconds=window),
            )
            if recent.exists():
                logger.debug(f"Activity log rate limited: {action} {model_name}#{object_id}")
                return None

        return ActivityLog.objects.create(
            user=audit_user,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=(object_name or '')[:255] or None,
            description=description or '',
            changes=changes or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Don't fail the main operation if activity logging fails
        logger.error(f"Failed to create activity log: {str(e)}")
        return None


def is_admin_user(user):
    """
    Check if user is an admin user.
    Returns True if:
    - User is superuser/staff, OR
    - User is in 'Admin' group, OR
    - User's employee profile has the admin role
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser or user.is_staff:
        return True
    if user.groups.filter(name='Admin').exists():
        return True
    profile = getattr(user, 'employee_profile', None)
    return bool(profile and profile.role == 'admin')


class IsAdmin(BasePermission):
    """Allows access only to admin users (see is_admin_user)"""
    message = "Only Admin users can perform this action"

    def has_permission(self, request, view):
        return is_admin_user(request.user)


def paginate(request, queryset, serializer_class, default_limit=25, context=None):
    """Paginate a queryset with ?page=&limit= and return the standard envelope"""
    try:
        page = max(int(request.query_params.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(max(int(request.query_params.get('limit', default_limit)), 1), 500)
    except (TypeError, ValueError):
        limit = default_limit

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def data_version(queryset):
    """
    Version stamp of a table for change polling.

    Built from the newest updated_at, the row count and the model's trash
    entries, so edits, deletions and restores all change it.
    """
    from tenderdesk.trash.models import TrashItem
    latest = queryset.order_by('-updated_at').values_list('updated_at', flat=True).first()
    trashed = TrashItem.objects.filter(
        original_model=queryset.model._meta.label_lower
    ).aggregate(count=Count('id'), latest=Max('deleted_at'))
    return '|'.join([
        latest.isoformat() if latest else '',
        str(queryset.count()),
        str(trashed['count']),
        trashed['latest'].isoformat() if trashed['latest'] else '',
    ])


def data_version_header(response, queryset):
    """Stamp a response with the table's data version so pollers can detect changes"""
    response['X-Data-Version'] = data_version(queryset)
    return response
