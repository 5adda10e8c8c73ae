from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from tenderdesk.core.utils import log_activity, is_admin_user, paginate
from .models import TrashItem
from .serializers import TrashItemSerializer, TrashItemDetailSerializer
from .services import (
    TrashError, move_to_trash, restore, purge, empty_trash
)


def trash_and_respond(request, instance, model_name):
    """Move an entity to trash on DELETE and answer the request"""
    object_id = instance.pk
    try:
        trash_item = move_to_trash(instance, user=request.user)
    except TrashError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
    log_activity(
        request=request,
        action='trash',
        model_name=model_name,
        object_id=object_id,
        object_name=trash_item.display_name,
        description=f"Moved {trash_item.display_name} to trash",
        changes={'trash_item': trash_item.id, 'objects': trash_item.object_count},
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trash_list(request):
    """List trashed items, newest first"""
    queryset = TrashItem.objects.select_related('deleted_by').all()

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(original_model=model_filter)

    search = request.query_params.get('search', None)
    if search:
        queryset = queryset.filter(Q(display_name__icontains=search) | Q(internal_id__icontains=search))

    return paginate(request, queryset.order_by('-deleted_at', '-id'), TrashItemSerializer)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def trash_detail(request, pk):
    """Retrieve a trash entry or delete it permanently"""
    trash_item = get_object_or_404(TrashItem, pk=pk)

    if request.method == 'GET':
        serializer = TrashItemDetailSerializer(trash_item)
        return Response(serializer.data)

    log_activity(
        request=request,
        action='purge',
        model_name=trash_item.original_model,
        object_id=trash_item.original_id,
        object_name=trash_item.display_name,
        description=f"Permanently deleted {trash_item.display_name}",
    )
    purge(trash_item)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def trash_restore(request, pk):
    """Restore a trashed record to where it came from"""
    trash_item = get_object_or_404(TrashItem, pk=pk)
    display_name = trash_item.display_name
    original_model = trash_item.original_model
    original_id = trash_item.original_id

    try:
        restore(trash_item)
    except TrashError as e:
        return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

    log_activity(
        request=request,
        action='restore',
        model_name=original_model,
        object_id=original_id,
        object_name=display_name,
        description=f"Restored {display_name} from trash",
    )
    return Response({
        'restored': True,
        'original_model': original_model,
        'original_id': original_id,
        'display_name': display_name,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def trash_empty(request):
    """Permanently delete everything in the trash (Admin only)"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only Admin users can empty the trash'}, status=status.HTTP_403_FORBIDDEN)
    count = empty_trash()
    return Response({'deleted': count})
