from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count
from django.shortcuts import get_object_or_404
from tenderdesk.catalog.services import resolve_material, MaterialNotFound
from tenderdesk.core.utils import log_activity, paginate, data_version_header
from tenderdesk.trash.views import trash_and_respond
from .filters import TenderFilter
from .models import Tender, TenderItem, CompetitorPrice, TenderStudy
from .serializers import (
    TenderSerializer, TenderListSerializer, TenderItemSerializer,
    CompetitorPriceSerializer, TenderStatusSerializer, TenderStudySerializer
)
from .services import (
    add_material, refresh_pricing, tender_summary, study_pricing, result_stats, DuplicateItem
)

TENDER_ORDERINGS = (
    'submission_deadline', '-submission_deadline', 'created_at', '-created_at',
    'estimated_value', '-estimated_value', 'title', '-title'
)


# Tender views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tender_list_create(request):
    """List tenders with filters or create a tender (optionally with items)"""
    if request.method == 'GET':
        queryset = Tender.objects.select_related('client').annotate(num_items=Count('items'))
        filterset = TenderFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        ordering = request.query_params.get('ordering', '-created_at')
        if ordering not in TENDER_ORDERINGS:
            ordering = '-created_at'
        response = paginate(request, filterset.qs.order_by(ordering, '-id'), TenderListSerializer)
        return data_version_header(response, Tender.objects.all())

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    items_data = data.pop('items', None) or []
    serializer = TenderSerializer(data=data, context={'items_data': items_data})
    if serializer.is_valid():
        tender = serializer.save(created_by=request.user)
        log_activity(request=request, action='create', model_name='tender', object_id=tender.id,
                     object_name=tender.title, description=f"Created tender {tender.title}",
                     changes={'items': len(items_data)} if items_data else None)
        return Response(TenderSerializer(tender).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tender_detail(request, pk):
    """Retrieve, update or trash a tender"""
    tender = get_object_or_404(Tender.objects.select_related('client', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(TenderSerializer(tender).data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
        data.pop('items', None)
        serializer = TenderSerializer(tender, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='tender', object_id=tender.id,
                         object_name=tender.title, description=f"Updated tender {tender.title}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, tender, 'tender')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tender_by_internal_id(request, internal_id):
    tender = get_object_or_404(Tender, internal_id=internal_id)
    return Response(TenderSerializer(tender).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tender_change_status(request, pk):
    """Move a tender to another status, recording the result when it is decided"""
    tender = get_object_or_404(Tender, pk=pk)
    serializer = TenderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = tender.status
    tender.status = serializer.validated_data['status']
    update_fields = ['status', 'updated_at']
    if tender.status != 'won':
        tender.awarded_value = None
        update_fields.append('awarded_value')
    elif 'awarded_value' in serializer.validated_data:
        tender.awarded_value = serializer.validated_data['awarded_value']
        update_fields.append('awarded_value')
    if 'result_notes' in serializer.validated_data:
        tender.result_notes = serializer.validated_data['result_notes']
        update_fields.append('result_notes')
    tender.save(update_fields=update_fields)

    log_activity(request=request, action='tender_status', model_name='tender', object_id=tender.id,
                 object_name=tender.title,
                 description=f"Changed status of {tender.title} from {old_status} to {tender.status}",
                 changes={'status': [old_status, tender.status]})
    return Response(TenderSerializer(tender).data)


# Tender item views
def _resolve_from_request(request):
    material_type = request.data.get('material_type')
    material = resolve_material(
        material_type,
        request.data.get('material_id'),
        request.data.get('material_internal_id'),
    )
    return material_type, material


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tender_items(request, pk):
    """List items or add a material (merged into an existing item)"""
    tender = get_object_or_404(Tender, pk=pk)

    if request.method == 'GET':
        return Response(TenderItemSerializer(tender.items.all(), many=True).data)

    try:
        material_type, material = _resolve_from_request(request)
        item, created = add_material(tender, material_type, material, request.data.get('quantity', 1))
    except MaterialNotFound as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(request=request, action='tender_item_add', model_name='tender', object_id=tender.id,
                 object_name=tender.title,
                 description=f"{'Added' if created else 'Increased'} {item.material_name} in {tender.title}",
                 changes={'item': item.id, 'quantity': str(item.quantity), 'merged': not created})
    return Response(
        TenderItemSerializer(item).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tender_item_create(request, pk):
    """Add a material as a new item; a material already in the tender is rejected"""
    tender = get_object_or_404(Tender, pk=pk)
    try:
        material_type, material = _resolve_from_request(request)
        item, _ = add_material(tender, material_type, material, request.data.get('quantity', 1), merge=False)
    except MaterialNotFound as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except DuplicateItem as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(request=request, action='tender_item_add', model_name='tender', object_id=tender.id,
                 object_name=tender.title, description=f"Added {item.material_name} to {tender.title}",
                 changes={'item': item.id, 'quantity': str(item.quantity)})
    return Response(TenderItemSerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def tender_item_detail(request, pk, item_pk):
    """Change quantity, unit price or notes of an item, or trash it"""
    item = get_object_or_404(TenderItem.objects.select_related('tender'), pk=item_pk, tender_id=pk)

    if request.method == 'GET':
        return Response(TenderItemSerializer(item).data)
    elif request.method == 'PATCH':
        serializer = TenderItemSerializer(item, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='tender_item', object_id=item.id,
                         object_name=item.material_name,
                         description=f"Updated {item.material_name} in {item.tender.title}",
                         changes={'quantity': str(item.quantity), 'unit_price': str(item.unit_price)})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        tender_title = item.tender.title
        response = trash_and_respond(request, item, 'tender_item')
        if response.status_code == status.HTTP_204_NO_CONTENT:
            log_activity(request=request, action='tender_item_remove', model_name='tender', object_id=item.tender_id,
                         object_name=tender_title,
                         description=f"Removed {item.material_name} from {tender_title}")
        return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def tender_refresh_pricing(request, pk):
    """Re-read the current material prices of every item"""
    tender = get_object_or_404(Tender, pk=pk)
    updated = refresh_pricing(tender)
    tender.refresh_from_db()
    if updated:
        log_activity(request=request, action='update', model_name='tender', object_id=tender.id,
                     object_name=tender.title, description=f"Refreshed prices of {updated} items in {tender.title}",
                     changes={'updated_items': updated})
    return Response({'updated': updated, 'tender': TenderSerializer(tender).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tender_summary_view(request, pk):
    tender = get_object_or_404(Tender, pk=pk)
    return Response(tender_summary(tender))


# Price study views
@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def tender_study(request, pk):
    """
    Profit study of a tender and the resulting final price.

    PUT creates or replaces the study; DELETE moves it to trash.
    """
    tender = get_object_or_404(Tender, pk=pk)
    study = TenderStudy.objects.filter(tender=tender).first()

    if request.method == 'DELETE':
        if study is None:
            return Response({'error': 'This tender has no price study'}, status=status.HTTP_404_NOT_FOUND)
        return trash_and_respond(request, study, 'tender_study')

    if request.method == 'PUT':
        serializer = TenderStudySerializer(study, data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        created = study is None
        study = serializer.save(tender=tender, updated_by=request.user)
        pricing = study_pricing(tender)
        log_activity(request=request, action='update', model_name='tender', object_id=tender.id,
                     object_name=tender.title, description=f"Updated the price study of {tender.title}",
                     changes={'final_price': str(pricing['final_price'])})
        return Response(
            {'study': TenderStudySerializer(study).data, 'pricing': pricing},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    return Response({
        'study': TenderStudySerializer(study).data if study else None,
        'pricing': study_pricing(tender),
    })


# Competitor price views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def competitor_price_list_create(request, pk):
    """List competitor prices of a tender or add one (one entry per competitor)"""
    tender = get_object_or_404(Tender, pk=pk)

    if request.method == 'GET':
        return Response(CompetitorPriceSerializer(tender.competitor_prices.all(), many=True).data)

    serializer = CompetitorPriceSerializer(data=request.data, context={'tender': tender})
    if serializer.is_valid():
        entry = serializer.save(tender=tender, created_by=request.user)
        log_activity(request=request, action='create', model_name='competitor_price', object_id=entry.id,
                     object_name=entry.competitor_name,
                     description=f"Added {entry.competitor_name} price {entry.price} to {tender.title}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def competitor_price_detail(request, pk, entry_pk):
    entry = get_object_or_404(CompetitorPrice.objects.select_related('tender'), pk=entry_pk, tender_id=pk)

    if request.method == 'GET':
        return Response(CompetitorPriceSerializer(entry).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CompetitorPriceSerializer(entry, data=request.data, partial=request.method == 'PATCH',
                                               context={'tender': entry.tender})
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='competitor_price', object_id=entry.id,
                         object_name=entry.competitor_name,
                         description=f"Updated {entry.competitor_name} price on {entry.tender.title}",
                         changes={'price': str(entry.price)})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, entry, 'competitor_price')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def tender_result_stats(request, pk):
    """Our final price against the competitors' prices"""
    tender = get_object_or_404(Tender, pk=pk)
    return Response(result_stats(tender))
