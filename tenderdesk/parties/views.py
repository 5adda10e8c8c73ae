from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from tenderdesk.core.utils import log_activity, paginate
from tenderdesk.trash.views import trash_and_respond
from .models import Client, Supplier
from .serializers import ClientSerializer, SupplierSerializer
from .validators import UNIQUE_PARTY_FIELDS, FIELD_LABELS, find_party_conflict


def _search_parties(queryset, search):
    return queryset.filter(
        Q(name__icontains=search) |
        Q(phone__icontains=search) |
        Q(email__icontains=search) |
        Q(tax_number__icontains=search) |
        Q(contact_person__icontains=search) |
        Q(internal_id__iexact=search)
    )


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List all clients or create a new client"""
    if request.method == 'GET':
        queryset = Client.objects.all().order_by('name')
        search = request.query_params.get('search', None)
        if search:
            queryset = _search_parties(queryset, search)
        is_active = request.query_params.get('is_active', None)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')
        return paginate(request, queryset, ClientSerializer)
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            client = serializer.save()
            log_activity(request=request, action='create', model_name='client', object_id=client.id,
                         object_name=client.name, description=f"Created client {client.name}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve, update or trash a client"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        serializer = ClientSerializer(client)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='client', object_id=client.id,
                         object_name=client.name, description=f"Updated client {client.name}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, client, 'client')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def client_by_internal_id(request, internal_id):
    client = get_object_or_404(Client, internal_id=internal_id)
    return Response(ClientSerializer(client).data)


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List suppliers (optionally by type) or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.all().order_by('name')
        supplier_type = request.query_params.get('supplier_type', None)
        if supplier_type:
            queryset = queryset.filter(supplier_type=supplier_type)
        country = request.query_params.get('country', None)
        if country:
            queryset = queryset.filter(country__iexact=country)
        search = request.query_params.get('search', None)
        if search:
            queryset = _search_parties(queryset, search)
        return paginate(request, queryset, SupplierSerializer)
    else:
        serializer = SupplierSerializer(data=request.data)
        if serializer.is_valid():
            supplier = serializer.save()
            log_activity(request=request, action='create', model_name='supplier', object_id=supplier.id,
                         object_name=supplier.name,
                         description=f"Created {supplier.get_supplier_type_display().lower()} supplier {supplier.name}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or trash a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        serializer = SupplierSerializer(supplier)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='supplier', object_id=supplier.id,
                         object_name=supplier.name, description=f"Updated supplier {supplier.name}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, supplier, 'supplier')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_by_internal_id(request, internal_id):
    supplier = get_object_or_404(Supplier, internal_id=internal_id)
    return Response(SupplierSerializer(supplier).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_quotes(request, pk):
    """Price quotes a supplier has given, newest first"""
    from tenderdesk.catalog.serializers import PriceQuoteSerializer
    supplier = get_object_or_404(Supplier, pk=pk)
    quotes = supplier.price_quotes.all().order_by('-quote_date', '-id')
    return Response(PriceQuoteSerializer(quotes, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def check_unique(request):
    """
    Live form check: is ?field=&value= free across clients and suppliers?
    Pass ?exclude_model=client|supplier&exclude_id= when editing.
    """
    field = request.query_params.get('field', None)
    if field not in UNIQUE_PARTY_FIELDS:
        return Response(
            {'error': f"field must be one of: {', '.join(UNIQUE_PARTY_FIELDS)}"},
            status=status.HTTP_400_BAD_REQUEST
        )
    exclude = None
    exclude_id = request.query_params.get('exclude_id', None)
    exclude_model = {'client': Client, 'supplier': Supplier}.get(request.query_params.get('exclude_model', ''))
    if exclude_model and exclude_id:
        exclude = exclude_model.objects.filter(pk=exclude_id).first()

    conflict = find_party_conflict(field, request.query_params.get('value', ''), exclude=exclude)
    return Response({
        'unique': conflict is None,
        'error': f"This {FIELD_LABELS[field]} is already used by a {conflict}" if conflict else None,
    })
