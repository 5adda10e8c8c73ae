from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count
from django.shortcuts import get_object_or_404
from tenderdesk.core.utils import log_activity, is_admin_user, paginate, data_version_header
from tenderdesk.trash.views import trash_and_respond
from .cache import get_settings_payload
from .defaults import seed_default_settings
from .filters import RawMaterialFilter, LocalProductFilter, ForeignProductFilter, ManufacturedProductFilter
from .models import (
    Category, Unit, RawMaterial, LocalProduct, ForeignProduct, PriceQuote,
    ManufacturedProduct, ManufacturedProductComponent, QUOTED_MATERIAL_FIELDS
)
from .pricing import refresh_lowest_price
from .serializers import (
    CategorySerializer, UnitSerializer, PriceQuoteSerializer,
    RawMaterialSerializer, LocalProductSerializer, ForeignProductSerializer,
    ManufacturedProductSerializer, ManufacturedProductListSerializer,
    ManufacturedProductComponentSerializer
)
from .services import resolve_material, add_component, MaterialNotFound


# Settings (categories and units)
def _named_setting_list_create(request, model, serializer_class, model_name):
    if request.method == 'GET':
        queryset = model.objects.all().order_by('name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(name__icontains=search)
        return Response(serializer_class(queryset, many=True).data)

    serializer = serializer_class(data=request.data)
    if serializer.is_valid():
        obj = serializer.save()
        log_activity(request=request, action='create', model_name=model_name, object_id=obj.id,
                     object_name=obj.name, description=f"Added {model_name} {obj.name}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _named_setting_detail(request, model, serializer_class, model_name, pk):
    obj = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(obj).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = serializer_class(obj, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name=model_name, object_id=obj.id,
                         object_name=obj.name, description=f"Updated {model_name} {obj.name}")
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, obj, model_name)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List all categories or create a new category"""
    return _named_setting_list_create(request, Category, CategorySerializer, 'category')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or trash a category"""
    return _named_setting_detail(request, Category, CategorySerializer, 'category', pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def unit_list_create(request):
    """List all units or create a new unit"""
    return _named_setting_list_create(request, Unit, UnitSerializer, 'unit')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def unit_detail(request, pk):
    """Retrieve, update or trash a unit"""
    return _named_setting_detail(request, Unit, UnitSerializer, 'unit', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def settings_overview(request):
    """Categories and units in one cached response; poll X-Data-Version for changes"""
    payload = get_settings_payload()
    response = Response({'categories': payload['categories'], 'units': payload['units']})
    response['X-Data-Version'] = payload['version']
    response['Cache-Control'] = 'private, max-age=10, must-revalidate'
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def settings_seed(request):
    """Create the default categories and units where none exist (Admin only)"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only Admin users can seed settings'}, status=status.HTTP_403_FORBIDDEN)
    result = seed_default_settings()
    return Response(result, status=status.HTTP_201_CREATED if any(result.values()) else status.HTTP_200_OK)


# Materials (raw materials, local products, foreign products)
MATERIAL_VIEWS = {
    'rawMaterial': (RawMaterial, RawMaterialSerializer, RawMaterialFilter, 'raw_material'),
    'localProduct': (LocalProduct, LocalProductSerializer, LocalProductFilter, 'local_product'),
    'foreignProduct': (ForeignProduct, ForeignProductSerializer, ForeignProductFilter, 'foreign_product'),
}
MATERIAL_ORDERINGS = ('name', '-name', 'price', '-price', 'created_at', '-created_at')


def _material_list_create(request, material_type):
    model, serializer_class, filter_class, model_name = MATERIAL_VIEWS[material_type]

    if request.method == 'GET':
        queryset = model.objects.select_related('lowest_price_supplier').prefetch_related('price_quotes')
        filterset = filter_class(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        ordering = request.query_params.get('ordering', 'name')
        if ordering not in MATERIAL_ORDERINGS:
            ordering = 'name'
        response = paginate(request, filterset.qs.order_by(ordering, 'id'), serializer_class)
        return data_version_header(response, model.objects.all())

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    quotes_data = data.pop('price_quotes', None) or []
    serializer = serializer_class(data=data, context={'quotes_data': quotes_data, 'request': request})
    if serializer.is_valid():
        material = serializer.save()
        log_activity(request=request, action='create', model_name=model_name, object_id=material.id,
                     object_name=material.name, description=f"Created {material.name}",
                     changes={'quotes': len(quotes_data)} if quotes_data else None)
        return Response(serializer_class(material).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _material_detail(request, material_type, pk):
    model, serializer_class, _, model_name = MATERIAL_VIEWS[material_type]
    material = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        return Response(serializer_class(material).data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
        data.pop('price_quotes', None)
        serializer = serializer_class(material, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name=model_name, object_id=material.id,
                         object_name=material.name, description=f"Updated {material.name}")
            return Response(serializer_class(material).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, material, model_name)


def _material_by_internal_id(request, material_type, internal_id):
    model, serializer_class, _, _ = MATERIAL_VIEWS[material_type]
    material = get_object_or_404(model, internal_id=internal_id)
    return Response(serializer_class(material).data)


def _material_quotes(request, material_type, pk):
    model, _, _, model_name = MATERIAL_VIEWS[material_type]
    material = get_object_or_404(model, pk=pk)

    if request.method == 'GET':
        quotes = material.price_quotes.select_related('supplier').order_by('price', 'created_at', 'id')
        return Response(PriceQuoteSerializer(quotes, many=True).data)

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    for field in QUOTED_MATERIAL_FIELDS.values():
        data.pop(field, None)
    data[QUOTED_MATERIAL_FIELDS[material_type]] = material.pk
    serializer = PriceQuoteSerializer(data=data)
    if serializer.is_valid():
        quote = serializer.save()
        log_activity(request=request, action='price_quote_add', model_name=model_name, object_id=material.id,
                     object_name=material.name,
                     description=f"Added price quote {quote.price} from {quote.supplier_name} to {material.name}",
                     changes={'quote': quote.id, 'price': str(quote.price)})
        return Response(PriceQuoteSerializer(quote).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


def _material_refresh_price(request, material_type, pk):
    model, serializer_class, _, _ = MATERIAL_VIEWS[material_type]
    material = get_object_or_404(model, pk=pk)
    changed = refresh_lowest_price(material)
    return Response({'changed': changed, 'material': serializer_class(material).data})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def raw_material_list_create(request):
    """List raw materials with filters or create one (optionally with price quotes)"""
    return _material_list_create(request, 'rawMaterial')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def raw_material_detail(request, pk):
    return _material_detail(request, 'rawMaterial', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def raw_material_by_internal_id(request, internal_id):
    return _material_by_internal_id(request, 'rawMaterial', internal_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def raw_material_quotes(request, pk):
    return _material_quotes(request, 'rawMaterial', pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def raw_material_refresh_price(request, pk):
    return _material_refresh_price(request, 'rawMaterial', pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def local_product_list_create(request):
    """List local products with filters or create one (optionally with price quotes)"""
    return _material_list_create(request, 'localProduct')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def local_product_detail(request, pk):
    return _material_detail(request, 'localProduct', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def local_product_by_internal_id(request, internal_id):
    return _material_by_internal_id(request, 'localProduct', internal_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def local_product_quotes(request, pk):
    return _material_quotes(request, 'localProduct', pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def local_product_refresh_price(request, pk):
    return _material_refresh_price(request, 'localProduct', pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def foreign_product_list_create(request):
    """List foreign products with filters or create one (optionally with price quotes)"""
    return _material_list_create(request, 'foreignProduct')


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def foreign_product_detail(request, pk):
    return _material_detail(request, 'foreignProduct', pk)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def foreign_product_by_internal_id(request, internal_id):
    return _material_by_internal_id(request, 'foreignProduct', internal_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def foreign_product_quotes(request, pk):
    return _material_quotes(request, 'foreignProduct', pk)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def foreign_product_refresh_price(request, pk):
    return _material_refresh_price(request, 'foreignProduct', pk)


# Price quote views
@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def price_quote_detail(request, pk):
    """Retrieve, update or trash a price quote"""
    quote = get_object_or_404(PriceQuote.objects.select_related('supplier'), pk=pk)
    material = quote.material

    if request.method == 'GET':
        return Response(PriceQuoteSerializer(quote).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PriceQuoteSerializer(quote, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='price_quote', object_id=quote.id,
                         object_name=quote.supplier_name,
                         description=f"Updated price quote of {quote.supplier_name} for {material.name if material else 'material'}",
                         changes={'price': str(quote.price)})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        material_type = quote.material_type
        response = trash_and_respond(request, quote, 'price_quote')
        if material is not None and response.status_code == status.HTTP_204_NO_CONTENT:
            log_activity(request=request, action='price_quote_remove', model_name=material_type,
                         object_id=material.id, object_name=material.name,
                         description=f"Removed price quote of {quote.supplier_name} from {material.name}")
        return response


# Manufactured product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def manufactured_product_list_create(request):
    """List manufactured products (filter by status) or create one with components"""
    if request.method == 'GET':
        queryset = ManufacturedProduct.objects.annotate(num_components=Count('components'))
        filterset = ManufacturedProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginate(request, filterset.qs.order_by('-created_at', '-id'), ManufacturedProductListSerializer)

    data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
    components_data = data.pop('components', None) or []
    serializer = ManufacturedProductSerializer(data=data, context={'components_data': components_data})
    if serializer.is_valid():
        product = serializer.save()
        log_activity(request=request, action='create', model_name='manufactured_product', object_id=product.id,
                     object_name=product.title, description=f"Created manufactured product {product.title}")
        return Response(ManufacturedProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def manufactured_product_detail(request, pk):
    """Retrieve, update or trash a manufactured product"""
    product = get_object_or_404(ManufacturedProduct, pk=pk)

    if request.method == 'GET':
        return Response(ManufacturedProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)
        data.pop('components', None)
        serializer = ManufacturedProductSerializer(product, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            old_status = product.status
            serializer.save()
            changes = {'status': [old_status, product.status]} if old_status != product.status else None
            log_activity(request=request, action='update', model_name='manufactured_product', object_id=product.id,
                         object_name=product.title, description=f"Updated manufactured product {product.title}",
                         changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, product, 'manufactured_product')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def manufactured_product_by_internal_id(request, internal_id):
    product = get_object_or_404(ManufacturedProduct, internal_id=internal_id)
    return Response(ManufacturedProductSerializer(product).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def manufactured_product_components(request, pk):
    """List components or add a material (merged into an existing line)"""
    product = get_object_or_404(ManufacturedProduct, pk=pk)

    if request.method == 'GET':
        return Response(ManufacturedProductComponentSerializer(product.components.all(), many=True).data)

    material_type = request.data.get('material_type')
    try:
        material = resolve_material(
            material_type,
            request.data.get('material_id'),
            request.data.get('material_internal_id'),
        )
        component, created = add_component(product, material_type, material, request.data.get('quantity', 1))
    except MaterialNotFound as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    log_activity(request=request, action='update', model_name='manufactured_product', object_id=product.id,
                 object_name=product.title,
                 description=f"{'Added' if created else 'Increased'} {component.material_name} in {product.title}",
                 changes={'component': component.id, 'quantity': str(component.quantity), 'merged': not created})
    return Response(
        ManufacturedProductComponentSerializer(component).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def manufactured_product_component_detail(request, pk, component_pk):
    """Change quantity or unit price of a component, or trash it"""
    component = get_object_or_404(ManufacturedProductComponent, pk=component_pk, product_id=pk)

    if request.method == 'GET':
        return Response(ManufacturedProductComponentSerializer(component).data)
    elif request.method == 'PATCH':
        serializer = ManufacturedProductComponentSerializer(component, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, component, 'manufactured_product_component')
