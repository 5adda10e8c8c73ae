import csv
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q, Count
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from .ids import entity_type_for_id
from .models import Setting, ActivityLog, PendingData, Document
from .serializers import (
    UserSerializer, UserCreateSerializer,
    SettingSerializer, ActivityLogSerializer,
    PendingDataSerializer, DocumentSerializer
)
from .utils import log_activity, is_admin_user, paginate, IsAdmin

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            from rest_framework_simplejwt.exceptions import AuthenticationFailed
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['groups'] = list(user.groups.values_list('name', flat=True))
        profile = getattr(user, 'employee_profile', None)
        token['role'] = profile.role if profile else None
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdmin])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with groups, employee profile and access flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['groups'] = list(user.groups.values_list('name', flat=True))

    profile = getattr(user, 'employee_profile', None)
    if profile:
        user_data['employee'] = {
            'id': profile.id,
            'internal_id': profile.internal_id,
            'full_name': profile.full_name,
            'role': profile.role,
            'department': profile.department,
        }
    else:
        user_data['employee'] = None

    is_admin = is_admin_user(user)
    is_manager = is_admin or bool(profile and profile.role == 'manager')
    user_data['is_admin'] = is_admin
    user_data['can_manage_employees'] = is_admin
    user_data['can_empty_trash'] = is_admin
    user_data['can_manage_settings'] = is_manager
    user_data['can_view_activity'] = is_manager
    return Response(user_data)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings_qs = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings_qs, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdmin])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ActivityLog views
def _filtered_activity_logs(request):
    queryset = ActivityLog.objects.select_related('user').all()

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    user_filter = request.query_params.get('user', None)
    if user_filter:
        queryset = queryset.filter(user_id=user_filter)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    search = request.query_params.get('search', None)
    if search:
        queryset = queryset.filter(
            Q(description__icontains=search) |
            Q(object_name__icontains=search) |
            Q(model_name__icontains=search)
        )
    return queryset.order_by('-created_at', '-id')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def activity_log_list_create(request):
    """List activity logs with filtering, or record a manual activity"""
    if request.method == 'GET':
        return paginate(request, _filtered_activity_logs(request), ActivityLogSerializer, default_limit=50)

    serializer = ActivityLogSerializer(data=request.data)
    if serializer.is_valid():
        activity = log_activity(
            request=request,
            action=serializer.validated_data.get('action', 'manual'),
            model_name=serializer.validated_data['model_name'],
            object_id=serializer.validated_data['object_id'],
            object_name=serializer.validated_data.get('object_name'),
            description=serializer.validated_data.get('description', ''),
            changes=serializer.validated_data.get('changes'),
        )
        if activity is None:
            return Response({'error': 'Duplicate activity ignored'}, status=status.HTTP_409_CONFLICT)
        return Response(ActivityLogSerializer(activity).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def activity_log_detail(request, pk):
    """Retrieve or delete an activity log"""
    activity = get_object_or_404(ActivityLog, pk=pk)

    if request.method == 'GET':
        return Response(ActivityLogSerializer(activity).data)

    if not is_admin_user(request.user) and activity.user_id != request.user.id:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    activity.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def activity_log_clear(request):
    """Delete every activity log (Admin only)"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only Admin users can clear the activity log'}, status=status.HTTP_403_FORBIDDEN)
    deleted, _ = ActivityLog.objects.all().delete()
    return Response({'deleted': deleted})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_log_stats(request):
    """Totals per action, last 30 days and the latest activity"""
    queryset = ActivityLog.objects.all()
    since = timezone.now() - timedelta(days=30)
    by_action = {
        row['action']: row['count']
        for row in queryset.values('action').annotate(count=Count('id')).order_by()
    }
    latest = queryset.order_by('-created_at', '-id').first()
    return Response({
        'total': queryset.count(),
        'last_30_days': queryset.filter(created_at__gte=since).count(),
        'by_action': by_action,
        'last_activity': ActivityLogSerializer(latest).data if latest else None,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_log_export(request):
    """Export the (filtered) activity log as CSV"""
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="activity-{timezone.now():%Y%m%d}.csv"'
    writer = csv.writer(response)
    writer.writerow(['created_at', 'user', 'action', 'model', 'object_id', 'object_name', 'description'])
    for activity in _filtered_activity_logs(request).iterator():
        writer.writerow([
            activity.created_at.isoformat(),
            activity.user.username if activity.user else '',
            activity.action,
            activity.model_name,
            activity.object_id,
            activity.object_name or '',
            activity.description,
        ])
    return response


# PendingData views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_data_list(request):
    """List staged form data keys for the current user"""
    entries = PendingData.objects.filter(user=request.user).order_by('-updated_at')
    return Response(PendingDataSerializer(entries, many=True).data)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def pending_data_detail(request, key):
    """Get, replace or discard a staged form payload"""
    if request.method == 'PUT':
        payload = request.data.get('payload', None)
        if payload is None:
            return Response({'payload': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        entry, created = PendingData.objects.update_or_create(
            user=request.user, key=key, defaults={'payload': payload}
        )
        return Response(
            PendingDataSerializer(entry).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    entry = get_object_or_404(PendingData, user=request.user, key=key)
    if request.method == 'GET':
        return Response(PendingDataSerializer(entry).data)
    entry.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Document views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def document_list_create(request):
    """List documents of an owner or upload a new one"""
    if request.method == 'GET':
        queryset = Document.objects.select_related('uploaded_by').all()
        owner_type = request.query_params.get('owner_type', None)
        owner_id = request.query_params.get('owner_id', None)
        if owner_type:
            queryset = queryset.filter(owner_type=owner_type)
        if owner_id:
            queryset = queryset.filter(owner_id=owner_id)
        serializer = DocumentSerializer(queryset, many=True, context={'request': request})
        return Response(serializer.data)

    serializer = DocumentSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        document = serializer.save(uploaded_by=request.user)
        log_activity(
            request=request,
            action='document_upload',
            model_name=document.owner_type,
            object_id=document.owner_id,
            object_name=document.file_name,
            description=f"Uploaded {document.file_name}",
        )
        return Response(DocumentSerializer(document, context={'request': request}).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, pk):
    """Retrieve a document or move it to trash"""
    document = get_object_or_404(Document, pk=pk)
    if request.method == 'GET':
        return Response(DocumentSerializer(document, context={'request': request}).data)

    from tenderdesk.trash.views import trash_and_respond
    return trash_and_respond(request, document, 'document')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Global search across tenders, products, parties and staff"""
    query = request.query_params.get('q', '').strip()

    keys = [
        'tenders', 'raw_materials', 'local_products', 'foreign_products',
        'manufactured_products', 'suppliers', 'clients', 'companies', 'employees',
    ]
    if not query:
        return Response({key: [] for key in keys})

    from tenderdesk.tenders.models import Tender
    from tenderdesk.catalog.models import RawMaterial, LocalProduct, ForeignProduct, ManufacturedProduct
    from tenderdesk.parties.models import Supplier, Client
    from tenderdesk.organization.models import Company, Employee
    from tenderdesk.tenders.serializers import TenderListSerializer
    from tenderdesk.catalog.serializers import (
        RawMaterialSerializer, LocalProductSerializer, ForeignProductSerializer,
        ManufacturedProductListSerializer
    )
    from tenderdesk.parties.serializers import SupplierSerializer, ClientSerializer
    from tenderdesk.organization.serializers import CompanySerializer, EmployeeSerializer

    # An exact internal id answers with that one record
    by_entity_type = {
        'TENDER': ('tenders', Tender, TenderListSerializer),
        'RAW_MATERIAL': ('raw_materials', RawMaterial, RawMaterialSerializer),
        'LOCAL_PRODUCT': ('local_products', LocalProduct, LocalProductSerializer),
        'FOREIGN_PRODUCT': ('foreign_products', ForeignProduct, ForeignProductSerializer),
        'MANUFACTURED_PRODUCT': ('manufactured_products', ManufacturedProduct, ManufacturedProductListSerializer),
        'LOCAL_SUPPLIER': ('suppliers', Supplier, SupplierSerializer),
        'FOREIGN_SUPPLIER': ('suppliers', Supplier, SupplierSerializer),
        'CLIENT': ('clients', Client, ClientSerializer),
        'COMPANY': ('companies', Company, CompanySerializer),
        'EMPLOYEE': ('employees', Employee, EmployeeSerializer),
    }
    target = by_entity_type.get(entity_type_for_id(query))
    if target:
        key, model, serializer_class = target
        match = model.objects.filter(internal_id__iexact=query).first()
        if match is not None:
            results = {name: [] for name in keys}
            results[key] = [serializer_class(match).data]
            return Response(results)

    results = {}

    tenders = Tender.objects.filter(
        Q(title__icontains=query) |
        Q(reference_number__icontains=query) |
        Q(entity__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['tenders'] = TenderListSerializer(tenders, many=True).data

    material_filter = (
        Q(name__icontains=query) |
        Q(category__icontains=query) |
        Q(supplier__icontains=query) |
        Q(internal_id__iexact=query)
    )
    results['raw_materials'] = RawMaterialSerializer(
        RawMaterial.objects.filter(material_filter)[:20], many=True).data
    results['local_products'] = LocalProductSerializer(
        LocalProduct.objects.filter(material_filter)[:20], many=True).data
    results['foreign_products'] = ForeignProductSerializer(
        ForeignProduct.objects.filter(material_filter)[:20], many=True).data

    manufactured = ManufacturedProduct.objects.filter(
        Q(title__icontains=query) |
        Q(reference_number__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['manufactured_products'] = ManufacturedProductListSerializer(manufactured, many=True).data

    suppliers = Supplier.objects.filter(
        Q(name__icontains=query) |
        Q(phone__icontains=query) |
        Q(email__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['suppliers'] = SupplierSerializer(suppliers, many=True).data

    clients = Client.objects.filter(
        Q(name__icontains=query) |
        Q(phone__icontains=query) |
        Q(email__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['clients'] = ClientSerializer(clients, many=True).data

    companies = Company.objects.filter(
        Q(name__icontains=query) |
        Q(email__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['companies'] = CompanySerializer(companies, many=True).data

    employees = Employee.objects.filter(
        Q(full_name__icontains=query) |
        Q(email__icontains=query) |
        Q(department__icontains=query) |
        Q(internal_id__iexact=query)
    )[:20]
    results['employees'] = EmployeeSerializer(employees, many=True).data

    return Response(results)
