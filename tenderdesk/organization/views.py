from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from tenderdesk.core.utils import log_activity, is_admin_user, paginate
from tenderdesk.trash.views import trash_and_respond
from .models import Company, Employee
from .serializers import CompanySerializer, EmployeeSerializer


# Company views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def company_list_create(request):
    """List all companies or create a new company"""
    if request.method == 'GET':
        queryset = Company.objects.all().order_by('name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search) |
                Q(tax_number__icontains=search) |
                Q(commercial_register__icontains=search)
            )
        is_active = request.query_params.get('is_active', None)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')
        return paginate(request, queryset, CompanySerializer)
    else:
        serializer = CompanySerializer(data=request.data)
        if serializer.is_valid():
            company = serializer.save()
            log_activity(request=request, action='create', model_name='company', object_id=company.id,
                         object_name=company.name, description=f"Created company {company.name}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def company_detail(request, pk):
    """Retrieve, update or trash a company"""
    company = get_object_or_404(Company, pk=pk)

    if request.method == 'GET':
        serializer = CompanySerializer(company)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CompanySerializer(company, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            log_activity(request=request, action='update', model_name='company', object_id=company.id,
                         object_name=company.name, description=f"Updated company {company.name}",
                         changes={'fields': sorted(serializer.validated_data.keys())})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        return trash_and_respond(request, company, 'company')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def company_by_internal_id(request, internal_id):
    company = get_object_or_404(Company, internal_id=internal_id)
    return Response(CompanySerializer(company).data)


# Employee views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def employee_list_create(request):
    """List employees or create one together with its login account (Admin only)"""
    if request.method == 'GET':
        queryset = Employee.objects.select_related('company', 'user').all().order_by('full_name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(full_name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search) |
                Q(national_id__icontains=search) |
                Q(job_title__icontains=search)
            )
        for param in ('department', 'role', 'status', 'company'):
            value = request.query_params.get(param, None)
            if value:
                queryset = queryset.filter(**{param: value})
        return paginate(request, queryset, EmployeeSerializer)

    if not is_admin_user(request.user):
        return Response({'error': 'Only Admin users can manage employees'}, status=status.HTTP_403_FORBIDDEN)
    serializer = EmployeeSerializer(data=request.data)
    if serializer.is_valid():
        employee = serializer.save()
        log_activity(request=request, action='create', model_name='employee', object_id=employee.id,
                     object_name=employee.full_name, description=f"Created employee {employee.full_name}")
        return Response(EmployeeSerializer(employee).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def employee_detail(request, pk):
    """Retrieve, update or trash an employee"""
    employee = get_object_or_404(Employee.objects.select_related('company', 'user'), pk=pk)

    if request.method == 'GET':
        return Response(EmployeeSerializer(employee).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only Admin users can manage employees'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = EmployeeSerializer(employee, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            changes = {k: v for k, v in serializer.validated_data.items() if k in ('role', 'status', 'department')}
            log_activity(request=request, action='update', model_name='employee', object_id=employee.id,
                         object_name=employee.full_name, description=f"Updated employee {employee.full_name}",
                         changes=changes)
            return Response(EmployeeSerializer(employee).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if employee.user_id == request.user.id:
            return Response({'error': 'You cannot delete your own employee record'}, status=status.HTTP_400_BAD_REQUEST)
        return trash_and_respond(request, employee, 'employee')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def employee_by_internal_id(request, internal_id):
    employee = get_object_or_404(Employee, internal_id=internal_id)
    return Response(EmployeeSerializer(employee).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def department_list(request):
    """Distinct departments in use, with employee counts"""
    rows = (
        Employee.objects.exclude(department='')
        .values('department')
        .annotate(count=Count('id'))
        .order_by('department')
    )
    return Response([{'name': row['department'], 'employee_count': row['count']} for row in rows])
