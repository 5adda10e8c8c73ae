from django.urls import path
from .views import (
    company_list_create, company_detail, company_by_internal_id,
    employee_list_create, employee_detail, employee_by_internal_id,
    department_list
)

urlpatterns = [
    # Company endpoints
    path('companies/', company_list_create, name='company-list-create'),
    path('companies/<int:pk>/', company_detail, name='company-detail'),
    path('companies/by-internal-id/<str:internal_id>/', company_by_internal_id, name='company-by-internal-id'),

    # Employee endpoints
    path('employees/', employee_list_create, name='employee-list-create'),
    path('employees/<int:pk>/', employee_detail, name='employee-detail'),
    path('employees/by-internal-id/<str:internal_id>/', employee_by_internal_id, name='employee-by-internal-id'),
    path('departments/', department_list, name='department-list'),
]
