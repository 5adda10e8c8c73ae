from django.urls import path
from .views import (
    client_list_create, client_detail, client_by_internal_id,
    supplier_list_create, supplier_detail, supplier_by_internal_id, supplier_quotes,
    check_unique
)

urlpatterns = [
    # Client endpoints
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),
    path('clients/by-internal-id/<str:internal_id>/', client_by_internal_id, name='client-by-internal-id'),

    # Supplier endpoints
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
    path('suppliers/<int:pk>/quotes/', supplier_quotes, name='supplier-quotes'),
    path('suppliers/by-internal-id/<str:internal_id>/', supplier_by_internal_id, name='supplier-by-internal-id'),

    path('parties/check-unique/', check_unique, name='party-check-unique'),
]
