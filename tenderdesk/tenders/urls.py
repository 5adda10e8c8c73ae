from django.urls import path
from .views import (
    tender_list_create, tender_detail, tender_by_internal_id, tender_change_status,
    tender_items, tender_item_create, tender_item_detail, tender_refresh_pricing, tender_summary_view,
    tender_study, competitor_price_list_create, competitor_price_detail, tender_result_stats
)

urlpatterns = [
    # Tender endpoints
    path('tenders/', tender_list_create, name='tender-list-create'),
    path('tenders/<int:pk>/', tender_detail, name='tender-detail'),
    path('tenders/<int:pk>/status/', tender_change_status, name='tender-change-status'),
    path('tenders/<int:pk>/refresh-pricing/', tender_refresh_pricing, name='tender-refresh-pricing'),
    path('tenders/<int:pk>/summary/', tender_summary_view, name='tender-summary'),
    path('tenders/by-internal-id/<str:internal_id>/', tender_by_internal_id, name='tender-by-internal-id'),

    # Tender item endpoints
    path('tenders/<int:pk>/items/', tender_items, name='tender-items'),
    path('tenders/<int:pk>/items/create/', tender_item_create, name='tender-item-create'),
    path('tenders/<int:pk>/items/<int:item_pk>/', tender_item_detail, name='tender-item-detail'),

    # Price study endpoint
    path('tenders/<int:pk>/study/', tender_study, name='tender-study'),

    # Competitor price endpoints
    path('tenders/<int:pk>/competitors/', competitor_price_list_create, name='competitor-price-list-create'),
    path('tenders/<int:pk>/competitors/<int:entry_pk>/', competitor_price_detail, name='competitor-price-detail'),
    path('tenders/<int:pk>/results/', tender_result_stats, name='tender-result-stats'),
]
