from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail,
    setting_list_create, setting_detail,
    activity_log_list_create, activity_log_detail, activity_log_clear,
    activity_log_stats, activity_log_export,
    pending_data_list, pending_data_detail,
    document_list_create, document_detail,
    global_search
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Setting endpoints
    path('system-settings/', setting_list_create, name='setting-list-create'),
    path('system-settings/<int:pk>/', setting_detail, name='setting-detail'),

    # Activity log endpoints
    path('activity/', activity_log_list_create, name='activity-list-create'),
    path('activity/stats/', activity_log_stats, name='activity-stats'),
    path('activity/export/', activity_log_export, name='activity-export'),
    path('activity/clear/', activity_log_clear, name='activity-clear'),
    path('activity/<int:pk>/', activity_log_detail, name='activity-detail'),

    # Staged form data
    path('pending-data/', pending_data_list, name='pending-data-list'),
    path('pending-data/<str:key>/', pending_data_detail, name='pending-data-detail'),

    # Documents
    path('documents/', document_list_create, name='document-list-create'),
    path('documents/<int:pk>/', document_detail, name='document-detail'),

    # Global search endpoint
    path('search/', global_search, name='global-search'),
]
