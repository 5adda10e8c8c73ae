"""
URL configuration for the TenderDesk API.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "TenderDesk Administration"
admin.site.site_title = "TenderDesk Admin Portal"
admin.site.index_title = "Tenders, products and suppliers"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('tenderdesk.core.urls')),
    path('api/v1/', include('tenderdesk.organization.urls')),
    path('api/v1/', include('tenderdesk.parties.urls')),
    path('api/v1/', include('tenderdesk.catalog.urls')),
    path('api/v1/', include('tenderdesk.tenders.urls')),
    path('api/v1/', include('tenderdesk.trash.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
