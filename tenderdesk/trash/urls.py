from django.urls import path
from .views import (
    trash_list, trash_detail, trash_restore, trash_empty
)

urlpatterns = [
    path('trash/', trash_list, name='trash-list'),
    path('trash/empty/', trash_empty, name='trash-empty'),
    path('trash/<int:pk>/', trash_detail, name='trash-detail'),
    path('trash/<int:pk>/restore/', trash_restore, name='trash-restore'),
]
