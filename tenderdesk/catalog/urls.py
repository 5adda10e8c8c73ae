from django.urls import path
from .views import (
    category_list_create, category_detail, unit_list_create, unit_detail,
    settings_overview, settings_seed,
    raw_material_list_create, raw_material_detail, raw_material_by_internal_id,
    raw_material_quotes, raw_material_refresh_price,
    local_product_list_create, local_product_detail, local_product_by_internal_id,
    local_product_quotes, local_product_refresh_price,
    foreign_product_list_create, foreign_product_detail, foreign_product_by_internal_id,
    foreign_product_quotes, foreign_product_refresh_price,
    price_quote_detail,
    manufactured_product_list_create, manufactured_product_detail, manufactured_product_by_internal_id,
    manufactured_product_components, manufactured_product_component_detail
)

urlpatterns = [
    # Settings endpoints
    path('settings/', settings_overview, name='settings-overview'),
    path('settings/seed/', settings_seed, name='settings-seed'),
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('units/', unit_list_create, name='unit-list-create'),
    path('units/<int:pk>/', unit_detail, name='unit-detail'),

    # Raw material endpoints
    path('raw-materials/', raw_material_list_create, name='raw-material-list-create'),
    path('raw-materials/<int:pk>/', raw_material_detail, name='raw-material-detail'),
    path('raw-materials/<int:pk>/quotes/', raw_material_quotes, name='raw-material-quotes'),
    path('raw-materials/<int:pk>/refresh-price/', raw_material_refresh_price, name='raw-material-refresh-price'),
    path('raw-materials/by-internal-id/<str:internal_id>/', raw_material_by_internal_id, name='raw-material-by-internal-id'),

    # Local product endpoints
    path('local-products/', local_product_list_create, name='local-product-list-create'),
    path('local-products/<int:pk>/', local_product_detail, name='local-product-detail'),
    path('local-products/<int:pk>/quotes/', local_product_quotes, name='local-product-quotes'),
    path('local-products/<int:pk>/refresh-price/', local_product_refresh_price, name='local-product-refresh-price'),
    path('local-products/by-internal-id/<str:internal_id>/', local_product_by_internal_id, name='local-product-by-internal-id'),

    # Foreign product endpoints
    path('foreign-products/', foreign_product_list_create, name='foreign-product-list-create'),
    path('foreign-products/<int:pk>/', foreign_product_detail, name='foreign-product-detail'),
    path('foreign-products/<int:pk>/quotes/', foreign_product_quotes, name='foreign-product-quotes'),
    path('foreign-products/<int:pk>/refresh-price/', foreign_product_refresh_price, name='foreign-product-refresh-price'),
    path('foreign-products/by-internal-id/<str:internal_id>/', foreign_product_by_internal_id, name='foreign-product-by-internal-id'),

    # Price quote endpoints
    path('price-quotes/<int:pk>/', price_quote_detail, name='price-quote-detail'),

    # Manufactured product endpoints
    path('manufactured-products/', manufactured_product_list_create, name='manufactured-product-list-create'),
    path('manufactured-products/<int:pk>/', manufactured_product_detail, name='manufactured-product-detail'),
    path('manufactured-products/<int:pk>/components/', manufactured_product_components, name='manufactured-product-components'),
    path('manufactured-products/<int:pk>/components/<int:component_pk>/', manufactured_product_component_detail, name='manufactured-product-component-detail'),
    path('manufactured-products/by-internal-id/<str:internal_id>/', manufactured_product_by_internal_id, name='manufactured-product-by-internal-id'),
]
