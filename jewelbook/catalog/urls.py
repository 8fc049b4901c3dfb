from django.urls import path

from .views import (
    product_list_create, product_detail,
    product_request_list_create, product_request_detail,
    long_set_list_create, long_set_detail, long_set_request_create,
    low_stock_threshold,
)

urlpatterns = [
    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),

    # Long set products (pk is the long set id)
    path('products/long-set/', long_set_list_create, name='long-set-list-create'),
    path('products/long-set/<int:pk>/', long_set_detail, name='long-set-detail'),

    # ProductRequest endpoints
    path('product-requests/', product_request_list_create, name='product-request-list-create'),
    path('product-requests/long-set/', long_set_request_create, name='long-set-request-create'),
    path('product-requests/<int:pk>/', product_request_detail, name='product-request-detail'),

    # Catalog-wide settings
    path('settings/low-stock-threshold/', low_stock_threshold, name='low-stock-threshold'),
]
