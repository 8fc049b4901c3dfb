from django.urls import path

from .views import (
    sales_request_list_create, sales_request_detail,
    recent_sales, sales_analytics,
    bill_list_create, bill_detail,
)

urlpatterns = [
    # SalesRequest endpoints
    path('sales-requests/', sales_request_list_create, name='sales-request-list-create'),
    path('sales-requests/<int:pk>/', sales_request_detail, name='sales-request-detail'),

    # Completed sales
    path('sales/', recent_sales, name='sales-recent'),
    path('sales/analytics/', sales_analytics, name='sales-analytics'),

    # Bill endpoints
    path('bills/', bill_list_create, name='bill-list-create'),
    path('bills/<int:pk>/', bill_detail, name='bill-detail'),
]
