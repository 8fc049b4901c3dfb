from django.urls import path

from .views import (
    counterparty_list_create, counterparty_detail, counterparty_approve,
    counterparty_force_delete, counterparty_pending, counterparty_balance,
    transaction_list_create, transaction_pending, transaction_approve,
    payment_list_create, payment_pending, payment_approve,
    khata_analytics,
)

urlpatterns = [
    # Counterparty endpoints ({kind} is vyaparis or karigars)
    path('counterparties/<str:kind>/', counterparty_list_create, name='counterparty-list-create'),
    path('counterparties/<str:kind>/pending/', counterparty_pending, name='counterparty-pending'),
    path('counterparties/<str:kind>/<int:pk>/', counterparty_detail, name='counterparty-detail'),
    path('counterparties/<str:kind>/<int:pk>/approve/', counterparty_approve, name='counterparty-approve'),
    path('counterparties/<str:kind>/<int:pk>/force-delete/', counterparty_force_delete, name='counterparty-force-delete'),
    path('counterparties/<str:kind>/<int:pk>/balance/', counterparty_balance, name='counterparty-balance'),

    # Ledger transaction endpoints
    path('counterparties/<str:kind>/<int:pk>/transactions/', transaction_list_create, name='transaction-list-create'),
    path('counterparties/<str:kind>/transactions/pending/', transaction_pending, name='transaction-pending'),
    path('counterparties/<str:kind>/transactions/<int:pk>/approve/', transaction_approve, name='transaction-approve'),

    # Payment endpoints
    path('counterparties/<str:kind>/<int:pk>/payments/', payment_list_create, name='payment-list-create'),
    path('counterparties/<str:kind>/payments/pending/', payment_pending, name='payment-pending'),
    path('counterparties/<str:kind>/payments/<int:pk>/approve/', payment_approve, name='payment-approve'),

    # Analytics
    path('khata/analytics/', khata_analytics, name='khata-analytics'),
]
