from django.contrib import admin

from .models import SalesRequest, SalesItem, SalesTransaction, Bill


class SalesItemInline(admin.TabularInline):
    model = SalesItem
    extra = 0
    readonly_fields = ['product_name', 'product_sku']


@admin.register(SalesRequest)
class SalesRequestAdmin(admin.ModelAdmin):
    list_display = ['request_id', 'customer', 'total_value', 'status', 'user', 'approved_by', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['request_id', 'customer', 'user__username']
    ordering = ['-created_at']
    readonly_fields = ['request_id', 'created_at', 'updated_at']
    inlines = [SalesItemInline]


@admin.register(SalesTransaction)
class SalesTransactionAdmin(admin.ModelAdmin):
    list_display = ['order_id', 'customer', 'total_amount', 'status', 'user', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['order_id', 'customer']
    ordering = ['-created_at']
    readonly_fields = ['order_id', 'items', 'created_at']


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ['bill_number', 'bill_type', 'customer_name', 'total_amount', 'date', 'user']
    list_filter = ['bill_type', 'is_taxable', 'date']
    search_fields = ['bill_number', 'customer_name', 'customer_gstin']
    ordering = ['-date']
    readonly_fields = ['bill_number', 'subtotal', 'cgst', 'sgst', 'igst', 'total_amount', 'created_at', 'updated_at']
