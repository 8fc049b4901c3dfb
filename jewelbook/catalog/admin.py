from django.contrib import admin

from .models import LongSetPart, LongSetProduct, Product, ProductRequest


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'material', 'price', 'stock', 'low_stock_threshold', 'user', 'created_at']
    list_filter = ['category', 'material', 'created_at']
    search_fields = ['name', 'sku', 'description', 'supplier']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(ProductRequest)
class ProductRequestAdmin(admin.ModelAdmin):
    list_display = ['request_id', 'request_type', 'status', 'admin_action', 'is_long_set', 'product', 'user', 'approved_by', 'created_at']
    list_filter = ['request_type', 'status', 'admin_action', 'is_long_set']
    search_fields = ['request_id', 'product__name', 'product__sku', 'user__username']
    ordering = ['-created_at']
    readonly_fields = ['request_id', 'details', 'created_at', 'updated_at']


class LongSetPartInline(admin.TabularInline):
    model = LongSetPart
    extra = 0
    fields = ['part_name', 'part_description', 'cost_price', 'karigar']


@admin.register(LongSetProduct)
class LongSetProductAdmin(admin.ModelAdmin):
    list_display = ['product', 'created_at']
    search_fields = ['product__name', 'product__sku']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [LongSetPartInline]
