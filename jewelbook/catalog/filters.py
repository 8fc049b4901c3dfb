import django_filters
from django.db.models import F, Q

from .models import Product, ProductRequest


class ProductFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    category = django_filters.CharFilter(field_name='category', lookup_expr='iexact')
    material = django_filters.CharFilter(field_name='material', lookup_expr='iexact')
    supplier = django_filters.CharFilter(field_name='supplier', lookup_expr='icontains')
    low_stock = django_filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = Product
        fields = ['search', 'category', 'material', 'supplier', 'low_stock']

    def filter_search(self, queryset, name, value):
        """Match name, SKU or description"""
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) | Q(sku__icontains=value) | Q(description__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        """Products at or below their own low stock threshold"""
        if value is None:
            return queryset
        if value:
            return queryset.filter(stock__lte=F('low_stock_threshold'))
        return queryset.filter(stock__gt=F('low_stock_threshold'))


class ProductRequestFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')
    request_type = django_filters.CharFilter(field_name='request_type', lookup_expr='iexact')
    admin_action = django_filters.BooleanFilter(field_name='admin_action')
    is_long_set = django_filters.BooleanFilter(field_name='is_long_set')

    class Meta:
        model = ProductRequest
        fields = ['status', 'request_type', 'admin_action', 'is_long_set']
