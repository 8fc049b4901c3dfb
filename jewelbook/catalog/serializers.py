from decimal import Decimal

from rest_framework import serializers

from jewelbook.core.exceptions import Conflict
from jewelbook.khata.models import Karigar

from .models import LongSetPart, LongSetProduct, Product, ProductRequest

PRODUCT_FIELDS = ['name', 'sku', 'description', 'category', 'material', 'price', 'cost_price',
                  'stock', 'low_stock_threshold', 'image_url', 'supplier']


def json_ready(value):
    """Validated data as plain JSON values; decimals become strings"""
    if isinstance(value, dict):
        return {key: json_ready(item) for key, item in value.items()}
    if isinstance(value, list):
        return [json_ready(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    return value


class ProductSerializer(serializers.ModelSerializer):
    sku = serializers.CharField(max_length=100)
    owner_username = serializers.CharField(source='user.username', read_only=True, allow_null=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id'] + PRODUCT_FIELDS + ['user', 'owner_username', 'is_low_stock', 'created_at', 'updated_at']
        read_only_fields = ['user', 'created_at', 'updated_at']

    def validate_sku(self, value):
        value = value.strip()
        queryset = Product.objects.filter(sku=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise Conflict('SKU already exists')
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError('Price cannot be negative')
        return value

    def validate_cost_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError('Cost price cannot be negative')
        return value


class LongSetPartInputSerializer(serializers.Serializer):
    """One part of a long set as submitted by a client; ``id`` marks an existing part"""
    id = serializers.IntegerField(required=False)
    part_name = serializers.CharField(max_length=255)
    part_description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    cost_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=0)
    karigar = serializers.IntegerField(required=False, allow_null=True)

    def validate_part_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Part name is required')
        return value

    def validate_karigar(self, value):
        if value is not None and not Karigar.objects.filter(pk=value, is_approved=True).exists():
            raise serializers.ValidationError('Karigar not found or not approved')
        return value


class ProductRequestDetailsSerializer(serializers.Serializer):
    """Proposed product values carried by a request; every field optional"""
    name = serializers.CharField(max_length=255, required=False)
    sku = serializers.CharField(max_length=100, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    material = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0)
    cost_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True, min_value=0)
    stock = serializers.IntegerField(required=False, min_value=0)
    stock_adjustment = serializers.IntegerField(required=False)
    low_stock_threshold = serializers.IntegerField(required=False, min_value=0)
    image_url = serializers.URLField(max_length=500, required=False, allow_null=True)
    supplier = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    long_set_parts = LongSetPartInputSerializer(many=True, required=False)


class ProductRequestSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, allow_null=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True, allow_null=True)
    requested_by = serializers.CharField(source='user.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)

    class Meta:
        model = ProductRequest
        fields = ['id', 'request_id', 'request_type', 'status', 'admin_action', 'is_long_set', 'product', 'product_name',
                  'product_sku', 'details', 'user', 'requested_by', 'approved_by', 'approved_by_username',
                  'created_at', 'updated_at']
        read_only_fields = ['request_id', 'status', 'admin_action', 'user', 'approved_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        request_type = attrs.get('request_type', getattr(self.instance, 'request_type', None))
        product = attrs.get('product', getattr(self.instance, 'product', None))
        details = attrs.get('details', getattr(self.instance, 'details', None)) or {}

        if request_type in (ProductRequest.TYPE_EDIT, ProductRequest.TYPE_DELETE) and product is None:
            raise serializers.ValidationError({'product': f'Product is required for {request_type} requests'})

        details_serializer = ProductRequestDetailsSerializer(data=details)
        if not details_serializer.is_valid():
            raise serializers.ValidationError({'details': details_serializer.errors})
        clean = details_serializer.validated_data

        is_long_set = attrs.get('is_long_set', getattr(self.instance, 'is_long_set', False))
        if is_long_set and request_type != ProductRequest.TYPE_ADD and product is not None \
                and not LongSetProduct.objects.filter(product=product).exists():
            raise serializers.ValidationError({'product': 'Product is not a long set'})
        if is_long_set and request_type == ProductRequest.TYPE_ADD and not clean.get('long_set_parts'):
            raise serializers.ValidationError({'details': 'A long set needs at least one part'})
        if not is_long_set and 'long_set_parts' in clean:
            raise serializers.ValidationError({'details': 'Parts can only be given for long set requests'})

        if request_type == ProductRequest.TYPE_ADD:
            missing = [field for field in ('name', 'sku', 'price') if clean.get(field) in (None, '')]
            if missing:
                raise serializers.ValidationError({'details': f"Missing required fields: {', '.join(missing)}"})
            if Product.objects.filter(sku=clean['sku'].strip()).exists():
                raise Conflict('SKU already exists')

        attrs['details'] = json_ready(clean)
        return attrs


class ProductRequestDecisionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['Approved', 'Rejected'], error_messages={
        'invalid_choice': 'Invalid status. Must be Approved or Rejected.',
    })


class LongSetPartSerializer(serializers.ModelSerializer):
    karigar_name = serializers.CharField(source='karigar.name', read_only=True, allow_null=True)

    class Meta:
        model = LongSetPart
        fields = ['id', 'part_name', 'part_description', 'cost_price', 'karigar', 'karigar_name']


class LongSetProductSerializer(serializers.ModelSerializer):
    product = ProductSerializer(read_only=True)
    parts = LongSetPartSerializer(many=True, read_only=True)
    total_parts_cost = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = LongSetProduct
        fields = ['id', 'product', 'parts', 'total_parts_cost', 'created_at', 'updated_at']
