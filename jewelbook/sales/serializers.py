from django.utils import timezone
from rest_framework import serializers

from jewelbook.catalog.models import Product

from .billing import (
    DEFAULT_CGST_PERCENTAGE, DEFAULT_HSN_CODE, DEFAULT_IGST_PERCENTAGE, DEFAULT_SGST_PERCENTAGE,
    calculate_bill,
)
from .models import Bill, SalesItem, SalesRequest, SalesTransaction


class SalesItemSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='display_name', read_only=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = SalesItem
        fields = ['id', 'product', 'name', 'product_name', 'product_sku', 'quantity', 'price', 'line_total']


class SalesRequestSerializer(serializers.ModelSerializer):
    items = SalesItemSerializer(many=True, read_only=True)
    requested_by = serializers.CharField(source='user.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)

    class Meta:
        model = SalesRequest
        fields = ['id', 'request_id', 'customer', 'total_value', 'status', 'items', 'user', 'requested_by',
                  'approved_by', 'approved_by_username', 'created_at', 'updated_at']
        read_only_fields = fields


class SalesRequestLineSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all(), error_messages={
        'does_not_exist': 'Product {pk_value} not found',
    })
    quantity = serializers.IntegerField(min_value=1)


class SalesRequestCreateSerializer(serializers.Serializer):
    customer = serializers.CharField(max_length=255, error_messages={
        'blank': 'Customer is required',
        'required': 'Customer is required',
    })
    items = SalesRequestLineSerializer(many=True, allow_empty=False)

    def validate_items(self, value):
        seen = set()
        for item in value:
            if item['product'].pk in seen:
                raise serializers.ValidationError(f"Product {item['product'].pk} is listed more than once")
            seen.add(item['product'].pk)
        return value


class SalesRequestDecisionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['Approved', 'Rejected'], error_messages={
        'invalid_choice': 'Invalid status. Must be Approved or Rejected.',
    })


class SalesTransactionSerializer(serializers.ModelSerializer):
    sold_by = serializers.CharField(source='user.username', read_only=True)
    sales_request_id = serializers.CharField(source='sales_request.request_id', read_only=True, allow_null=True)

    class Meta:
        model = SalesTransaction
        fields = ['id', 'order_id', 'customer', 'items', 'total_amount', 'status', 'sales_request_id',
                  'user', 'sold_by', 'created_at']
        read_only_fields = fields


class BillItemSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, min_value=0)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    hsn_code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    weight = serializers.CharField(max_length=50, required=False, allow_blank=True)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError('Quantity must be greater than zero')
        return value


class BillSerializer(serializers.ModelSerializer):
    items = BillItemSerializer(many=True, allow_empty=False)
    created_by = serializers.CharField(source='user.username', read_only=True, allow_null=True)
    date = serializers.DateTimeField(required=False)
    cgst_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False, default=DEFAULT_CGST_PERCENTAGE)
    sgst_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False, default=DEFAULT_SGST_PERCENTAGE)
    igst_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, required=False, default=DEFAULT_IGST_PERCENTAGE)
    hsn_code = serializers.CharField(max_length=20, required=False, default=DEFAULT_HSN_CODE)
    is_taxable = serializers.BooleanField(required=False, default=True)

    class Meta:
        model = Bill
        fields = ['id', 'bill_number', 'bill_type', 'date', 'customer_name', 'customer_address', 'customer_state',
                  'customer_gstin', 'items', 'subtotal', 'cgst_percentage', 'sgst_percentage', 'igst_percentage',
                  'cgst', 'sgst', 'igst', 'total_amount', 'hsn_code', 'transport_mode', 'vehicle_no',
                  'place_of_supply', 'date_of_supply', 'time_of_supply', 'is_taxable', 'user', 'created_by',
                  'created_at', 'updated_at']
        read_only_fields = ['bill_number', 'subtotal', 'cgst', 'sgst', 'igst', 'total_amount', 'user',
                            'created_at', 'updated_at']
        extra_kwargs = {
            'customer_name': {'error_messages': {'blank': 'Customer name is required', 'required': 'Customer name is required'}},
        }

    def validate(self, attrs):
        bill_type = attrs.get('bill_type', getattr(self.instance, 'bill_type', None))
        gstin = attrs.get('customer_gstin', getattr(self.instance, 'customer_gstin', None))
        if gstin and len(gstin.strip()) != 15:
            raise serializers.ValidationError({'customer_gstin': 'GSTIN must be 15 characters'})
        if bill_type == Bill.TYPE_NON_GST:
            attrs['is_taxable'] = False
        return attrs

    def _apply_totals(self, values):
        totals = calculate_bill(
            values['bill_type'],
            values['items'],
            is_taxable=values.get('is_taxable', True),
            cgst_percentage=values.get('cgst_percentage', DEFAULT_CGST_PERCENTAGE),
            sgst_percentage=values.get('sgst_percentage', DEFAULT_SGST_PERCENTAGE),
            igst_percentage=values.get('igst_percentage', DEFAULT_IGST_PERCENTAGE),
        )
        values.update(totals)
        return values

    def preview(self):
        """Computed bill values without saving anything"""
        values = self._apply_totals(dict(self.validated_data))
        values.setdefault('date', timezone.now())
        values['bill_number'] = None
        return values

    def create(self, validated_data):
        validated_data = self._apply_totals(validated_data)
        validated_data.setdefault('date', timezone.now())
        return Bill.objects.create(**validated_data)

    def update(self, instance, validated_data):
        for field, value in validated_data.items():
            setattr(instance, field, value)
        values = {
            'bill_type': instance.bill_type,
            'items': instance.items,
            'is_taxable': instance.is_taxable,
            'cgst_percentage': instance.cgst_percentage,
            'sgst_percentage': instance.sgst_percentage,
            'igst_percentage': instance.igst_percentage,
        }
        for field, value in self._apply_totals(values).items():
            setattr(instance, field, value)
        instance.save()
        return instance
