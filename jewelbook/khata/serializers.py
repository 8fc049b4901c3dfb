from decimal import Decimal

from rest_framework import serializers

from .models import (
    Karigar, KarigarPayment, KarigarTransaction,
    Vyapari, VyapariPayment, VyapariTransaction,
)


def _clean_optional(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


class CounterpartySerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)

    class Meta:
        fields = ['id', 'name', 'phone', 'email', 'address', 'status', 'is_approved',
                  'created_by', 'created_by_username', 'approved_by', 'approved_by_username',
                  'created_at', 'updated_at']
        read_only_fields = ['status', 'is_approved', 'created_by', 'approved_by', 'created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'blank': 'Name is required', 'required': 'Name is required'}},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_phone(self, value):
        return _clean_optional(value)

    def validate_email(self, value):
        return _clean_optional(value)

    def validate_address(self, value):
        return _clean_optional(value)


class VyapariSerializer(CounterpartySerializer):
    class Meta(CounterpartySerializer.Meta):
        model = Vyapari


class KarigarSerializer(CounterpartySerializer):
    class Meta(CounterpartySerializer.Meta):
        model = Karigar
        fields = CounterpartySerializer.Meta.fields + ['specialization']

    def validate_specialization(self, value):
        return _clean_optional(value)


class CounterpartyStatusSerializer(serializers.Serializer):
    """Admin-only status change, applied on top of a regular update"""
    status = serializers.ChoiceField(choices=['Active', 'Inactive'])


class LedgerTransactionSerializer(serializers.ModelSerializer):
    counterparty_name = serializers.SerializerMethodField()
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, error_messages={
        'invalid': 'Amount must be a number',
        'required': 'Amount is required',
        'null': 'Amount is required',
    })
    items = serializers.JSONField(required=False, allow_null=True)

    class Meta:
        fields = ['id', 'transaction_id', 'amount', 'description', 'items', 'is_approved',
                  'counterparty_name', 'created_by', 'created_by_username',
                  'approved_by', 'approved_by_username', 'created_at', 'updated_at']
        read_only_fields = ['transaction_id', 'is_approved', 'created_by', 'approved_by', 'created_at', 'updated_at']
        extra_kwargs = {
            'description': {'error_messages': {'blank': 'Description is required', 'required': 'Description is required'}},
        }

    def get_counterparty_name(self, obj):
        return obj.counterparty.name

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Description is required')
        return value


class VyapariTransactionSerializer(LedgerTransactionSerializer):
    class Meta(LedgerTransactionSerializer.Meta):
        model = VyapariTransaction
        fields = LedgerTransactionSerializer.Meta.fields + ['vyapari']
        read_only_fields = LedgerTransactionSerializer.Meta.read_only_fields + ['vyapari']


class KarigarTransactionSerializer(LedgerTransactionSerializer):
    class Meta(LedgerTransactionSerializer.Meta):
        model = KarigarTransaction
        fields = LedgerTransactionSerializer.Meta.fields + ['karigar']
        read_only_fields = LedgerTransactionSerializer.Meta.read_only_fields + ['karigar']


class LedgerPaymentSerializer(serializers.ModelSerializer):
    counterparty_name = serializers.SerializerMethodField()
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, error_messages={
        'invalid': 'Amount must be a number',
        'required': 'Amount is required',
        'null': 'Amount is required',
    })

    class Meta:
        fields = ['id', 'payment_id', 'amount', 'payment_mode', 'reference_number', 'notes', 'is_approved',
                  'counterparty_name', 'created_by', 'created_by_username',
                  'approved_by', 'approved_by_username', 'created_at', 'updated_at']
        read_only_fields = ['payment_id', 'is_approved', 'created_by', 'approved_by', 'created_at', 'updated_at']
        extra_kwargs = {
            'payment_mode': {'error_messages': {'blank': 'Payment mode is required', 'required': 'Payment mode is required'}},
        }

    def get_counterparty_name(self, obj):
        return obj.counterparty.name

    def validate_amount(self, value):
        if value <= Decimal('0'):
            raise serializers.ValidationError('Amount must be greater than zero')
        return value

    def validate_reference_number(self, value):
        return _clean_optional(value)

    def validate_notes(self, value):
        return _clean_optional(value)


class VyapariPaymentSerializer(LedgerPaymentSerializer):
    class Meta(LedgerPaymentSerializer.Meta):
        model = VyapariPayment
        fields = LedgerPaymentSerializer.Meta.fields + ['vyapari']
        read_only_fields = LedgerPaymentSerializer.Meta.read_only_fields + ['vyapari']


class KarigarPaymentSerializer(LedgerPaymentSerializer):
    class Meta(LedgerPaymentSerializer.Meta):
        model = KarigarPayment
        fields = LedgerPaymentSerializer.Meta.fields + ['karigar']
        read_only_fields = LedgerPaymentSerializer.Meta.read_only_fields + ['karigar']


class ApprovalDecisionSerializer(serializers.Serializer):
    approve = serializers.BooleanField(error_messages={'required': 'approve flag is required'})


SERIALIZERS = {
    'vyaparis': (VyapariSerializer, VyapariTransactionSerializer, VyapariPaymentSerializer),
    'karigars': (KarigarSerializer, KarigarTransactionSerializer, KarigarPaymentSerializer),
}
