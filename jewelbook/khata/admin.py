from django.contrib import admin

from .models import (
    Vyapari, Karigar,
    VyapariTransaction, KarigarTransaction,
    VyapariPayment, KarigarPayment,
    LedgerSequence,
)


class CounterpartyAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'status', 'is_approved', 'created_by', 'approved_by', 'created_at']
    list_filter = ['status', 'is_approved']
    search_fields = ['name', 'phone', 'email']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Vyapari)
class VyapariAdmin(CounterpartyAdmin):
    pass


@admin.register(Karigar)
class KarigarAdmin(CounterpartyAdmin):
    list_display = CounterpartyAdmin.list_display[:2] + ['specialization'] + CounterpartyAdmin.list_display[2:]


class LedgerTransactionAdmin(admin.ModelAdmin):
    list_display = ['transaction_id', 'amount', 'description', 'is_approved', 'created_by', 'created_at']
    list_filter = ['is_approved', 'created_at']
    search_fields = ['transaction_id', 'description']
    ordering = ['-created_at']
    readonly_fields = ['transaction_id', 'created_at', 'updated_at']


@admin.register(VyapariTransaction)
class VyapariTransactionAdmin(LedgerTransactionAdmin):
    list_display = ['transaction_id', 'vyapari'] + LedgerTransactionAdmin.list_display[1:]


@admin.register(KarigarTransaction)
class KarigarTransactionAdmin(LedgerTransactionAdmin):
    list_display = ['transaction_id', 'karigar'] + LedgerTransactionAdmin.list_display[1:]


class LedgerPaymentAdmin(admin.ModelAdmin):
    list_display = ['payment_id', 'amount', 'payment_mode', 'reference_number', 'is_approved', 'created_at']
    list_filter = ['is_approved', 'payment_mode']
    search_fields = ['payment_id', 'reference_number']
    ordering = ['-created_at']
    readonly_fields = ['payment_id', 'created_at', 'updated_at']


@admin.register(VyapariPayment)
class VyapariPaymentAdmin(LedgerPaymentAdmin):
    list_display = ['payment_id', 'vyapari'] + LedgerPaymentAdmin.list_display[1:]


@admin.register(KarigarPayment)
class KarigarPaymentAdmin(LedgerPaymentAdmin):
    list_display = ['payment_id', 'karigar'] + LedgerPaymentAdmin.list_display[1:]


@admin.register(LedgerSequence)
class LedgerSequenceAdmin(admin.ModelAdmin):
    list_display = ['prefix', 'year', 'last_value']
    ordering = ['prefix', '-year']
