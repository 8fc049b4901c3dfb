from django.db import models

from jewelbook.core.models import User


class Counterparty(models.Model):
    """Shared fields of a khata account holder (trader or artisan)"""
    STATUS_CHOICES = [
        ('Active', 'Active'),
        ('Inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Active')
    is_approved = models.BooleanField(default=False)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_approved')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['name']

    def __str__(self):
        return self.name


class Vyapari(Counterparty):
    """Trader we buy from / sell to on credit"""

    class Meta(Counterparty.Meta):
        db_table = 'vyaparis'


class Karigar(Counterparty):
    """Artisan who makes pieces for us"""
    specialization = models.CharField(max_length=255, blank=True, null=True)

    class Meta(Counterparty.Meta):
        db_table = 'karigars'


class LedgerTransaction(models.Model):
    """
    Signed ledger entry against a counterparty.
    Positive amounts are money we owe them. Only approved rows count towards
    the balance.
    """
    transaction_id = models.CharField(max_length=32, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.TextField()
    items = models.JSONField(null=True, blank=True)
    is_approved = models.BooleanField(default=False)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_approved')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return self.transaction_id


class VyapariTransaction(LedgerTransaction):
    vyapari = models.ForeignKey(Vyapari, on_delete=models.PROTECT, related_name='transactions')

    class Meta(LedgerTransaction.Meta):
        db_table = 'vyapari_transactions'

    @property
    def counterparty(self):
        return self.vyapari


class KarigarTransaction(LedgerTransaction):
    karigar = models.ForeignKey(Karigar, on_delete=models.PROTECT, related_name='transactions')

    class Meta(LedgerTransaction.Meta):
        db_table = 'karigar_transactions'

    @property
    def counterparty(self):
        return self.karigar


class LedgerPayment(models.Model):
    """Money paid to or received from a counterparty; amount is always positive"""
    payment_id = models.CharField(max_length=32, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_mode = models.CharField(max_length=50)
    reference_number = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_approved = models.BooleanField(default=False)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_created')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='%(class)s_approved')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return self.payment_id


class VyapariPayment(LedgerPayment):
    vyapari = models.ForeignKey(Vyapari, on_delete=models.PROTECT, related_name='payments')

    class Meta(LedgerPayment.Meta):
        db_table = 'vyapari_payments'

    @property
    def counterparty(self):
        return self.vyapari


class KarigarPayment(LedgerPayment):
    karigar = models.ForeignKey(Karigar, on_delete=models.PROTECT, related_name='payments')

    class Meta(LedgerPayment.Meta):
        db_table = 'karigar_payments'

    @property
    def counterparty(self):
        return self.karigar


class LedgerSequence(models.Model):
    """Per prefix and year counter behind the human readable reference numbers"""
    prefix = models.CharField(max_length=10)
    year = models.PositiveIntegerField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'ledger_sequences'
        constraints = [
            models.UniqueConstraint(fields=['prefix', 'year'], name='unique_ledger_sequence_prefix_year'),
        ]

    def __str__(self):
        return f"{self.prefix}-{self.year}: {self.last_value}"
