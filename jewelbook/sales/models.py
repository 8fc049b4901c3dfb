from decimal import Decimal

from django.db import models

from jewelbook.catalog.models import Product
from jewelbook.core.models import User


class SalesRequest(models.Model):
    """A sale proposed by staff; stock only moves once an admin approves it"""
    STATUS_PENDING = 'Pending'
    STATUS_APPROVED = 'Approved'
    STATUS_REJECTED = 'Rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    request_id = models.CharField(max_length=32, unique=True)
    customer = models.CharField(max_length=255)
    total_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_requests')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='decided_sales_requests')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.request_id

    class Meta:
        db_table = 'sales_requests'
        ordering = ['-created_at']


class SalesItem(models.Model):
    """
    Line of a sales request.
    ``product_name``/``product_sku`` are filled in when the product goes away
    so that the sale history still reads correctly.
    """
    sales_request = models.ForeignKey(SalesRequest, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_items')
    product_name = models.CharField(max_length=255, blank=True, null=True)
    product_sku = models.CharField(max_length=100, blank=True, null=True)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)

    def __str__(self):
        return f"{self.display_name} x {self.quantity}"

    @property
    def display_name(self):
        if self.product_id and self.product:
            return self.product.name
        return self.product_name or 'Deleted product'

    @property
    def line_total(self):
        return self.price * self.quantity

    class Meta:
        db_table = 'sales_items'


class SalesTransaction(models.Model):
    """Completed sale, recorded when a sales request is approved"""
    order_id = models.CharField(max_length=32, unique=True)
    customer = models.CharField(max_length=255)
    items = models.JSONField(default=list)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, default='Completed')
    sales_request = models.OneToOneField(SalesRequest, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales_transaction')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sales_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.order_id

    class Meta:
        db_table = 'sales_transactions'
        ordering = ['-created_at']


class Bill(models.Model):
    """GST or non-GST invoice printed for a customer"""
    TYPE_GST = 'GST'
    TYPE_NON_GST = 'NON_GST'
    TYPE_CHOICES = [
        (TYPE_GST, 'GST'),
        (TYPE_NON_GST, 'Non-GST'),
    ]

    bill_number = models.CharField(max_length=32, unique=True)
    bill_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    date = models.DateTimeField()
    customer_name = models.CharField(max_length=255)
    customer_address = models.TextField(blank=True, null=True)
    customer_state = models.CharField(max_length=100, blank=True, null=True)
    customer_gstin = models.CharField(max_length=20, blank=True, null=True)
    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cgst_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('9.00'))
    sgst_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('9.00'))
    igst_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    cgst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    sgst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    igst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    hsn_code = models.CharField(max_length=20, default='7113')
    transport_mode = models.CharField(max_length=100, blank=True, null=True)
    vehicle_no = models.CharField(max_length=50, blank=True, null=True)
    place_of_supply = models.CharField(max_length=100, blank=True, null=True)
    date_of_supply = models.DateField(blank=True, null=True)
    time_of_supply = models.CharField(max_length=20, blank=True, null=True)
    is_taxable = models.BooleanField(default=False)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='bills')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.bill_number

    class Meta:
        db_table = 'bills'
        ordering = ['-date']
        indexes = [
            models.Index(fields=['-date'], name='bills_date_idx'),
            models.Index(fields=['customer_name'], name='bills_customer_idx'),
        ]
