from decimal import Decimal

from django.conf import settings
from django.db import models

from jewelbook.core.models import User

PLACEHOLDER_IMAGE_URL = 'https://lgshoplocal.com/wp-content/uploads/2020/04/placeholderproduct-500x500-1.png'


def default_low_stock_threshold():
    return getattr(settings, 'DEFAULT_LOW_STOCK_THRESHOLD', 10)


class Product(models.Model):
    """Inventory item owned by the user who created it"""
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=100, blank=True, null=True)
    material = models.CharField(max_length=100, blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    stock = models.PositiveIntegerField(default=0)
    low_stock_threshold = models.PositiveIntegerField(default=default_low_stock_threshold)
    image_url = models.URLField(max_length=500, default=PLACEHOLDER_IMAGE_URL)
    supplier = models.CharField(max_length=255, blank=True, null=True, help_text="Karigar name the piece was sourced from")
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_low_stock(self):
        return self.stock <= self.low_stock_threshold

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category'], name='products_category_idx'),
            models.Index(fields=['name'], name='products_name_idx'),
        ]


class ProductRequest(models.Model):
    """
    Proposed product add/edit/delete awaiting admin approval.
    Admin actions are stored here too, already approved, with ``admin_action``
    set so that the history shows every change to the catalog.
    """
    TYPE_ADD = 'add'
    TYPE_EDIT = 'edit'
    TYPE_DELETE = 'delete'
    TYPE_CHOICES = [
        (TYPE_ADD, 'Add'),
        (TYPE_EDIT, 'Edit'),
        (TYPE_DELETE, 'Delete'),
    ]
    STATUS_PENDING = 'Pending'
    STATUS_APPROVED = 'Approved'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
    ]

    request_id = models.CharField(max_length=32, unique=True)
    request_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    admin_action = models.BooleanField(default=False)
    is_long_set = models.BooleanField(default=False)
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='requests')
    details = models.JSONField(default=dict, blank=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='product_requests')
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='approved_product_requests')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.request_id

    @property
    def is_approved(self):
        return self.status == self.STATUS_APPROVED

    class Meta:
        db_table = 'product_requests'
        ordering = ['-created_at']


class LongSetProduct(models.Model):
    """
    A product assembled from separately sourced parts.

    Name, price and stock live on the underlying ``Product`` so the set is
    listed and sold like any other piece; this row only carries the parts.
    """
    product = models.OneToOneField(Product, on_delete=models.CASCADE, related_name='long_set')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Long set {self.product.sku}"

    @property
    def total_parts_cost(self):
        return sum((part.cost_price or Decimal('0.00') for part in self.parts.all()), Decimal('0.00'))

    class Meta:
        db_table = 'long_set_products'
        ordering = ['-created_at']


class LongSetPart(models.Model):
    long_set = models.ForeignKey(LongSetProduct, on_delete=models.CASCADE, related_name='parts')
    part_name = models.CharField(max_length=255)
    part_description = models.TextField(blank=True, null=True)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    karigar = models.ForeignKey('khata.Karigar', on_delete=models.SET_NULL, null=True, blank=True, related_name='long_set_parts')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.part_name

    class Meta:
        db_table = 'long_set_parts'
        ordering = ['id']
