import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F

from jewelbook.catalog.cache import invalidate_product_lists
from jewelbook.catalog.models import Product
from jewelbook.core.exceptions import InvalidState, NotFound, ValidationError
from jewelbook.core.permissions import require_admin
from jewelbook.core.utils import create_audit_log, notify_user
from jewelbook.khata.workflow import next_reference

from .models import SalesItem, SalesRequest, SalesTransaction

logger = logging.getLogger(__name__)


def create_sales_request(user, customer, items):
    """
    Record a proposed sale.

    ``items`` is a list of ``{'product': Product, 'quantity': int}``; each
    product must have enough stock right now, though stock is only taken
    when an admin approves.
    """
    total_value = Decimal('0.00')
    for item in items:
        product = item['product']
        if product.stock < item['quantity']:
            raise ValidationError(f'Insufficient stock for {product.name} (available {product.stock})')
        total_value += product.price * item['quantity']

    with transaction.atomic():
        sales_request = SalesRequest.objects.create(
            request_id=next_reference('SR'),
            customer=customer,
            total_value=total_value,
            user=user,
        )
        SalesItem.objects.bulk_create([
            SalesItem(
                sales_request=sales_request,
                product=item['product'],
                product_name=item['product'].name,
                product_sku=item['product'].sku,
                quantity=item['quantity'],
                price=item['product'].price,
            )
            for item in items
        ])
    logger.info(f"Sales request {sales_request.request_id} for {customer} ({total_value}) created by {user.username}")
    return sales_request


def _complete_sale(sales_request, admin):
    """Take stock for every line and record the completed sale"""
    snapshot = []
    for item in sales_request.items.all():
        if item.product_id is None:
            raise ValidationError(f'Product {item.product_name or item.pk} no longer exists')
        product = Product.objects.select_for_update().get(pk=item.product_id)
        if product.stock < item.quantity:
            raise ValidationError(f'Insufficient stock for {product.name} (available {product.stock})')
        Product.objects.filter(pk=product.pk).update(stock=F('stock') - item.quantity)
        snapshot.append({
            'product_id': product.pk,
            'name': product.name,
            'sku': product.sku,
            'quantity': item.quantity,
            'price': str(item.price),
        })

    # Stock moved through a bulk update, which skips post_save
    transaction.on_commit(invalidate_product_lists)
    return SalesTransaction.objects.create(
        order_id=next_reference('ORD'),
        customer=sales_request.customer,
        items=snapshot,
        total_amount=sales_request.total_value,
        sales_request=sales_request,
        user=sales_request.user or admin,
    )


def decide_sales_request(pk, approve, admin, request=None):
    """Approve (take stock, record the sale) or reject a pending sales request"""
    require_admin(admin, 'Forbidden. Only admin can approve or reject sales requests.')

    with transaction.atomic():
        sales_request = SalesRequest.objects.select_for_update().filter(pk=pk).first()
        if sales_request is None:
            raise NotFound('Sales request not found')
        if sales_request.status != SalesRequest.STATUS_PENDING:
            raise InvalidState(f'Sales request is already {sales_request.status.lower()}')

        sale = None
        if approve:
            sale = _complete_sale(sales_request, admin)
            sales_request.status = SalesRequest.STATUS_APPROVED
        else:
            sales_request.status = SalesRequest.STATUS_REJECTED
        sales_request.approved_by = admin
        sales_request.save(update_fields=['status', 'approved_by', 'updated_at'])

        create_audit_log(
            request=request, user=admin, action='stock_sale' if approve else 'reject',
            model_name='SalesRequest', object_id=pk, object_name=sales_request.customer,
            object_reference=sales_request.request_id,
            changes={'status': sales_request.status, 'order_id': sale.order_id if sale else None},
        )
        notify_user(
            sales_request.user,
            f'Sales Request {sales_request.status}',
            f'Your sales request ({sales_request.request_id}) for {sales_request.customer} has been {sales_request.status.lower()}.',
            type='success' if approve else 'error',
        )
    logger.info(f"Sales request {sales_request.request_id} {sales_request.status.lower()} by {admin.username}")
    return sales_request
