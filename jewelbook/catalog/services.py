"""
Catalog operations shared by the product views, the product request
workflow and the user deletion cascade.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import OuterRef, Subquery

from jewelbook.core.exceptions import Conflict, NotFound, ValidationError
from jewelbook.core.permissions import require_admin
from jewelbook.core.utils import create_audit_log, notify_user
from jewelbook.khata.models import Karigar, KarigarTransaction
from jewelbook.khata.workflow import next_reference
from jewelbook.sales.models import SalesItem

from . import storage
from .models import LongSetPart, LongSetProduct, Product, ProductRequest
from .serializers import ProductSerializer

logger = logging.getLogger(__name__)

APPLICABLE_FIELDS = ['name', 'sku', 'description', 'category', 'material', 'price', 'cost_price',
                     'stock', 'low_stock_threshold', 'image_url', 'supplier']


def preserve_sales_history(products):
    """
    Copy name and SKU onto the sales items of ``products`` and detach them.

    Must run before the products themselves are deleted or reassigned away.
    """
    items = SalesItem.objects.filter(product__in=products)
    product = Product.objects.filter(pk=OuterRef('product_id'))
    items.update(
        product_name=Subquery(product.values('name')[:1]),
        product_sku=Subquery(product.values('sku')[:1]),
    )
    return SalesItem.objects.filter(product__in=products).update(product=None)


def delete_product(product, user=None, request=None):
    """Delete a product, keeping its sales history readable"""
    image_url = product.image_url
    product_id = product.pk
    with transaction.atomic():
        detached = preserve_sales_history(Product.objects.filter(pk=product_id))
        create_audit_log(
            request=request, user=user, action='delete', model_name='Product',
            object_id=product_id, object_name=product.name, object_reference=product.sku,
        )
        product.delete()
        transaction.on_commit(lambda: storage.delete_image(image_url))
    logger.info(f"Deleted product {product_id} ({product.sku}); {detached} sales items detached")
    return product_id


def record_admin_action(admin, request_type, product, details=None, is_long_set=False):
    """Log a direct admin change to the catalog as an already approved request"""
    return ProductRequest.objects.create(
        request_id=next_reference('PR'),
        request_type=request_type,
        status=ProductRequest.STATUS_APPROVED,
        admin_action=True,
        is_long_set=is_long_set,
        product=product if request_type != ProductRequest.TYPE_DELETE else None,
        details=details or {},
        user=admin,
        approved_by=admin,
    )


def find_supplier_karigar(supplier):
    """Approved karigar whose name contains the free-text supplier, if any"""
    if not supplier:
        return None
    supplier = supplier.strip()
    if not supplier:
        return None
    return Karigar.objects.filter(is_approved=True, name__iexact=supplier).first() or \
        Karigar.objects.filter(is_approved=True, name__icontains=supplier).order_by('name').first()


def _book_karigar_debt(karigar_id, product, quantity, unit_cost, admin, description, part_name=None):
    """Auto-approved transaction for ``quantity`` x ``unit_cost`` owed to a karigar"""
    amount = (unit_cost or Decimal('0.00')) * quantity
    if amount <= 0:
        return None
    item = {
        'product_id': product.pk,
        'name': product.name,
        'sku': product.sku,
        'quantity': quantity,
        'unit_cost': str(unit_cost),
    }
    if part_name:
        item['part'] = part_name
    ledger_transaction = KarigarTransaction.objects.create(
        transaction_id=next_reference('KT'),
        karigar_id=karigar_id,
        amount=amount,
        description=description,
        items=[item],
        is_approved=True,
        created_by=admin,
        approved_by=admin,
    )
    logger.info(f"Recorded {amount} owed to karigar {karigar_id} for {quantity} x {product.sku}")
    return ledger_transaction


def record_supplier_debt(product, quantity, admin, description):
    """
    Book what we owe the supplying karigar for ``quantity`` new pieces.

    Returns the auto-approved transaction, or None when there is no matching
    karigar or nothing is owed.
    """
    karigar = find_supplier_karigar(product.supplier)
    if karigar is None or not quantity or quantity <= 0:
        return None
    unit_cost = product.cost_price if product.cost_price is not None else product.price
    return _book_karigar_debt(karigar.pk, product, quantity, unit_cost, admin, description)


def _decimal_or_none(value):
    if value in (None, ''):
        return None
    return Decimal(str(value))


def save_long_set_parts(long_set, parts, admin, description):
    """
    Make the parts of ``long_set`` match ``parts`` (validated part dicts).

    Parts carrying an ``id`` are updated in place, the others are created and
    any part not listed is removed. Every new part, and every part whose
    karigar or cost changed, books cost x current stock to its karigar.
    """
    product = long_set.product
    existing = {part.pk: part for part in long_set.parts.select_for_update()}
    kept = []
    for data in parts:
        part_id = data.get('id')
        part = existing.get(part_id) if part_id else None
        if part_id and part is None:
            raise ValidationError(f'Part {part_id} does not belong to this long set')

        karigar_id = data.get('karigar') or None
        if karigar_id and not Karigar.objects.filter(pk=karigar_id).exists():
            raise ValidationError(f'Karigar {karigar_id} for part {data["part_name"]} no longer exists')
        cost_price = _decimal_or_none(data.get('cost_price'))
        changed = part is None or part.karigar_id != karigar_id or part.cost_price != cost_price
        if part is None:
            part = LongSetPart(long_set=long_set)
        part.part_name = data['part_name']
        part.part_description = data.get('part_description') or ''
        part.cost_price = cost_price
        part.karigar_id = karigar_id
        part.save()
        kept.append(part.pk)

        if changed and karigar_id and product.stock > 0:
            _book_karigar_debt(
                karigar_id, product, product.stock, cost_price, admin,
                f'{description}: {part.part_name} for {product.name} ({product.stock} units)',
                part_name=part.part_name,
            )

    removed, _ = long_set.parts.exclude(pk__in=kept).delete()
    if removed:
        logger.info(f"Removed {removed} parts from long set {product.sku}")
    return long_set


def create_long_set(product, parts, admin):
    """Turn ``product`` into a long set made of ``parts``"""
    long_set = LongSetProduct.objects.create(product=product)
    return save_long_set_parts(long_set, parts, admin, 'Long set product part')


def _product_values(details):
    values = {field: details[field] for field in APPLICABLE_FIELDS if field in details}
    # A cleared image falls back to the model default
    if values.get('image_url') is None:
        values.pop('image_url', None)
    return values


def _apply_add(product_request, admin):
    serializer = ProductSerializer(data=_product_values(product_request.details))
    serializer.is_valid(raise_exception=True)
    product = serializer.save(user=product_request.user or admin)
    if product_request.is_long_set:
        create_long_set(product, product_request.details.get('long_set_parts') or [], admin)
    else:
        record_supplier_debt(product, product.stock, admin, f'New product added: {product.name}')
    return product


def _apply_edit(product_request, admin):
    product = product_request.product
    if product is None:
        raise ValidationError('Product referenced by this request no longer exists')
    product = Product.objects.select_for_update().get(pk=product.pk)
    details = product_request.details

    serializer = ProductSerializer(product, data=_product_values(details), partial=True)
    serializer.is_valid(raise_exception=True)
    product = serializer.save()

    adjustment = int(details.get('stock_adjustment') or 0)
    if adjustment:
        if product.stock + adjustment < 0:
            raise ValidationError(f'Stock adjustment would make stock negative for {product.sku}')
        product.stock = product.stock + adjustment
        product.save(update_fields=['stock', 'updated_at'])

    if adjustment > 0:
        record_supplier_debt(product, adjustment, admin, f'Stock added for product: {product.name}')

    if product_request.is_long_set and 'long_set_parts' in details:
        long_set = LongSetProduct.objects.filter(product=product).first()
        if long_set is None:
            raise ValidationError(f'Product {product.sku} is not a long set')
        save_long_set_parts(long_set, details['long_set_parts'], admin, 'Updated long set product part')
    return product


def _apply_delete(product_request, admin):
    product = product_request.product
    if product is None:
        raise ValidationError('Product referenced by this request no longer exists')
    product_request.details = dict(product_request.details or {}, product_id=product.pk, name=product.name, sku=product.sku)
    delete_product(product, user=admin)
    return None


APPLIERS = {
    ProductRequest.TYPE_ADD: _apply_add,
    ProductRequest.TYPE_EDIT: _apply_edit,
    ProductRequest.TYPE_DELETE: _apply_delete,
}


def decide_product_request(pk, approve, admin, request=None):
    """
    Approve (apply the change) or reject (delete) a pending product request.

    Returns the approved request, or None when it was rejected.
    """
    require_admin(admin, 'Forbidden. Only admin can approve or reject product requests.')

    with transaction.atomic():
        product_request = ProductRequest.objects.select_for_update().filter(pk=pk).first()
        if product_request is None:
            raise NotFound('Product request not found')
        if product_request.status == ProductRequest.STATUS_APPROVED:
            raise Conflict('Product request is already approved')

        requester = product_request.user
        request_id = product_request.request_id
        request_type = product_request.request_type

        if not approve:
            product_request.delete()
            create_audit_log(
                request=request, user=admin, action='reject', model_name='ProductRequest',
                object_id=pk, object_reference=request_id,
            )
            notify_user(
                requester, 'Product Request Rejected',
                f'Your product {request_type} request ({request_id}) has been rejected.', type='error',
            )
            logger.info(f"Product request {request_id} rejected by {admin.username}")
            return None

        product = APPLIERS[request_type](product_request, admin)
        product_request.status = ProductRequest.STATUS_APPROVED
        product_request.approved_by = admin
        update_fields = ['status', 'approved_by', 'product', 'details', 'updated_at']
        # Deleted products leave the request pointing at nothing
        product_request.product = product
        product_request.save(update_fields=update_fields)

        create_audit_log(
            request=request, user=admin, action='approve', model_name='ProductRequest',
            object_id=pk, object_reference=request_id,
            object_name=product.name if product is not None else None,
        )
        notify_user(
            requester, 'Product Request Approved',
            f'Your product {request_type} request ({request_id}) has been approved.', type='success',
        )
    logger.info(f"Product request {request_id} ({request_type}) approved by {admin.username}")
    return product_request
