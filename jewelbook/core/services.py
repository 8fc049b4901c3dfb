"""
User administration: role changes and the account deletion cascade.

Deleting a user must not erase business history. Their products and decided
requests move to another admin, sales lines keep a copy of the product they
referred to, and only personal data (todos, notifications, their completed
sales records) is removed. The whole cascade commits or fails as one unit;
the identity-provider account is removed afterwards on a best-effort basis.
"""
import logging

from django.conf import settings
from django.db import connection, transaction

from jewelbook.catalog.cache import invalidate_product_lists
from jewelbook.catalog.models import Product, ProductRequest
from jewelbook.catalog.services import preserve_sales_history
from jewelbook.khata.kinds import KINDS
from jewelbook.sales.models import Bill, SalesRequest, SalesTransaction

from .exceptions import NotFound, ValidationError
from .identity import get_identity_client
from .models import Notification, Todo, User
from .permissions import require_admin
from .utils import create_audit_log

logger = logging.getLogger(__name__)


def select_fallback_admin(target):
    """Any other admin to inherit ``target``'s records, or None"""
    return User.objects.filter(role=User.ROLE_ADMIN).exclude(pk=target.pk).order_by('id').first()


def _harden_cascade_transaction(outermost):
    """Serializable isolation and a longer statement timeout on PostgreSQL"""
    if connection.vendor != 'postgresql':
        return
    timeout = int(getattr(settings, 'CASCADE_DELETE_TIMEOUT_MS', 30000))
    with connection.cursor() as cursor:
        if outermost:
            cursor.execute('SET TRANSACTION ISOLATION LEVEL SERIALIZABLE')
        cursor.execute(f'SET LOCAL statement_timeout = {timeout}')


def _reassign_khata_records(target, fallback):
    moved = 0
    for kind in KINDS.values():
        for model in (kind.model, kind.transaction_model, kind.payment_model):
            moved += model.objects.filter(created_by=target).update(created_by=fallback)
    return moved


def delete_user(target_id, actor, request=None):
    """
    Delete a user and re-home or remove everything that references them.

    Returns a summary dict of what happened to each kind of record.
    """
    require_admin(actor, 'Forbidden. Only admin can delete users.')
    target = User.objects.filter(pk=target_id).first()
    if target is None:
        raise NotFound('User not found')
    if target.pk == actor.pk:
        raise ValidationError('Cannot delete your own account')

    external_id = target.external_id
    username = target.username
    outermost = not connection.in_atomic_block

    with transaction.atomic():
        _harden_cascade_transaction(outermost)
        fallback = select_fallback_admin(target)

        owned_products = Product.objects.filter(user=target)
        detached_items = preserve_sales_history(owned_products)
        if fallback is not None:
            products_reassigned = owned_products.update(user=fallback)
            transaction.on_commit(invalidate_product_lists)
            products_deleted = 0
        else:
            products_reassigned = 0
            products_deleted, _ = owned_products.delete()

        sales_requests_deleted, _ = SalesRequest.objects.filter(
            user=target, status=SalesRequest.STATUS_PENDING).delete()
        product_requests_deleted, _ = ProductRequest.objects.filter(
            user=target, status=ProductRequest.STATUS_PENDING).delete()
        if fallback is not None:
            sales_requests_reassigned = SalesRequest.objects.filter(user=target).update(user=fallback)
            product_requests_reassigned = ProductRequest.objects.filter(user=target).update(user=fallback)
            bills_reassigned = Bill.objects.filter(user=target).update(user=fallback)
            khata_reassigned = _reassign_khata_records(target, fallback)
        else:
            sales_requests_reassigned = product_requests_reassigned = bills_reassigned = khata_reassigned = 0
            if SalesRequest.objects.filter(user=target).exists() or ProductRequest.objects.filter(user=target).exists():
                logger.warning(f"No admin left to inherit decided requests of user {username}; they will be unowned")

        todos_deleted, _ = Todo.objects.filter(user=target).delete()
        sales_deleted, _ = SalesTransaction.objects.filter(user=target).delete()
        notifications_deleted, _ = Notification.objects.filter(user=target).delete()

        target.delete()

        summary = {
            'fallback_admin': fallback.pk if fallback else None,
            'sales_items_detached': detached_items,
            'products_reassigned': products_reassigned,
            'products_deleted': products_deleted,
            'sales_requests_deleted': sales_requests_deleted,
            'sales_requests_reassigned': sales_requests_reassigned,
            'product_requests_deleted': product_requests_deleted,
            'product_requests_reassigned': product_requests_reassigned,
            'bills_reassigned': bills_reassigned,
            'khata_records_reassigned': khata_reassigned,
            'todos_deleted': todos_deleted,
            'sales_transactions_deleted': sales_deleted,
            'notifications_deleted': notifications_deleted,
        }
        create_audit_log(
            request=request, user=actor, action='user_delete', model_name='User',
            object_id=target_id, object_name=username, changes=summary,
        )
        transaction.on_commit(lambda: get_identity_client().delete_account(external_id))

    logger.info(f"User {username} ({target_id}) deleted by {actor.username}: {summary}")
    return summary


def change_role(target_id, role, actor, request=None):
    """Set the local role and mirror it to the identity provider after commit"""
    require_admin(actor, 'Forbidden. Only admin can change roles.')
    if role not in dict(User.ROLE_CHOICES):
        raise ValidationError('Invalid role specified')

    with transaction.atomic():
        target = User.objects.select_for_update().filter(pk=target_id).first()
        if target is None:
            raise NotFound('User not found')
        old_role = target.role
        target.role = role
        target.save(update_fields=['role', 'updated_at'])
        create_audit_log(
            request=request, user=actor, action='role_change', model_name='User',
            object_id=target.pk, object_name=target.username,
            changes={'role': {'old': old_role, 'new': role}},
        )
        external_id = target.external_id
        transaction.on_commit(lambda: get_identity_client().update_role(external_id, role))

    logger.info(f"Role of {target.username} changed from {old_role} to {role} by {actor.username}")
    return target
