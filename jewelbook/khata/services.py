import logging

from django.db import transaction

from jewelbook.core.exceptions import NotFound
from jewelbook.core.permissions import require_admin
from jewelbook.core.utils import create_audit_log

logger = logging.getLogger(__name__)


def force_delete_counterparty(kind, pk, admin, request=None):
    """Erase a counterparty with every transaction and payment recorded against it"""
    require_admin(admin, f'Forbidden. Only admin can force delete {kind.label.lower()}s.')

    with transaction.atomic():
        counterparty = kind.model.objects.select_for_update().filter(pk=pk).first()
        if counterparty is None:
            raise NotFound(f'{kind.label} not found')

        transactions_deleted, _ = counterparty.transactions.all().delete()
        payments_deleted, _ = counterparty.payments.all().delete()
        name = counterparty.name
        counterparty.delete()

        create_audit_log(
            request=request, user=admin, action='force_delete',
            model_name=kind.model.__name__, object_id=pk, object_name=name,
            changes={'transactions_deleted': transactions_deleted, 'payments_deleted': payments_deleted},
        )

    logger.info(f"Force deleted {kind.label} {pk} ({name}): {transactions_deleted} transactions, {payments_deleted} payments")
    return pk
