"""
Approval workflow and reference numbering.

Anything a non-admin creates starts pending. An admin either approves it,
which stamps ``approved_by`` once, or rejects it, which deletes the row.
Deciding on something that is already approved is a conflict.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from jewelbook.core.exceptions import Conflict, NotFound
from jewelbook.core.permissions import is_admin_user, require_admin
from jewelbook.core.utils import create_audit_log

from .models import LedgerSequence

logger = logging.getLogger(__name__)


def next_reference(prefix, year=None):
    """
    Allocate the next ``{prefix}-{year}-{seq:04d}`` reference.

    The counter row is locked for the rest of the caller's transaction, so
    concurrent creators are serialized instead of reading the same count.
    """
    if year is None:
        year = timezone.now().year
    with transaction.atomic():
        sequence, _ = LedgerSequence.objects.select_for_update().get_or_create(prefix=prefix, year=year)
        LedgerSequence.objects.filter(pk=sequence.pk).update(last_value=F('last_value') + 1)
        sequence.refresh_from_db(fields=['last_value'])
    return f"{prefix}-{year}-{sequence.last_value:04d}"


def approval_fields(user):
    """Initial approval state for an entity created by ``user``"""
    if is_admin_user(user):
        return {'is_approved': True, 'approved_by': user}
    return {'is_approved': False, 'approved_by': None}


def _reference(entity):
    for field in ('transaction_id', 'payment_id', 'request_id'):
        value = getattr(entity, field, None)
        if value:
            return value
    return None


def decide(model, pk, approve, admin, label, request=None):
    """
    Approve or reject the pending ``model`` row ``pk``.

    Returns the approved entity, or None when it was rejected (deleted).
    """
    require_admin(admin, f'Forbidden. Only admin can approve or reject {label.lower()}s.')

    with transaction.atomic():
        entity = model.objects.select_for_update().filter(pk=pk).first()
        if entity is None:
            raise NotFound(f'{label} not found')
        if entity.is_approved:
            raise Conflict(f'{label} is already approved')

        reference = _reference(entity)
        name = getattr(entity, 'name', None) or reference
        if approve:
            entity.is_approved = True
            entity.approved_by = admin
            update_fields = ['is_approved', 'approved_by', 'updated_at']
            if hasattr(entity, 'status'):
                entity.status = entity.status or 'Active'
                update_fields.append('status')
            entity.save(update_fields=update_fields)
            create_audit_log(
                request=request, user=admin, action='approve',
                model_name=model.__name__, object_id=pk,
                object_name=name, object_reference=reference,
            )
            logger.info(f"{label} {reference or pk} approved by {admin.username}")
            return entity

        entity.delete()
        create_audit_log(
            request=request, user=admin, action='reject',
            model_name=model.__name__, object_id=pk,
            object_name=name, object_reference=reference,
        )
        logger.info(f"{label} {reference or pk} rejected and removed by {admin.username}")
        return None
