import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelbook.core.exceptions import Forbidden, NotFound, ValidationError
from jewelbook.core.permissions import IsAdminRole, is_admin_user
from jewelbook.core.utils import create_audit_log

from .kinds import KINDS, get_kind
from .ledger import compute_balance
from .serializers import SERIALIZERS, ApprovalDecisionSerializer, CounterpartyStatusSerializer
from .services import force_delete_counterparty
from .workflow import approval_fields, decide, next_reference

logger = logging.getLogger(__name__)


def visible_counterparties(kind, user):
    """Counterparties ``user`` may read: admins see all, others approved or their own"""
    queryset = kind.model.objects.select_related('created_by', 'approved_by')
    if is_admin_user(user):
        return queryset
    return queryset.filter(Q(is_approved=True) | Q(created_by=user))


def get_visible_counterparty(kind, pk, user):
    counterparty = visible_counterparties(kind, user).filter(pk=pk).first()
    if counterparty is None:
        raise NotFound(f'{kind.label} not found')
    return counterparty


# Counterparty views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def counterparty_list_create(request, kind):
    """List traders/artisans or create a new one (pending unless created by an admin)"""
    kind = get_kind(kind)
    serializer_class = SERIALIZERS[kind.slug][0]

    if request.method == 'GET':
        queryset = kind.model.objects.select_related('created_by', 'approved_by')
        if not is_admin_user(request.user):
            queryset = queryset.filter(Q(is_approved=True, status='Active') | Q(created_by=request.user))
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(phone__icontains=search))
        serializer = serializer_class(queryset.order_by('name'), many=True)
        return Response(serializer.data)

    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    counterparty = serializer.save(created_by=request.user, **approval_fields(request.user))
    create_audit_log(
        request=request, action='create', model_name=kind.model.__name__,
        object_id=counterparty.pk, object_name=counterparty.name,
    )
    logger.info(f"{kind.label} '{counterparty.name}' created by {request.user.username} (approved={counterparty.is_approved})")
    return Response(serializer_class(counterparty).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def counterparty_detail(request, kind, pk):
    """Retrieve or update a trader/artisan; only admins may change status"""
    kind = get_kind(kind)
    serializer_class = SERIALIZERS[kind.slug][0]
    counterparty = get_visible_counterparty(kind, pk, request.user)

    if request.method == 'GET':
        return Response(serializer_class(counterparty).data)

    is_admin = is_admin_user(request.user)
    if not is_admin and counterparty.created_by_id != request.user.id:
        raise Forbidden(f'Forbidden. You can only edit {kind.label.lower()}s you created.')

    new_status = None
    if 'status' in request.data:
        if not is_admin:
            raise Forbidden('Forbidden. Only admin can change status.')
        status_serializer = CounterpartyStatusSerializer(data={'status': request.data.get('status')})
        status_serializer.is_valid(raise_exception=True)
        new_status = status_serializer.validated_data['status']

    serializer = serializer_class(counterparty, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    extra = {'status': new_status} if new_status else {}
    counterparty = serializer.save(**extra)
    create_audit_log(
        request=request, action='update', model_name=kind.model.__name__,
        object_id=counterparty.pk, object_name=counterparty.name,
        changes={key: str(value) for key, value in serializer.validated_data.items()} | extra,
    )
    return Response(serializer_class(counterparty).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def counterparty_approve(request, kind, pk):
    """Approve (``approve: true``) or reject and delete (``approve: false``) a pending counterparty"""
    kind = get_kind(kind)
    decision = ApprovalDecisionSerializer(data=request.data)
    decision.is_valid(raise_exception=True)
    approve = decision.validated_data['approve']

    entity = decide(kind.model, pk, approve, request.user, kind.label, request=request)
    if approve:
        return Response({
            'message': f'{kind.label} approved successfully',
            kind.fk_name: SERIALIZERS[kind.slug][0](entity).data,
        })
    return Response({'message': f'{kind.label} rejected successfully', 'deletedId': int(pk)})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def counterparty_force_delete(request, kind, pk):
    """Irreversibly delete a counterparty together with its transactions and payments"""
    kind = get_kind(kind)
    deleted_id = force_delete_counterparty(kind, pk, request.user, request=request)
    return Response({
        'message': f'{kind.label} and all associated records deleted successfully',
        'deletedId': int(deleted_id),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def counterparty_pending(request, kind):
    """Counterparties waiting for an admin decision"""
    kind = get_kind(kind)
    queryset = kind.model.objects.filter(is_approved=False).select_related('created_by').order_by('-created_at')
    serializer = SERIALIZERS[kind.slug][0](queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def counterparty_balance(request, kind, pk):
    """Running balance computed from approved transactions and payments"""
    kind = get_kind(kind)
    counterparty = get_visible_counterparty(kind, pk, request.user)
    return Response({'balance': compute_balance(counterparty, kind.policy)})


# Transaction views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transaction_list_create(request, kind, pk):
    """List a counterparty's transactions or record a new one"""
    kind = get_kind(kind)
    serializer_class = SERIALIZERS[kind.slug][1]

    if request.method == 'GET':
        counterparty = get_visible_counterparty(kind, pk, request.user)
        queryset = counterparty.transactions.select_related('created_by', 'approved_by', kind.fk_name).order_by('-created_at')
        return Response(serializer_class(queryset, many=True).data)

    counterparty = kind.model.objects.filter(pk=pk, is_approved=True).first()
    if counterparty is None:
        raise NotFound(f'{kind.label} not found or not approved')

    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        ledger_transaction = serializer.save(
            transaction_id=next_reference(kind.transaction_prefix),
            created_by=request.user,
            **{kind.fk_name: counterparty},
            **approval_fields(request.user),
        )
    logger.info(f"Transaction {ledger_transaction.transaction_id} of {ledger_transaction.amount} recorded for {kind.label} {counterparty.pk}")
    return Response(serializer_class(ledger_transaction).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def transaction_pending(request, kind):
    """Transactions waiting for an admin decision, across all counterparties of a kind"""
    kind = get_kind(kind)
    queryset = kind.transaction_model.objects.filter(is_approved=False).select_related(kind.fk_name, 'created_by').order_by('-created_at')
    return Response(SERIALIZERS[kind.slug][1](queryset, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def transaction_approve(request, kind, pk):
    """Approve or reject a pending transaction"""
    kind = get_kind(kind)
    decision = ApprovalDecisionSerializer(data=request.data)
    decision.is_valid(raise_exception=True)
    approve = decision.validated_data['approve']

    entity = decide(kind.transaction_model, pk, approve, request.user, 'Transaction', request=request)
    if approve:
        return Response({
            'message': 'Transaction approved successfully',
            'transaction': SERIALIZERS[kind.slug][1](entity).data,
        })
    return Response({'message': 'Transaction rejected successfully', 'deletedId': int(pk)})


# Payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_list_create(request, kind, pk):
    """List a counterparty's payments or record a new one"""
    kind = get_kind(kind)
    serializer_class = SERIALIZERS[kind.slug][2]

    if request.method == 'GET':
        counterparty = get_visible_counterparty(kind, pk, request.user)
        queryset = counterparty.payments.select_related('created_by', 'approved_by', kind.fk_name).order_by('-created_at')
        return Response(serializer_class(queryset, many=True).data)

    counterparty = kind.model.objects.filter(pk=pk, is_approved=True).first()
    if counterparty is None:
        raise NotFound(f'{kind.label} not found or not approved')

    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    with transaction.atomic():
        payment = serializer.save(
            payment_id=next_reference(kind.payment_prefix),
            created_by=request.user,
            **{kind.fk_name: counterparty},
            **approval_fields(request.user),
        )
    logger.info(f"Payment {payment.payment_id} of {payment.amount} recorded for {kind.label} {counterparty.pk}")
    return Response(serializer_class(payment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payment_pending(request, kind):
    """Payments waiting for an admin decision, across all counterparties of a kind"""
    kind = get_kind(kind)
    queryset = kind.payment_model.objects.filter(is_approved=False).select_related(kind.fk_name, 'created_by').order_by('-created_at')
    return Response(SERIALIZERS[kind.slug][2](queryset, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payment_approve(request, kind, pk):
    """Approve or reject a pending payment"""
    kind = get_kind(kind)
    decision = ApprovalDecisionSerializer(data=request.data)
    decision.is_valid(raise_exception=True)
    approve = decision.validated_data['approve']

    entity = decide(kind.payment_model, pk, approve, request.user, 'Payment', request=request)
    if approve:
        return Response({
            'message': 'Payment approved successfully',
            'payment': SERIALIZERS[kind.slug][2](entity).data,
        })
    return Response({'message': 'Payment rejected successfully', 'deletedId': int(pk)})


# Analytics
def _kind_summary(kind, since):
    approved_transactions = kind.transaction_model.objects.filter(is_approved=True)
    approved_payments = kind.payment_model.objects.filter(is_approved=True)
    recent_transactions = approved_transactions.filter(created_at__gte=since)
    recent_payments = approved_payments.filter(created_at__gte=since)

    transaction_total = approved_transactions.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    payment_total = approved_payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    counts = kind.model.objects.aggregate(
        total=Count('id'),
        approved=Count('id', filter=Q(is_approved=True)),
        active=Count('id', filter=Q(is_approved=True, status='Active')),
    )
    return {
        'counterparties': counts['total'],
        'approved_counterparties': counts['approved'],
        'active_counterparties': counts['active'],
        'pending_counterparties': counts['total'] - counts['approved'],
        'pending_transactions': kind.transaction_model.objects.filter(is_approved=False).count(),
        'pending_payments': kind.payment_model.objects.filter(is_approved=False).count(),
        'period_transaction_count': recent_transactions.count(),
        'period_transaction_total': recent_transactions.aggregate(total=Sum('amount'))['total'] or Decimal('0.00'),
        'period_payment_count': recent_payments.count(),
        'period_payment_total': recent_payments.aggregate(total=Sum('amount'))['total'] or Decimal('0.00'),
        'outstanding_balance': kind.policy.combine(transaction_total, payment_total),
        'recent_transactions': [
            {
                'transaction_id': t.transaction_id,
                'counterparty': t.counterparty.name,
                'amount': t.amount,
                'description': t.description,
                'created_at': t.created_at,
            }
            for t in recent_transactions.select_related(kind.fk_name).order_by('-created_at')[:10]
        ],
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def khata_analytics(request):
    """Counts, period totals and outstanding balances per account kind"""
    try:
        days = int(request.query_params.get('days', 30))
    except (TypeError, ValueError):
        raise ValidationError('days must be an integer')
    if days <= 0:
        raise ValidationError('days must be positive')

    requested = request.query_params.get('type', 'all')
    slugs = {'all': list(KINDS), 'vyapari': ['vyaparis'], 'karigar': ['karigars']}.get(requested)
    if slugs is None:
        raise ValidationError("type must be one of 'all', 'vyapari', 'karigar'")

    since = timezone.now() - timedelta(days=days)
    data = {'days': days, 'type': requested}
    for slug in slugs:
        data[KINDS[slug].fk_name] = _kind_summary(KINDS[slug], since)
    return Response(data)
