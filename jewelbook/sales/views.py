import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelbook.core.exceptions import NotFound, ValidationError
from jewelbook.core.permissions import is_admin_user, require_admin
from jewelbook.core.utils import create_audit_log
from jewelbook.khata.workflow import next_reference

from .models import Bill, SalesItem, SalesRequest, SalesTransaction
from .serializers import (
    BillSerializer, SalesRequestCreateSerializer, SalesRequestDecisionSerializer,
    SalesRequestSerializer, SalesTransactionSerializer,
)
from .services import create_sales_request, decide_sales_request

logger = logging.getLogger(__name__)

RECENT_SALES_LIMIT = 5


def _period_days(request, default=30):
    try:
        days = int(request.query_params.get('days', default))
    except (TypeError, ValueError):
        raise ValidationError('days must be an integer')
    if days <= 0:
        raise ValidationError('days must be positive')
    return days


def _bill_cutoff():
    return timezone.now() - timedelta(days=getattr(settings, 'BILL_RETENTION_DAYS', 60))


# SalesRequest views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def sales_request_list_create(request):
    """List sales requests (own ones for non-admins) or submit a new one"""
    if request.method == 'GET':
        queryset = SalesRequest.objects.select_related('user', 'approved_by').prefetch_related('items__product')
        if not is_admin_user(request.user):
            queryset = queryset.filter(user=request.user)
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status__iexact=status_filter)
        return Response(SalesRequestSerializer(queryset.order_by('-created_at'), many=True).data)

    serializer = SalesRequestCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    sales_request = create_sales_request(
        request.user,
        serializer.validated_data['customer'],
        serializer.validated_data['items'],
    )
    return Response(SalesRequestSerializer(sales_request).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def sales_request_detail(request, pk):
    """Retrieve a sales request or (admin) approve/reject it"""
    queryset = SalesRequest.objects.select_related('user', 'approved_by').prefetch_related('items__product')
    if not is_admin_user(request.user):
        queryset = queryset.filter(user=request.user)
    sales_request = queryset.filter(pk=pk).first()
    if sales_request is None:
        raise NotFound('Sales request not found')

    if request.method == 'GET':
        return Response(SalesRequestSerializer(sales_request).data)

    require_admin(request.user, 'Forbidden. Only admin can approve or reject sales requests.')
    decision = SalesRequestDecisionSerializer(data=request.data)
    decision.is_valid(raise_exception=True)
    sales_request = decide_sales_request(pk, decision.validated_data['status'] == 'Approved', request.user, request=request)
    return Response({
        'message': f'Sales request {sales_request.status.lower()} successfully',
        'request': SalesRequestSerializer(sales_request).data,
    })


# SalesTransaction views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def recent_sales(request):
    """The most recent completed sales"""
    queryset = SalesTransaction.objects.select_related('user', 'sales_request').order_by('-created_at')
    if not is_admin_user(request.user):
        queryset = queryset.filter(user=request.user)
    return Response(SalesTransactionSerializer(queryset[:RECENT_SALES_LIMIT], many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sales_analytics(request):
    """Revenue, order counts, daily trend and best sellers over the last ``days`` days"""
    days = _period_days(request)
    since = timezone.now() - timedelta(days=days)
    sales = SalesTransaction.objects.filter(created_at__gte=since)

    summary = sales.aggregate(revenue=Sum('total_amount'), orders=Count('id'))
    revenue = summary['revenue'] or Decimal('0.00')
    orders = summary['orders']

    daily = (
        sales.annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(revenue=Sum('total_amount'), orders=Count('id'))
        .order_by('day')
    )

    top_products = (
        SalesItem.objects.filter(
            sales_request__status=SalesRequest.STATUS_APPROVED,
            sales_request__updated_at__gte=since,
        )
        .annotate(label=Coalesce('product__name', 'product_name'))
        .values('label')
        .annotate(quantity=Sum('quantity'))
        .order_by('-quantity', 'label')[:5]
    )

    pending = SalesRequest.objects.aggregate(
        pending=Count('id', filter=Q(status=SalesRequest.STATUS_PENDING)),
    )['pending']

    return Response({
        'days': days,
        'revenue': revenue,
        'orders': orders,
        'average_order_value': (revenue / orders).quantize(Decimal('0.01')) if orders else Decimal('0.00'),
        'pending_requests': pending,
        'daily': [
            {'date': row['day'], 'revenue': row['revenue'], 'orders': row['orders']}
            for row in daily
        ],
        'top_products': [
            {'name': row['label'] or 'Deleted product', 'quantity': row['quantity']}
            for row in top_products
        ],
    })


# Bill views
@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated])
def bill_list_create(request):
    """
    GET lists bills of the retention window, POST creates (or previews) a bill,
    DELETE purges bills older than the retention window.
    """
    if request.method == 'GET':
        queryset = Bill.objects.select_related('user').filter(date__gte=_bill_cutoff())
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(customer_name__icontains=search) | Q(bill_number__icontains=search))
        bill_type = request.query_params.get('bill_type')
        if bill_type:
            queryset = queryset.filter(bill_type=bill_type)
        return Response(BillSerializer(queryset.order_by('-date'), many=True).data)

    if request.method == 'DELETE':
        require_admin(request.user, 'Forbidden. Only admin can purge old bills.')
        deleted, _ = Bill.objects.filter(date__lt=_bill_cutoff()).delete()
        create_audit_log(
            request=request, action='bill_purge', model_name='Bill', object_id='bulk',
            changes={'deleted': deleted},
        )
        logger.info(f"Purged {deleted} bills older than the retention window")
        return Response({'message': f'{deleted} old bills deleted', 'deleted': deleted})

    serializer = BillSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    preview = str(request.data.get('preview', request.data.get('is_preview', ''))).lower() in ('true', '1')
    if preview:
        return Response(serializer.preview())

    with transaction.atomic():
        bill = serializer.save(bill_number=next_reference('BILL'), user=request.user)
        create_audit_log(
            request=request, action='bill_create', model_name='Bill', object_id=bill.pk,
            object_name=bill.customer_name, object_reference=bill.bill_number,
            changes={'total_amount': str(bill.total_amount), 'bill_type': bill.bill_type},
        )
    return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def bill_detail(request, pk):
    """Retrieve, update or delete a bill"""
    bill = get_object_or_404(Bill.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(BillSerializer(bill).data)

    if not is_admin_user(request.user) and bill.user_id != request.user.id:
        require_admin(request.user, 'Forbidden. You can only change bills you created.')

    if request.method == 'DELETE':
        create_audit_log(
            request=request, action='delete', model_name='Bill', object_id=bill.pk,
            object_name=bill.customer_name, object_reference=bill.bill_number,
        )
        bill.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = BillSerializer(bill, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    bill = serializer.save()
    create_audit_log(
        request=request, action='update', model_name='Bill', object_id=bill.pk,
        object_name=bill.customer_name, object_reference=bill.bill_number,
        changes={'total_amount': str(bill.total_amount)},
    )
    return Response(BillSerializer(bill).data)
