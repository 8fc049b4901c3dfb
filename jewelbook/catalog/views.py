import json
import logging

from django.core.cache import cache
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from jewelbook.core.exceptions import Forbidden, NotFound, ValidationError
from jewelbook.core.models import Setting
from jewelbook.core.permissions import is_admin_user, require_admin
from jewelbook.core.utils import create_audit_log
from jewelbook.khata.workflow import next_reference

from . import storage
from .cache import PRODUCT_LIST_CACHE_TTL, get_product_list_cache_key, invalidate_product_lists
from .filters import ProductFilter, ProductRequestFilter
from .models import PLACEHOLDER_IMAGE_URL, LongSetProduct, Product, ProductRequest, default_low_stock_threshold
from .serializers import (
    PRODUCT_FIELDS, LongSetPartInputSerializer, LongSetProductSerializer, ProductRequestDecisionSerializer,
    ProductRequestSerializer, ProductSerializer, json_ready,
)
from .services import (
    create_long_set, decide_product_request, delete_product, record_admin_action, record_supplier_debt,
)

logger = logging.getLogger(__name__)

NON_PRODUCT_FIELDS = ('image', 'remove_image', 'parts')
REQUEST_DETAIL_FIELDS = PRODUCT_FIELDS + ['stock_adjustment']
LOW_STOCK_SETTING_KEY = 'low_stock_threshold'


def _is_true(value):
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def _product_payload(request):
    """Request data without the upload-only keys; works for JSON and multipart"""
    return {key: request.data.get(key) for key in request.data.keys() if key not in NON_PRODUCT_FIELDS}


def _parts_payload(request, missing=None):
    """Parts from a JSON body, or from a multipart ``parts`` field holding JSON"""
    if 'parts' not in request.data:
        return missing
    parts = request.data.get('parts')
    if isinstance(parts, str):
        try:
            parts = json.loads(parts or '[]')
        except ValueError:
            raise ValidationError('parts: Invalid JSON')
    return parts if parts is not None else []


def _request_details(request):
    """Proposed product values for a long set request, including an uploaded image"""
    details = {key: value for key, value in _product_payload(request).items() if key in REQUEST_DETAIL_FIELDS}
    image = request.FILES.get('image')
    if image:
        details['image_url'] = storage.upload_image(image)
    return details


def _submit_product_request(request, data):
    """Store a product request; requests made by admins are applied straight away"""
    serializer = ProductRequestSerializer(data=data)
    serializer.is_valid(raise_exception=True)

    with transaction.atomic():
        product_request = serializer.save(request_id=next_reference('PR'), user=request.user)
        if is_admin_user(request.user):
            ProductRequest.objects.filter(pk=product_request.pk).update(admin_action=True)
            product_request = decide_product_request(product_request.pk, True, request.user, request=request)

    product_request.refresh_from_db()
    logger.info(f"Product request {product_request.request_id} ({product_request.request_type}) submitted by {request.user.username}")
    return product_request


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products or, for admins, create one directly"""
    if request.method == 'GET':
        cache_key = get_product_list_cache_key(request.GET.urlencode())
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            return Response(cached_data)

        queryset = Product.objects.select_related('user').order_by('-created_at')
        product_filter = ProductFilter(request.GET, queryset=queryset)
        if not product_filter.is_valid():
            raise ValidationError(f'Invalid filter: {product_filter.errors.as_text()}')
        data = ProductSerializer(product_filter.qs, many=True).data
        cache.set(cache_key, data, PRODUCT_LIST_CACHE_TTL)
        return Response(data)

    require_admin(request.user, 'Forbidden. Submit a product request to add products.')
    serializer = ProductSerializer(data=_product_payload(request))
    serializer.is_valid(raise_exception=True)

    image = request.FILES.get('image')
    image_url = storage.upload_image(image) if image else None

    with transaction.atomic():
        extra = {'user': request.user}
        if image_url:
            extra['image_url'] = image_url
        product = serializer.save(**extra)
        record_admin_action(request.user, ProductRequest.TYPE_ADD, product,
                            details={'name': product.name, 'sku': product.sku, 'stock': product.stock})
        record_supplier_debt(product, product.stock, request.user, f'New product added: {product.name}')
        create_audit_log(
            request=request, action='create', model_name='Product',
            object_id=product.pk, object_name=product.name, object_reference=product.sku,
        )
    logger.info(f"Product {product.sku} created by admin {request.user.username}")
    return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve a product; admins may also update or delete it"""
    product = get_object_or_404(Product.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    require_admin(request.user, 'Forbidden. Submit a product request to change products.')

    if request.method == 'DELETE':
        with transaction.atomic():
            delete_product(product, user=request.user, request=request)
            record_admin_action(request.user, ProductRequest.TYPE_DELETE, None,
                                details={'product_id': int(pk), 'name': product.name, 'sku': product.sku})
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = ProductSerializer(product, data=_product_payload(request), partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)

    old_image_url = product.image_url
    image = request.FILES.get('image')
    extra = {}
    if image:
        extra['image_url'] = storage.upload_image(image)
    elif _is_true(request.data.get('remove_image', False)):
        extra['image_url'] = PLACEHOLDER_IMAGE_URL

    changes = {}
    for field, new_value in list(serializer.validated_data.items()) + list(extra.items()):
        old_value = getattr(product, field, None)
        if old_value != new_value:
            changes[field] = {'old': str(old_value) if old_value is not None else None,
                              'new': str(new_value) if new_value is not None else None}

    with transaction.atomic():
        product = serializer.save(**extra)
        record_admin_action(request.user, ProductRequest.TYPE_EDIT, product, details=changes)
        if changes:
            create_audit_log(
                request=request, action='update', model_name='Product',
                object_id=product.pk, object_name=product.name, object_reference=product.sku,
                changes=changes,
            )
        if 'image_url' in extra and old_image_url != product.image_url:
            transaction.on_commit(lambda: storage.delete_image(old_image_url))
    return Response(ProductSerializer(product).data)


# ProductRequest views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_request_list_create(request):
    """List product requests (own ones for non-admins) or submit a new one"""
    if request.method == 'GET':
        queryset = ProductRequest.objects.select_related('product', 'user', 'approved_by').order_by('-created_at')
        if not is_admin_user(request.user):
            queryset = queryset.filter(user=request.user)
        request_filter = ProductRequestFilter(request.GET, queryset=queryset)
        if not request_filter.is_valid():
            raise ValidationError(f'Invalid filter: {request_filter.errors.as_text()}')
        return Response(ProductRequestSerializer(request_filter.qs, many=True).data)

    product_request = _submit_product_request(request, request.data)
    return Response(ProductRequestSerializer(product_request).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_request_detail(request, pk):
    """Retrieve, decide (admin) or withdraw a product request"""
    is_admin = is_admin_user(request.user)
    queryset = ProductRequest.objects.select_related('product', 'user', 'approved_by')
    if not is_admin:
        queryset = queryset.filter(user=request.user)
    product_request = queryset.filter(pk=pk).first()
    if product_request is None:
        raise NotFound('Product request not found')

    if request.method == 'GET':
        return Response(ProductRequestSerializer(product_request).data)

    if request.method == 'PUT':
        require_admin(request.user, 'Forbidden. Only admin can approve or reject product requests.')
        decision = ProductRequestDecisionSerializer(data=request.data)
        decision.is_valid(raise_exception=True)
        approve = decision.validated_data['status'] == 'Approved'
        result = decide_product_request(pk, approve, request.user, request=request)
        if result is None:
            return Response({'message': 'Product request rejected successfully', 'deletedId': int(pk)})
        return Response({
            'message': 'Product request approved successfully',
            'request': ProductRequestSerializer(result).data,
        })

    # DELETE: requesters may withdraw pending requests, admins may remove any
    if product_request.status == ProductRequest.STATUS_APPROVED and not is_admin:
        raise Forbidden('Approved requests cannot be withdrawn')
    product_request.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Low stock threshold
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def low_stock_threshold(request):
    """Read or (admin) set the low stock threshold applied to every product"""
    if request.method == 'GET':
        setting = Setting.objects.filter(key=LOW_STOCK_SETTING_KEY).first()
        if setting is not None:
            threshold = int(setting.value)
        else:
            first = Product.objects.order_by('id').values_list('low_stock_threshold', flat=True).first()
            threshold = first if first is not None else default_low_stock_threshold()
        return Response({'threshold': threshold})

    require_admin(request.user, 'Forbidden. Only admin can change the low stock threshold.')
    raw = request.data.get('threshold')
    try:
        threshold = int(raw)
    except (TypeError, ValueError):
        raise ValidationError('Threshold must be a non-negative number')
    if threshold < 0:
        raise ValidationError('Threshold must be a non-negative number')

    with transaction.atomic():
        updated = Product.objects.update(low_stock_threshold=threshold)
        Setting.objects.update_or_create(
            key=LOW_STOCK_SETTING_KEY,
            defaults={'value': str(threshold), 'description': 'Low stock threshold applied to all products'},
        )
        create_audit_log(
            request=request, action='update', model_name='Setting', object_id=LOW_STOCK_SETTING_KEY,
            changes={'threshold': threshold, 'products_updated': updated},
        )
    # Bulk update bypasses post_save
    invalidate_product_lists()
    return Response({'threshold': threshold, 'updated': updated})


# Long set product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def long_set_list_create(request):
    """List long set products or, for admins, create one directly"""
    if request.method == 'GET':
        long_sets = LongSetProduct.objects.select_related('product__user').prefetch_related('parts__karigar')
        search = request.GET.get('search')
        if search:
            long_sets = long_sets.filter(Q(product__name__icontains=search) | Q(product__sku__icontains=search))
        return Response(LongSetProductSerializer(long_sets, many=True).data)

    require_admin(request.user, 'Forbidden. Submit a long set product request to add products.')
    serializer = ProductSerializer(data=_product_payload(request))
    serializer.is_valid(raise_exception=True)
    parts = LongSetPartInputSerializer(data=_parts_payload(request, missing=[]), many=True)
    parts.is_valid(raise_exception=True)
    if not parts.validated_data:
        raise ValidationError('A long set needs at least one part')

    image = request.FILES.get('image')
    image_url = storage.upload_image(image) if image else None

    with transaction.atomic():
        extra = {'user': request.user}
        if image_url:
            extra['image_url'] = image_url
        product = serializer.save(**extra)
        long_set = create_long_set(product, parts.validated_data, request.user)
        record_admin_action(request.user, ProductRequest.TYPE_ADD, product, is_long_set=True, details={
            'name': product.name, 'sku': product.sku, 'stock': product.stock,
            'long_set_parts': json_ready(parts.validated_data),
        })
        create_audit_log(
            request=request, action='create', model_name='LongSetProduct',
            object_id=long_set.pk, object_name=product.name, object_reference=product.sku,
        )
    logger.info(f"Long set {product.sku} with {len(parts.validated_data)} parts created by admin {request.user.username}")
    long_set = LongSetProduct.objects.select_related('product__user').prefetch_related('parts__karigar').get(pk=long_set.pk)
    return Response(LongSetProductSerializer(long_set).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def long_set_detail(request, pk):
    """Retrieve a long set; edits and deletes are submitted as product requests"""
    long_set = get_object_or_404(
        LongSetProduct.objects.select_related('product__user').prefetch_related('parts__karigar'), pk=pk)

    if request.method == 'GET':
        return Response(LongSetProductSerializer(long_set).data)

    if request.method == 'PUT':
        details = _request_details(request)
        parts = _parts_payload(request)
        if parts is not None:
            details['long_set_parts'] = parts
        data = {'request_type': ProductRequest.TYPE_EDIT, 'details': details}
    else:
        data = {'request_type': ProductRequest.TYPE_DELETE, 'details': {}}
    data.update(is_long_set=True, product=long_set.product_id)

    product_request = _submit_product_request(request, data)
    return Response(ProductRequestSerializer(product_request).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def long_set_request_create(request):
    """Submit a new long set product, with its parts, for approval"""
    details = _request_details(request)
    details['long_set_parts'] = _parts_payload(request, missing=[])
    product_request = _submit_product_request(request, {
        'request_type': ProductRequest.TYPE_ADD,
        'is_long_set': True,
        'details': details,
    })
    return Response(ProductRequestSerializer(product_request).data, status=status.HTTP_201_CREATED)
