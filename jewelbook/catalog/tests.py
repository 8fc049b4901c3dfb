"""
Test suite for the catalog
Tests: product CRUD, product request workflow, supplier debt, list caching and image storage
"""
import json
from decimal import Decimal
from unittest import mock

from cloudinary.exceptions import Error as CloudinaryError
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status

from jewelbook.catalog import storage
from jewelbook.catalog.models import PLACEHOLDER_IMAGE_URL, LongSetPart, LongSetProduct, Product, ProductRequest
from jewelbook.core.exceptions import ValidationError
from jewelbook.core.models import AuditLog, Notification, Setting
from jewelbook.core.test_utils import AuthenticatedAPIClient, TestDataFactory
from jewelbook.khata.models import KarigarTransaction
from jewelbook.sales.models import SalesItem


class ProductAPITests(TestCase):
    """Direct product management"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_admin_creates_product(self):
        response = self.client.post('/api/v1/products/', {
            'name': 'Polki Bangle', 'sku': 'PB-001', 'price': '45000.00', 'stock': 2, 'category': 'Bangles',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['image_url'], PLACEHOLDER_IMAGE_URL)
        self.assertEqual(response.data['user'], self.admin.id)
        self.assertTrue(ProductRequest.objects.filter(admin_action=True, request_type='add', status='Approved').exists())
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Product').exists())

    def test_admin_create_books_supplier_debt(self):
        karigar = TestDataFactory.create_karigar(created_by=self.admin, name='Ramesh Soni')
        response = self.client.post('/api/v1/products/', {
            'name': 'Jhumka', 'sku': 'JH-001', 'price': '900.00', 'cost_price': '400.00',
            'stock': 3, 'supplier': 'ramesh soni',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        debt = KarigarTransaction.objects.get(karigar=karigar)
        self.assertEqual(debt.amount, Decimal('1200.00'))
        self.assertTrue(debt.is_approved)
        self.assertEqual(debt.items[0]['sku'], 'JH-001')

    def test_non_admin_cannot_create(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/products/', {'name': 'Ring', 'sku': 'R-1', 'price': '10'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Forbidden. Submit a product request to add products.')

    def test_duplicate_sku_conflicts(self):
        TestDataFactory.create_product(sku='DUP-1')
        response = self.client.post('/api/v1/products/', {'name': 'Ring', 'sku': 'DUP-1', 'price': '10'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'SKU already exists')

    def test_negative_price_rejected(self):
        response = self.client.post('/api/v1/products/', {'name': 'Ring', 'sku': 'R-2', 'price': '-5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_reflects_updates_despite_cache(self):
        product = TestDataFactory.create_product(price='100.00')
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['price'], '100.00')

        response = self.client.patch(f'/api/v1/products/{product.id}/', {'price': '150.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['price'], '150.00')

    def test_filters(self):
        TestDataFactory.create_product(name='Gold Chain', stock=2)
        TestDataFactory.create_product(name='Silver Anklet', stock=50)
        response = self.client.get('/api/v1/products/', {'search': 'chain'})
        self.assertEqual([row['name'] for row in response.data], ['Gold Chain'])
        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})
        self.assertEqual([row['name'] for row in response.data], ['Gold Chain'])

    def test_delete_keeps_sales_history(self):
        product = TestDataFactory.create_product(name='Nath', sku='NT-9')
        sales_request = TestDataFactory.create_sales_request(self.user, product, status='Approved')
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())
        item = SalesItem.objects.get(sales_request=sales_request)
        self.assertIsNone(item.product)
        self.assertEqual(item.product_name, 'Nath')
        self.assertEqual(item.product_sku, 'NT-9')

    def test_non_admin_cannot_delete(self):
        product = TestDataFactory.create_product()
        self.client.authenticate_user(self.user)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ProductRequestWorkflowTests(TestCase):
    """Requests submitted by users and decided by admins"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def _submit_add(self, sku='MS-100'):
        return self.client.post('/api/v1/product-requests/', {
            'request_type': 'add',
            'details': {'name': 'Mangalsutra', 'sku': sku, 'price': '32000', 'stock': 2},
        }, format='json')

    def test_user_add_request_is_pending(self):
        response = self._submit_add()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Pending')
        self.assertEqual(response.data['details']['price'], '32000.00')
        self.assertFalse(Product.objects.filter(sku='MS-100').exists())

    def test_add_request_missing_fields(self):
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'add', 'details': {'name': 'Mangalsutra'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data['error'])

    def test_add_request_with_existing_sku_conflicts(self):
        TestDataFactory.create_product(sku='MS-100')
        response = self._submit_add()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_approve_add_request_creates_product(self):
        request_id = self._submit_add().data['id']
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/product-requests/{request_id}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product = Product.objects.get(sku='MS-100')
        self.assertEqual(product.user, self.user)
        self.assertEqual(product.stock, 2)
        self.assertEqual(response.data['request']['product'], product.id)
        self.assertTrue(Notification.objects.filter(user=self.user, title='Product Request Approved').exists())

        response = self.client.put(f'/api/v1/product-requests/{request_id}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_reject_deletes_request_and_notifies(self):
        request_id = self._submit_add().data['id']
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/product-requests/{request_id}/', {'status': 'Rejected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedId'], request_id)
        self.assertFalse(ProductRequest.objects.filter(pk=request_id).exists())
        self.assertTrue(Notification.objects.filter(user=self.user, type='error').exists())

    def test_edit_request_with_stock_adjustment_books_debt(self):
        karigar = TestDataFactory.create_karigar(created_by=self.admin, name='Lakshmi Works')
        product = TestDataFactory.create_product(stock=10, price='500.00', cost_price='300.00', supplier='Lakshmi')
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'edit', 'product': product.id, 'details': {'stock_adjustment': 5},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.authenticate_user(self.admin)
        response = self.client.put(f"/api/v1/product-requests/{response.data['id']}/", {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product.refresh_from_db()
        self.assertEqual(product.stock, 15)
        self.assertEqual(KarigarTransaction.objects.get(karigar=karigar).amount, Decimal('1500.00'))

    def test_edit_request_cannot_make_stock_negative(self):
        product = TestDataFactory.create_product(stock=1)
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'edit', 'product': product.id, 'details': {'stock_adjustment': -3},
        }, format='json')
        self.client.authenticate_user(self.admin)
        response = self.client.put(f"/api/v1/product-requests/{response.data['id']}/", {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        product.refresh_from_db()
        self.assertEqual(product.stock, 1)

    def test_edit_request_requires_product(self):
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'edit', 'details': {'price': '10'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_request_is_applied_immediately(self):
        self.client.authenticate_user(self.admin)
        product = TestDataFactory.create_product()
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'delete', 'product': product.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Approved')
        self.assertTrue(response.data['admin_action'])
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

    def test_approve_user_delete_request_removes_product(self):
        product = TestDataFactory.create_product(name='Kamarbandh', sku='KB-7')
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'delete', 'product': product.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        request_id = response.data['id']

        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/product-requests/{request_id}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Product.objects.filter(pk=product.id).exists())

        product_request = ProductRequest.objects.get(pk=request_id)
        self.assertEqual(product_request.status, 'Approved')
        self.assertIsNone(product_request.product)
        self.assertEqual(product_request.details['sku'], 'KB-7')
        self.assertIsNone(response.data['request']['product'])
        self.assertTrue(Notification.objects.filter(user=self.user, title='Product Request Approved').exists())

    def test_users_only_see_their_own_requests(self):
        self._submit_add()
        other = TestDataFactory.create_user()
        self.client.authenticate_user(other)
        response = self.client.get('/api/v1/product-requests/')
        self.assertEqual(response.data, [])
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/product-requests/', {'status': 'pending'})
        self.assertEqual(len(response.data), 1)

    def test_requester_can_withdraw_pending_request(self):
        request_id = self._submit_add().data['id']
        response = self.client.delete(f'/api/v1/product-requests/{request_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductRequest.objects.filter(pk=request_id).exists())


class LongSetProductTests(TestCase):
    """Products assembled from parts sourced from different karigars"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.karigar = TestDataFactory.create_karigar(created_by=self.admin, name='Meena Kaam')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _long_set_payload(self, **overrides):
        payload = {
            'name': 'Bridal Long Set', 'sku': 'LS-001', 'price': '85000.00', 'stock': 2,
            'parts': [
                {'part_name': 'Choker', 'cost_price': '3000.00', 'karigar': self.karigar.id},
                {'part_name': 'Earrings', 'cost_price': '1200.00'},
            ],
        }
        payload.update(overrides)
        return payload

    def test_admin_creates_long_set_and_books_part_debt(self):
        response = self.client.post('/api/v1/products/long-set/', self._long_set_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product']['sku'], 'LS-001')
        self.assertEqual([part['part_name'] for part in response.data['parts']], ['Choker', 'Earrings'])
        self.assertEqual(response.data['parts'][0]['karigar_name'], 'Meena Kaam')
        self.assertEqual(response.data['total_parts_cost'], '4200.00')

        debt = KarigarTransaction.objects.get(karigar=self.karigar)
        self.assertEqual(debt.amount, Decimal('6000.00'))
        self.assertTrue(debt.is_approved)
        self.assertEqual(debt.items[0]['part'], 'Choker')
        self.assertTrue(ProductRequest.objects.filter(admin_action=True, is_long_set=True, status='Approved').exists())

    def test_parts_sent_as_multipart_json(self):
        payload = self._long_set_payload(parts=json.dumps([{'part_name': 'Haar', 'cost_price': '900'}]))
        response = self.client.post('/api/v1/products/long-set/', payload)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(LongSetPart.objects.get().part_name, 'Haar')

    def test_long_set_needs_parts(self):
        response = self.client.post('/api/v1/products/long-set/', self._long_set_payload(parts=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A long set needs at least one part')
        self.assertFalse(Product.objects.filter(sku='LS-001').exists())

    def test_non_admin_cannot_create_directly(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/products/long-set/', self._long_set_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_user_request_is_applied_on_approval(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/product-requests/long-set/', self._long_set_payload(
            stock=3, parts=[{'part_name': 'Mathapatti', 'cost_price': '800', 'karigar': self.karigar.id}],
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Pending')
        self.assertTrue(response.data['is_long_set'])
        self.assertEqual(response.data['details']['long_set_parts'][0]['cost_price'], '800.00')
        self.assertFalse(Product.objects.filter(sku='LS-001').exists())

        self.client.authenticate_user(self.admin)
        response = self.client.put(f"/api/v1/product-requests/{response.data['id']}/", {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        long_set = LongSetProduct.objects.get(product__sku='LS-001')
        self.assertEqual(long_set.product.user, self.user)
        self.assertEqual(list(long_set.parts.values_list('part_name', flat=True)), ['Mathapatti'])
        self.assertEqual(KarigarTransaction.objects.get(karigar=self.karigar).amount, Decimal('2400.00'))

    def test_request_without_parts_rejected(self):
        self.client.authenticate_user(self.user)
        payload = self._long_set_payload()
        del payload['parts']
        response = self.client.post('/api/v1/product-requests/long-set/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('at least one part', response.data['error'])

    def test_part_karigar_must_be_approved(self):
        pending = TestDataFactory.create_karigar(created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/product-requests/long-set/', self._long_set_payload(
            parts=[{'part_name': 'Choker', 'karigar': pending.id}],
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Karigar not found or not approved', response.data['error'])

    def test_edit_request_replaces_parts(self):
        long_set = TestDataFactory.create_long_set(parts=[
            ('Choker', '1000.00', self.karigar),
            ('Tikka', '300.00', None),
        ])
        choker = long_set.parts.get(part_name='Choker')

        self.client.authenticate_user(self.user)
        response = self.client.put(f'/api/v1/products/long-set/{long_set.id}/', {
            'price': '9999.00',
            'parts': [
                {'id': choker.id, 'part_name': 'Choker', 'cost_price': '1000.00', 'karigar': self.karigar.id},
                {'part_name': 'Nath', 'cost_price': '500.00', 'karigar': self.karigar.id},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['request_type'], 'edit')
        self.assertEqual(response.data['status'], 'Pending')

        self.client.authenticate_user(self.admin)
        response = self.client.put(f"/api/v1/product-requests/{response.data['id']}/", {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        long_set.product.refresh_from_db()
        self.assertEqual(long_set.product.price, Decimal('9999.00'))
        self.assertEqual(sorted(long_set.parts.values_list('part_name', flat=True)), ['Choker', 'Nath'])
        self.assertTrue(long_set.parts.filter(pk=choker.id).exists())
        # Only the new part is owed for; the unchanged choker is not booked again
        debt = KarigarTransaction.objects.get(karigar=self.karigar)
        self.assertEqual(debt.amount, Decimal('1000.00'))

    def test_admin_delete_removes_long_set(self):
        long_set = TestDataFactory.create_long_set()
        product_id = long_set.product_id
        response = self.client.delete(f'/api/v1/products/long-set/{long_set.id}/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Approved')
        self.assertTrue(response.data['is_long_set'])
        self.assertFalse(Product.objects.filter(pk=product_id).exists())
        self.assertFalse(LongSetProduct.objects.filter(pk=long_set.id).exists())
        self.assertFalse(LongSetPart.objects.exists())

    def test_long_set_request_for_plain_product_rejected(self):
        product = TestDataFactory.create_product()
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/product-requests/', {
            'request_type': 'edit', 'is_long_set': True, 'product': product.id, 'details': {'price': '10'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'product: Product is not a long set')

    def test_list_long_sets(self):
        TestDataFactory.create_long_set(product=TestDataFactory.create_product(name='Rani Haar'))
        TestDataFactory.create_product(name='Plain Ring')
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/products/long-set/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['product']['name'] for row in response.data], ['Rani Haar'])
        self.assertEqual(response.data[0]['total_parts_cost'], '1500.00')


class LowStockThresholdTests(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_default_threshold(self):
        response = self.client.get('/api/v1/settings/low-stock-threshold/')
        self.assertEqual(response.data['threshold'], 10)

    def test_set_threshold_updates_all_products(self):
        first = TestDataFactory.create_product(stock=4)
        second = TestDataFactory.create_product(stock=40)
        response = self.client.post('/api/v1/settings/low-stock-threshold/', {'threshold': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.low_stock_threshold, 5)
        self.assertEqual(second.low_stock_threshold, 5)
        self.assertEqual(Setting.objects.get(key='low_stock_threshold').value, '5')

        response = self.client.get('/api/v1/settings/low-stock-threshold/')
        self.assertEqual(response.data['threshold'], 5)

    def test_invalid_threshold(self):
        response = self.client.post('/api/v1/settings/low-stock-threshold/', {'threshold': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/settings/low-stock-threshold/', {'threshold': 'many'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_set_threshold(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/settings/low-stock-threshold/', {'threshold': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ImageStorageTests(TestCase):
    """Cloudinary upload and cleanup"""

    def test_public_id_only_for_our_folder(self):
        url = 'https://res.cloudinary.com/demo/image/upload/v1712345678/jewelry-inventory/ring_abc.jpg'
        self.assertEqual(storage.public_id_from_url(url), 'jewelry-inventory/ring_abc')
        other = 'https://res.cloudinary.com/demo/image/upload/v1/someone-else/ring.jpg'
        self.assertIsNone(storage.public_id_from_url(other))
        self.assertIsNone(storage.public_id_from_url(PLACEHOLDER_IMAGE_URL))

    def test_upload_requires_configuration(self):
        with mock.patch.object(storage, 'CLOUDINARY_API_SECRET', ''):
            with self.assertRaises(ValidationError):
                storage.upload_image(SimpleUploadedFile('ring.jpg', b'data', content_type='image/jpeg'))

    @mock.patch.object(storage, 'CLOUDINARY_CLOUD_NAME', 'demo')
    @mock.patch.object(storage, 'CLOUDINARY_API_KEY', 'key')
    @mock.patch.object(storage, 'CLOUDINARY_API_SECRET', 'secret')
    @mock.patch('cloudinary.uploader.upload')
    def test_upload_returns_secure_url(self, mock_upload):
        mock_upload.return_value = {'secure_url': 'https://res.cloudinary.com/demo/ring.jpg'}
        url = storage.upload_image(SimpleUploadedFile('ring.jpg', b'data', content_type='image/jpeg'))
        self.assertEqual(url, 'https://res.cloudinary.com/demo/ring.jpg')
        self.assertEqual(mock_upload.call_args.kwargs['folder'], 'jewelry-inventory')

    @mock.patch.object(storage, 'CLOUDINARY_CLOUD_NAME', 'demo')
    @mock.patch.object(storage, 'CLOUDINARY_API_KEY', 'key')
    @mock.patch.object(storage, 'CLOUDINARY_API_SECRET', 'secret')
    @mock.patch('cloudinary.uploader.upload')
    def test_upload_failure_is_validation_error(self, mock_upload):
        mock_upload.side_effect = CloudinaryError('Invalid image file')
        with self.assertRaises(ValidationError):
            storage.upload_image(SimpleUploadedFile('ring.jpg', b'data', content_type='image/jpeg'))

    @mock.patch.object(storage, 'CLOUDINARY_CLOUD_NAME', 'demo')
    @mock.patch.object(storage, 'CLOUDINARY_API_KEY', 'key')
    @mock.patch.object(storage, 'CLOUDINARY_API_SECRET', 'secret')
    @mock.patch('cloudinary.uploader.destroy')
    def test_delete_own_image(self, mock_destroy):
        mock_destroy.return_value = {'result': 'ok'}
        url = 'https://res.cloudinary.com/demo/image/upload/v1712345678/jewelry-inventory/ring_abc.jpg'
        self.assertTrue(storage.delete_image(url))
        self.assertEqual(mock_destroy.call_args.args[0], 'jewelry-inventory/ring_abc')

        mock_destroy.side_effect = CloudinaryError('Server error')
        self.assertFalse(storage.delete_image(url))

    def test_delete_placeholder_is_noop(self):
        with mock.patch('cloudinary.uploader.destroy') as mock_destroy:
            self.assertFalse(storage.delete_image(PLACEHOLDER_IMAGE_URL))
            mock_destroy.assert_not_called()
