"""
Test suite for sales requests and billing
Tests: sales approval and stock, completed sales, GST arithmetic, bill preview and retention
"""
from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from jewelbook.core.models import Notification
from jewelbook.core.test_utils import AuthenticatedAPIClient, TestDataFactory
from jewelbook.sales.billing import calculate_bill
from jewelbook.sales.models import Bill, SalesRequest, SalesTransaction


class BillingCalculationTests(TestCase):
    """Pure bill arithmetic"""

    def test_gst_bill_splits_cgst_and_sgst(self):
        totals = calculate_bill('GST', [{'description': 'Gold ring', 'quantity': '2', 'rate': '1000'}])
        self.assertEqual(totals['subtotal'], Decimal('2000.00'))
        self.assertEqual(totals['cgst'], Decimal('180.00'))
        self.assertEqual(totals['sgst'], Decimal('180.00'))
        self.assertEqual(totals['igst'], Decimal('0.00'))
        self.assertEqual(totals['total_amount'], Decimal('2360.00'))
        self.assertEqual(totals['items'][0]['amount'], '2000.00')

    def test_inter_state_bill_uses_igst(self):
        totals = calculate_bill('GST', [{'quantity': '1', 'rate': '1000'}],
                                cgst_percentage=0, sgst_percentage=0, igst_percentage=3)
        self.assertEqual(totals['igst'], Decimal('30.00'))
        self.assertEqual(totals['total_amount'], Decimal('1030.00'))

    def test_non_gst_and_non_taxable_bills_carry_no_tax(self):
        for bill_type, is_taxable in (('NON_GST', True), ('GST', False)):
            totals = calculate_bill(bill_type, [{'quantity': '1', 'rate': '500'}], is_taxable=is_taxable)
            self.assertEqual(totals['total_amount'], Decimal('500.00'))
            self.assertFalse(totals['is_taxable'])

    def test_tax_rounds_half_up(self):
        totals = calculate_bill('GST', [{'quantity': '1', 'rate': '0.50'}])
        self.assertEqual(totals['cgst'], Decimal('0.05'))
        self.assertEqual(totals['sgst'], Decimal('0.05'))

    def test_fractional_weights(self):
        totals = calculate_bill('GST', [{'quantity': '2.5', 'rate': '6000'}])
        self.assertEqual(totals['subtotal'], Decimal('15000.00'))


class SalesRequestAPITests(TestCase):
    """Sales requests and their approval"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.product = TestDataFactory.create_product(name='Kada', price='2500.00', stock=5)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.year = timezone.now().year

    def _submit(self, quantity=2):
        return self.client.post('/api/v1/sales-requests/', {
            'customer': 'Anita', 'items': [{'product': self.product.id, 'quantity': quantity}],
        }, format='json')

    def test_create_sales_request(self):
        response = self._submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['request_id'], f'SR-{self.year}-0001')
        self.assertEqual(response.data['status'], 'Pending')
        self.assertEqual(Decimal(response.data['total_value']), Decimal('5000.00'))
        self.assertEqual(response.data['items'][0]['name'], 'Kada')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)

    def test_insufficient_stock_rejected(self):
        response = self._submit(quantity=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Insufficient stock for Kada (available 5)')
        self.assertEqual(SalesRequest.objects.count(), 0)

    def test_duplicate_lines_rejected(self):
        response = self.client.post('/api/v1/sales-requests/', {
            'customer': 'Anita',
            'items': [{'product': self.product.id, 'quantity': 1}, {'product': self.product.id, 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_items_rejected(self):
        response = self.client.post('/api/v1/sales-requests/', {'customer': 'Anita', 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approval_takes_stock_and_records_sale(self):
        request_pk = self._submit().data['id']
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['request']['status'], 'Approved')

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 3)
        sale = SalesTransaction.objects.get(sales_request_id=request_pk)
        self.assertEqual(sale.order_id, f'ORD-{self.year}-0001')
        self.assertEqual(sale.user, self.user)
        self.assertEqual(sale.total_amount, Decimal('5000.00'))
        self.assertEqual(sale.items[0]['quantity'], 2)
        self.assertTrue(Notification.objects.filter(user=self.user, type='success').exists())

        response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Rejected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_approval_refreshes_cached_product_list(self):
        request_pk = self._submit(quantity=3).data['id']
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['stock'], 5)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['stock'], 2)

    def test_rejection_keeps_stock(self):
        request_pk = self._submit().data['id']
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Rejected'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 5)
        self.assertEqual(SalesRequest.objects.get(pk=request_pk).status, 'Rejected')
        self.assertFalse(SalesTransaction.objects.exists())

    def test_approval_fails_when_stock_ran_out(self):
        request_pk = self._submit(quantity=4).data['id']
        self.product.stock = 1
        self.product.save()
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(SalesRequest.objects.get(pk=request_pk).status, 'Pending')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 1)

    def test_non_admin_cannot_decide(self):
        request_pk = self._submit().data['id']
        response = self.client.put(f'/api/v1/sales-requests/{request_pk}/', {'status': 'Approved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_users_only_see_their_own_requests(self):
        self._submit()
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/sales-requests/')
        self.assertEqual(response.data, [])


class RecentSalesTests(TestCase):

    def test_returns_five_most_recent(self):
        user = TestDataFactory.create_user()
        for i in range(7):
            SalesTransaction.objects.create(
                order_id=f'ORD-TEST-{i}', customer=f'Customer {i}', items=[],
                total_amount=Decimal('100.00'), user=user,
            )
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 5)

    def test_analytics_summary(self):
        user = TestDataFactory.create_user()
        SalesTransaction.objects.create(order_id='ORD-A', customer='A', items=[], total_amount=Decimal('300.00'), user=user)
        SalesTransaction.objects.create(order_id='ORD-B', customer='B', items=[], total_amount=Decimal('100.00'), user=user)
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/sales/analytics/', {'days': 7})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['orders'], 2)
        self.assertEqual(response.data['revenue'], Decimal('400.00'))
        self.assertEqual(response.data['average_order_value'], Decimal('200.00'))


class BillAPITests(TestCase):
    """GST and non-GST bills"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.year = timezone.now().year
        self.payload = {
            'bill_type': 'GST',
            'customer_name': 'Kavita Jain',
            'customer_state': 'Rajasthan',
            'items': [{'description': '22K Gold Chain', 'quantity': '2', 'rate': '1000', 'weight': '12.4g'}],
        }

    def test_create_gst_bill(self):
        response = self.client.post('/api/v1/bills/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['bill_number'], f'BILL-{self.year}-0001')
        self.assertEqual(response.data['subtotal'], '2000.00')
        self.assertEqual(response.data['cgst'], '180.00')
        self.assertEqual(response.data['sgst'], '180.00')
        self.assertEqual(response.data['total_amount'], '2360.00')
        self.assertEqual(response.data['hsn_code'], '7113')
        self.assertTrue(response.data['is_taxable'])

    def test_non_gst_bill_has_no_tax(self):
        self.payload['bill_type'] = 'NON_GST'
        response = self.client.post('/api/v1/bills/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '2000.00')
        self.assertFalse(response.data['is_taxable'])

    def test_preview_does_not_save(self):
        self.payload['preview'] = True
        response = self.client.post('/api/v1/bills/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['bill_number'])
        self.assertEqual(Decimal(str(response.data['total_amount'])), Decimal('2360.00'))
        self.assertEqual(Bill.objects.count(), 0)

    def test_invalid_gstin_rejected(self):
        self.payload['customer_gstin'] = '08ABC'
        response = self.client.post('/api/v1/bills/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'customer_gstin: GSTIN must be 15 characters')

    def test_update_recomputes_totals(self):
        bill_id = self.client.post('/api/v1/bills/', self.payload, format='json').data['id']
        response = self.client.patch(f'/api/v1/bills/{bill_id}/', {
            'items': [{'description': 'Silver payal', 'quantity': '1', 'rate': '500'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['subtotal'], '500.00')
        self.assertEqual(response.data['total_amount'], '590.00')

    def test_other_user_cannot_edit_bill(self):
        bill_id = self.client.post('/api/v1/bills/', self.payload, format='json').data['id']
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.delete(f'/api/v1/bills/{bill_id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_purge_removes_only_old_bills(self):
        Bill.objects.create(bill_number='BILL-OLD-1', bill_type='GST', customer_name='Old',
                            date=timezone.now() - timedelta(days=90), user=self.user)
        self.client.post('/api/v1/bills/', self.payload, format='json')

        response = self.client.get('/api/v1/bills/')
        self.assertEqual([row['customer_name'] for row in response.data], ['Kavita Jain'])

        response = self.client.delete('/api/v1/bills/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.delete('/api/v1/bills/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 1)
        self.assertEqual(list(Bill.objects.values_list('customer_name', flat=True)), ['Kavita Jain'])
