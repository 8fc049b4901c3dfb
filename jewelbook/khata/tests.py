"""
Test suite for the khata ledger
Tests: counterparty visibility, approvals, reference numbering, balances and force delete
"""
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from jewelbook.core.models import AuditLog
from jewelbook.core.test_utils import AuthenticatedAPIClient, TestDataFactory
from jewelbook.khata.kinds import KARIGAR, VYAPARI
from jewelbook.khata.ledger import compute_balance
from jewelbook.khata.models import (
    Karigar, KarigarPayment, KarigarTransaction, Vyapari, VyapariTransaction,
)
from jewelbook.khata.workflow import next_reference


class BalancePolicyTests(TestCase):
    """Balance sign conventions per account kind"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()

    def test_vyapari_payments_add_to_balance(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.admin)
        TestDataFactory.create_transaction(vyapari, '5000', created_by=self.admin)
        TestDataFactory.create_payment(vyapari, '2000', created_by=self.admin)
        self.assertEqual(compute_balance(vyapari, VYAPARI.policy), Decimal('7000.00'))

    def test_karigar_payments_settle_balance(self):
        karigar = TestDataFactory.create_karigar(created_by=self.admin)
        TestDataFactory.create_transaction(karigar, '5000', created_by=self.admin)
        TestDataFactory.create_payment(karigar, '2000', created_by=self.admin)
        self.assertEqual(compute_balance(karigar, KARIGAR.policy), Decimal('3000.00'))

    def test_pending_entries_are_ignored(self):
        karigar = TestDataFactory.create_karigar(created_by=self.admin)
        TestDataFactory.create_transaction(karigar, '5000', created_by=self.admin)
        TestDataFactory.create_transaction(karigar, '900', is_approved=False)
        TestDataFactory.create_payment(karigar, '400', is_approved=False)
        self.assertEqual(compute_balance(karigar, KARIGAR.policy), Decimal('5000.00'))

    def test_empty_account_has_zero_balance(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.admin)
        self.assertEqual(compute_balance(vyapari, VYAPARI.policy), Decimal('0.00'))


class ReferenceNumberTests(TestCase):

    def test_references_are_sequential_per_prefix_and_year(self):
        year = timezone.now().year
        self.assertEqual(next_reference('KT'), f'KT-{year}-0001')
        self.assertEqual(next_reference('KT'), f'KT-{year}-0002')
        self.assertEqual(next_reference('VT'), f'VT-{year}-0001')

    def test_new_year_restarts_sequence(self):
        next_reference('KT', year=2025)
        self.assertEqual(next_reference('KT', year=2026), 'KT-2026-0001')


class CounterpartyAPITests(TestCase):
    """Counterparty creation, visibility and approval"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_user_created_vyapari_is_pending(self):
        response = self.client.post('/api/v1/counterparties/vyaparis/', {
            'name': '  Shree Gems  ', 'phone': ' ', 'email': '',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['is_approved'])
        self.assertEqual(response.data['name'], 'Shree Gems')
        self.assertIsNone(response.data['phone'])
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_admin_created_karigar_is_approved(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/counterparties/karigars/', {
            'name': 'Ramesh', 'specialization': 'Kundan',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_approved'])
        self.assertEqual(response.data['approved_by'], self.admin.id)
        self.assertEqual(response.data['status'], 'Active')

    def test_name_is_required(self):
        response = self.client.post('/api/v1/counterparties/vyaparis/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'name: Name is required')

    def test_unknown_kind_is_404(self):
        response = self.client.get('/api/v1/counterparties/suppliers/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_hides_other_users_pending(self):
        other = TestDataFactory.create_user()
        TestDataFactory.create_vyapari(created_by=other, name='Hidden', is_approved=False)
        TestDataFactory.create_vyapari(created_by=self.user, name='Mine', is_approved=False)
        TestDataFactory.create_vyapari(created_by=self.admin, name='Public')
        TestDataFactory.create_vyapari(created_by=self.admin, name='Dormant', status='Inactive')

        response = self.client.get('/api/v1/counterparties/vyaparis/')
        names = [row['name'] for row in response.data]
        self.assertEqual(names, ['Mine', 'Public'])

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/counterparties/vyaparis/')
        self.assertEqual(len(response.data), 4)

    def test_other_users_pending_detail_is_404(self):
        other = TestDataFactory.create_user()
        vyapari = TestDataFactory.create_vyapari(created_by=other, is_approved=False)
        response = self.client.get(f'/api/v1/counterparties/vyaparis/{vyapari.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_admin_cannot_change_status(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.user, is_approved=False)
        response = self.client.patch(f'/api/v1/counterparties/vyaparis/{vyapari.id}/', {'status': 'Inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_deactivates_counterparty(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.admin)
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/counterparties/vyaparis/{vyapari.id}/', {'status': 'Inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        vyapari.refresh_from_db()
        self.assertEqual(vyapari.status, 'Inactive')

    def test_approve_then_reapprove_conflicts(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/counterparties/vyaparis/{vyapari.id}/approve/'

        response = self.client.put(url, {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Vyapari approved successfully')
        self.assertTrue(response.data['vyapari']['is_approved'])
        vyapari.refresh_from_db()
        self.assertEqual(vyapari.approved_by, self.admin)

        response = self.client.put(url, {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Vyapari is already approved')

    def test_reject_deletes_counterparty(self):
        karigar = TestDataFactory.create_karigar(created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/counterparties/karigars/{karigar.id}/approve/', {'approve': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedId'], karigar.id)
        self.assertFalse(Karigar.objects.filter(pk=karigar.id).exists())
        self.assertTrue(AuditLog.objects.filter(action='reject', model_name='Karigar').exists())

        response = self.client.get(f'/api/v1/counterparties/karigars/{karigar.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_admin_cannot_approve(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.user, is_approved=False)
        response = self.client.put(f'/api/v1/counterparties/vyaparis/{vyapari.id}/approve/', {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pending_queue_is_admin_only(self):
        TestDataFactory.create_vyapari(created_by=self.user, is_approved=False)
        response = self.client.get('/api/v1/counterparties/vyaparis/pending/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/counterparties/vyaparis/pending/')
        self.assertEqual(len(response.data), 1)


class LedgerEntryAPITests(TestCase):
    """Transactions and payments against approved counterparties"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.karigar = TestDataFactory.create_karigar(created_by=self.admin)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.year = timezone.now().year

    def test_transactions_get_sequential_ids(self):
        url = f'/api/v1/counterparties/karigars/{self.karigar.id}/transactions/'
        first = self.client.post(url, {'amount': '1500.00', 'description': 'Ring setting'}, format='json')
        second = self.client.post(url, {'amount': '800', 'description': 'Polish'}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['transaction_id'], f'KT-{self.year}-0001')
        self.assertEqual(second.data['transaction_id'], f'KT-{self.year}-0002')
        self.assertFalse(first.data['is_approved'])

    def test_transaction_requires_approved_counterparty(self):
        pending = TestDataFactory.create_karigar(created_by=self.user, is_approved=False)
        response = self.client.post(f'/api/v1/counterparties/karigars/{pending.id}/transactions/', {
            'amount': '100', 'description': 'Advance',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Karigar not found or not approved')

    def test_transaction_amount_must_be_number(self):
        response = self.client.post(f'/api/v1/counterparties/karigars/{self.karigar.id}/transactions/', {
            'amount': 'lots', 'description': 'Advance',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'amount: Amount must be a number')

    def test_payment_amount_must_be_positive(self):
        response = self.client.post(f'/api/v1/counterparties/karigars/{self.karigar.id}/payments/', {
            'amount': '0', 'payment_mode': 'Cash',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'amount: Amount must be greater than zero')

    def test_balance_counts_only_approved_entries(self):
        url = f'/api/v1/counterparties/karigars/{self.karigar.id}/'
        self.client.post(url + 'transactions/', {'amount': '5000', 'description': 'Necklace work'}, format='json')
        self.client.post(url + 'payments/', {'amount': '2000', 'payment_mode': 'UPI'}, format='json')

        response = self.client.get(url + 'balance/')
        self.assertEqual(Decimal(str(response.data['balance'])), Decimal('0'))

        self.client.authenticate_user(self.admin)
        transaction = KarigarTransaction.objects.get(karigar=self.karigar)
        payment = KarigarPayment.objects.get(karigar=self.karigar)
        response = self.client.put(f'/api/v1/counterparties/karigars/transactions/{transaction.id}/approve/', {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Transaction approved successfully')
        response = self.client.put(f'/api/v1/counterparties/karigars/payments/{payment.id}/approve/', {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(url + 'balance/')
        self.assertEqual(Decimal(str(response.data['balance'])), Decimal('3000'))

    def test_rejected_transaction_is_removed(self):
        entry = TestDataFactory.create_transaction(self.karigar, '250', created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/counterparties/karigars/transactions/{entry.id}/approve/', {'approve': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Transaction rejected successfully')
        self.assertFalse(KarigarTransaction.objects.filter(pk=entry.id).exists())

    def test_approved_transaction_cannot_be_decided_again(self):
        vyapari = TestDataFactory.create_vyapari(created_by=self.admin)
        entry = TestDataFactory.create_transaction(vyapari, '900', created_by=self.admin)
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/counterparties/vyaparis/transactions/{entry.id}/approve/'

        response = self.client.put(url, {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Transaction is already approved')

        response = self.client.put(url, {'approve': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(VyapariTransaction.objects.filter(pk=entry.id).exists())

    def test_approved_payment_cannot_be_decided_again(self):
        payment = TestDataFactory.create_payment(self.karigar, '400', created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.admin)
        url = f'/api/v1/counterparties/karigars/payments/{payment.id}/approve/'

        response = self.client.put(url, {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payment.refresh_from_db()
        self.assertEqual(payment.approved_by, self.admin)

        response = self.client.put(url, {'approve': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Payment is already approved')
        payment.refresh_from_db()
        self.assertEqual(payment.approved_by, self.admin)

    def test_rejected_payment_is_removed(self):
        payment = TestDataFactory.create_payment(self.karigar, '600', created_by=self.user, is_approved=False)
        self.client.authenticate_user(self.admin)
        response = self.client.put(f'/api/v1/counterparties/karigars/payments/{payment.id}/approve/', {'approve': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Payment rejected successfully')
        self.assertEqual(response.data['deletedId'], payment.id)
        self.assertFalse(KarigarPayment.objects.filter(pk=payment.id).exists())
        self.assertTrue(AuditLog.objects.filter(action='reject', model_name='KarigarPayment').exists())

    def test_pending_transactions_listed_for_admin(self):
        TestDataFactory.create_transaction(self.karigar, '250', created_by=self.user, is_approved=False)
        TestDataFactory.create_transaction(self.karigar, '300', created_by=self.admin)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/counterparties/karigars/transactions/pending/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['counterparty_name'], self.karigar.name)


class ForceDeleteTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.vyapari = TestDataFactory.create_vyapari(created_by=self.admin)
        TestDataFactory.create_transaction(self.vyapari, '1000', created_by=self.admin)
        TestDataFactory.create_payment(self.vyapari, '500', created_by=self.admin)
        self.client = AuthenticatedAPIClient()

    def test_force_delete_removes_everything(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/counterparties/vyaparis/{self.vyapari.id}/force-delete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedId'], self.vyapari.id)
        self.assertFalse(Vyapari.objects.filter(pk=self.vyapari.id).exists())
        self.assertFalse(VyapariTransaction.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action='force_delete').exists())

        response = self.client.get(f'/api/v1/counterparties/vyaparis/{self.vyapari.id}/balance/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_admin_cannot_force_delete(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.delete(f'/api/v1/counterparties/vyaparis/{self.vyapari.id}/force-delete/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Forbidden. Only admin can force delete vyaparis.')
        self.assertTrue(Vyapari.objects.filter(pk=self.vyapari.id).exists())


class KhataAnalyticsTests(TestCase):

    def test_outstanding_balances_per_kind(self):
        admin = TestDataFactory.create_admin()
        karigar = TestDataFactory.create_karigar(created_by=admin)
        TestDataFactory.create_transaction(karigar, '5000', created_by=admin)
        TestDataFactory.create_payment(karigar, '2000', created_by=admin)
        client = AuthenticatedAPIClient()
        client.authenticate_user(admin)

        response = client.get('/api/v1/khata/analytics/', {'type': 'karigar', 'days': 7})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn('vyapari', response.data)
        self.assertEqual(response.data['karigar']['outstanding_balance'], Decimal('3000.00'))
        self.assertEqual(response.data['karigar']['period_transaction_count'], 1)

    def test_invalid_type_rejected(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/khata/analytics/', {'type': 'everyone'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class MigrationStateTests(TestCase):

    def test_models_match_migrations(self):
        output = StringIO()
        # Exits non-zero when a model change has no migration
        call_command('makemigrations', 'khata', 'catalog', check=True, dry_run=True, stdout=output)
        self.assertIn('No changes detected', output.getvalue())
