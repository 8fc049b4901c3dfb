"""
Tests for accounts, roles, the user deletion cascade, notifications and todos
"""
from unittest import mock

from django.core.cache import cache
from django.core.management import call_command
from django.db import DatabaseError, connection, transaction
from django.test import TestCase
from rest_framework import status

from jewelbook.catalog.models import Product
from jewelbook.core.models import AuditLog, Notification, Todo, User
from jewelbook.core.services import delete_user
from jewelbook.core.test_utils import AuthenticatedAPIClient, TestDataFactory
from jewelbook.core.utils import create_audit_log
from jewelbook.sales.models import SalesItem, SalesRequest, SalesTransaction


class AuthTests(TestCase):
    """Registration, login and profile"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_plain_user(self):
        data = {
            'username': 'meera',
            'email': 'meera@test.com',
            'password': 'Kundan#Setting42',
            'password_confirm': 'Kundan#Setting42',
            'role': 'admin',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'user')
        self.assertIn('access', response.data)
        self.assertEqual(User.objects.get(username='meera').role, User.ROLE_USER)

    def test_register_password_mismatch_returns_error_shape(self):
        data = {
            'username': 'meera',
            'password': 'Kundan#Setting42',
            'password_confirm': 'Different#Setting42',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], "password: Passwords don't match")
        self.assertIn('password', response.data['details'])

    def test_login_returns_role(self):
        TestDataFactory.create_admin(username='owner', password='Kundan#Setting42')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'owner', 'password': 'Kundan#Setting42',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['role'], 'admin')
        self.assertTrue(response.data['user']['is_admin'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_me_cannot_change_role(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.patch('/api/v1/auth/me/', {'role': 'admin', 'phone': '9876543210'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, User.ROLE_USER)
        self.assertEqual(user.phone, '9876543210')


class RoleManagementTests(TestCase):
    """Admin-only role changes"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(external_id='idp_user_1')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_admin_promotes_user(self):
        response = self.client.put(f'/api/v1/admin/users/{self.user.id}/role/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_admin)
        self.assertTrue(AuditLog.objects.filter(action='role_change', object_id=str(self.user.id)).exists())

    def test_invalid_role_rejected(self):
        response = self.client.put(f'/api/v1/admin/users/{self.user.id}/role/', {'role': 'owner'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid role specified')

    def test_non_admin_cannot_change_roles(self):
        self.client.authenticate_user(self.user)
        response = self.client.put(f'/api/v1/admin/users/{self.admin.id}/role/', {'role': 'user'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_admin)

    def test_role_mirrored_to_identity_provider_after_commit(self):
        with mock.patch('jewelbook.core.services.get_identity_client') as client_factory:
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.put(f'/api/v1/admin/users/{self.user.id}/role/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        client_factory.return_value.update_role.assert_called_once_with('idp_user_1', 'admin')

    def test_promote_admin_command(self):
        call_command('promote_admin', self.user.username)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.ROLE_ADMIN)
        call_command('promote_admin', self.user.username, '--revoke')
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.ROLE_USER)


class UserDeletionTests(TestCase):
    """The ownership cascade run when an admin deletes a user"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.target = TestDataFactory.create_user(external_id='idp_target')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

        self.product = TestDataFactory.create_product(user=self.target, name='Temple Necklace', sku='TN-001', stock=5)
        self.approved_request = TestDataFactory.create_sales_request(
            self.target, self.product, quantity=1, status=SalesRequest.STATUS_APPROVED)
        self.pending_request = TestDataFactory.create_sales_request(self.target, self.product, quantity=2)
        SalesTransaction.objects.create(
            order_id='ORD-2026-0001', customer='Walk-in', items=[], total_amount=self.product.price,
            sales_request=self.approved_request, user=self.target,
        )
        Todo.objects.create(user=self.target, title='Polish stock')
        Notification.objects.create(user=self.target, title='Hello', message='Welcome')
        self.vyapari = TestDataFactory.create_vyapari(created_by=self.target, is_approved=False)

    def test_cascade_reassigns_to_fallback_admin(self):
        with mock.patch('jewelbook.core.services.get_identity_client') as client_factory:
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.delete(f'/api/v1/admin/users/{self.target.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedId'], self.target.id)
        self.assertFalse(User.objects.filter(pk=self.target.id).exists())

        self.product.refresh_from_db()
        self.assertEqual(self.product.user, self.admin)
        self.assertFalse(SalesRequest.objects.filter(pk=self.pending_request.pk).exists())
        self.approved_request.refresh_from_db()
        self.assertEqual(self.approved_request.user, self.admin)
        self.assertFalse(Todo.objects.filter(title='Polish stock').exists())
        self.assertEqual(SalesTransaction.objects.count(), 0)
        self.assertEqual(Notification.objects.count(), 0)
        self.vyapari.refresh_from_db()
        self.assertEqual(self.vyapari.created_by, self.admin)

        item = SalesItem.objects.get(sales_request=self.approved_request)
        self.assertIsNone(item.product)
        self.assertEqual(item.product_name, 'Temple Necklace')
        self.assertEqual(item.product_sku, 'TN-001')

        client_factory.return_value.delete_account.assert_called_once_with('idp_target')
        self.assertTrue(AuditLog.objects.filter(action='user_delete', object_id=str(self.target.id)).exists())

    def test_cascade_refreshes_cached_product_owner(self):
        cache.clear()
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['owner_username'], self.target.username)

        with mock.patch('jewelbook.core.services.get_identity_client'):
            with self.captureOnCommitCallbacks(execute=True):
                self.client.delete(f'/api/v1/admin/users/{self.target.id}/')

        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data[0]['owner_username'], self.admin.username)

    def test_cascade_without_fallback_deletes_products(self):
        with mock.patch('jewelbook.core.services.select_fallback_admin', return_value=None):
            summary = delete_user(self.target.id, self.admin)

        self.assertEqual(summary['products_deleted'], 1)
        self.assertFalse(Product.objects.filter(pk=self.product.pk).exists())
        item = SalesItem.objects.get(sales_request=self.approved_request)
        self.assertEqual(item.display_name, 'Temple Necklace')
        self.approved_request.refresh_from_db()
        self.assertIsNone(self.approved_request.user)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/admin/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete your own account')
        self.assertTrue(User.objects.filter(pk=self.admin.id).exists())

    def test_non_admin_cannot_delete(self):
        other = TestDataFactory.create_user()
        self.client.authenticate_user(other)
        response = self.client.delete(f'/api/v1/admin/users/{self.target.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(User.objects.filter(pk=self.target.id).exists())

    def test_missing_user_is_404(self):
        response = self.client.delete('/api/v1/admin/users/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'User not found')


class NotificationTests(TestCase):
    """Per-user notifications with bounded retention"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_keeps_only_most_recent(self):
        for i in range(12):
            Notification.objects.create(user=self.user, title=f'Note {i}', message='...')
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['notifications']), 10)
        self.assertEqual(response.data['notifications'][0]['title'], 'Note 11')
        self.assertEqual(Notification.objects.filter(user=self.user).count(), 10)
        self.assertFalse(Notification.objects.filter(title='Note 0').exists())

    def test_mark_read_and_delete(self):
        note = Notification.objects.create(user=self.user, title='Approved', message='...')
        response = self.client.put('/api/v1/notifications/', {'id': note.id, 'is_read': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        note.refresh_from_db()
        self.assertTrue(note.is_read)

        response = self.client.delete('/api/v1/notifications/', {'id': note.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Notification.objects.filter(pk=note.id).exists())

    def test_form_encoded_false_marks_unread(self):
        note = Notification.objects.create(user=self.user, title='Approved', message='...', is_read=True)
        response = self.client.put('/api/v1/notifications/', {'id': note.id, 'is_read': 'false'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_read'])
        note.refresh_from_db()
        self.assertFalse(note.is_read)

    def test_mark_read_requires_valid_flag(self):
        note = Notification.objects.create(user=self.user, title='Approved', message='...')
        response = self.client.put('/api/v1/notifications/', {'id': note.id, 'is_read': 'maybe'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.put('/api/v1/notifications/', {'is_read': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'id: Notification id is required')

    def test_delete_all_only_touches_own(self):
        other = TestDataFactory.create_user()
        Notification.objects.create(user=self.user, title='Mine', message='...')
        Notification.objects.create(user=other, title='Theirs', message='...')
        response = self.client.delete('/api/v1/notifications/', {'delete_all': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Notification.objects.filter(user=self.user).count(), 0)
        self.assertEqual(Notification.objects.filter(user=other).count(), 1)

    def test_cannot_mark_other_users_notification(self):
        other = TestDataFactory.create_user()
        note = Notification.objects.create(user=other, title='Theirs', message='...')
        response = self.client.put('/api/v1/notifications/', {'id': note.id, 'is_read': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TodoTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_complete_todo(self):
        response = self.client.post('/api/v1/todos/', {'title': 'Call karigar'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        todo_id = response.data['id']
        response = self.client.patch(f'/api/v1/todos/{todo_id}/', {'is_completed': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Todo.objects.get(pk=todo_id).is_completed)

    def test_other_users_todo_is_hidden(self):
        other = TestDataFactory.create_user()
        todo = Todo.objects.create(user=other, title='Private')
        response = self.client.get(f'/api/v1/todos/{todo.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get('/api/v1/todos/')
        self.assertEqual(response.data, [])


class AuditLogAccessTests(TestCase):

    def test_audit_logs_are_admin_only(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(client.get('/api/v1/audit-logs/').status_code, status.HTTP_403_FORBIDDEN)
        client.authenticate_user(TestDataFactory.create_admin())
        self.assertEqual(client.get('/api/v1/audit-logs/').status_code, status.HTTP_200_OK)

    def test_failed_audit_insert_leaves_transaction_usable(self):
        admin = TestDataFactory.create_admin()
        with mock.patch.object(AuditLog, '_do_insert', side_effect=DatabaseError('disk full')):
            with transaction.atomic():
                entry = create_audit_log(user=admin, action='approve', model_name='Vyapari', object_id=1)
                self.assertIsNone(entry)
                self.assertFalse(connection.needs_rollback)
                self.assertEqual(User.objects.filter(pk=admin.pk).count(), 1)
        self.assertFalse(AuditLog.objects.exists())
