"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from jewelbook.catalog.models import LongSetPart, LongSetProduct, Product
from jewelbook.khata.models import (
    Karigar, KarigarPayment, KarigarTransaction,
    Vyapari, VyapariPayment, VyapariTransaction,
)
from jewelbook.khata.workflow import next_reference
from jewelbook.sales.models import SalesItem, SalesRequest

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='user', external_id=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            external_id=external_id,
        )

    @staticmethod
    def create_admin(username=None, **kwargs):
        """Create a test user with the admin role"""
        if not username:
            username = f'admin_{TestDataFactory.random_string(6)}'
        return TestDataFactory.create_user(username=username, role='admin', **kwargs)

    @staticmethod
    def create_vyapari(created_by=None, name=None, is_approved=True, status='Active'):
        """Create a test trader"""
        if not name:
            name = f'Vyapari_{TestDataFactory.random_string(6)}'
        return Vyapari.objects.create(
            name=name,
            phone=f'9{random.randint(100000000, 999999999)}',
            status=status,
            is_approved=is_approved,
            created_by=created_by,
            approved_by=created_by if is_approved else None,
        )

    @staticmethod
    def create_karigar(created_by=None, name=None, is_approved=True, status='Active', specialization='Gold'):
        """Create a test artisan"""
        if not name:
            name = f'Karigar_{TestDataFactory.random_string(6)}'
        return Karigar.objects.create(
            name=name,
            phone=f'9{random.randint(100000000, 999999999)}',
            specialization=specialization,
            status=status,
            is_approved=is_approved,
            created_by=created_by,
            approved_by=created_by if is_approved else None,
        )

    @staticmethod
    def create_transaction(counterparty, amount, created_by=None, is_approved=True, description='Test entry'):
        """Create a ledger transaction for a trader or an artisan"""
        if isinstance(counterparty, Vyapari):
            model, prefix, fk = VyapariTransaction, 'VT', 'vyapari'
        else:
            model, prefix, fk = KarigarTransaction, 'KT', 'karigar'
        return model.objects.create(
            transaction_id=next_reference(prefix),
            amount=Decimal(str(amount)),
            description=description,
            is_approved=is_approved,
            created_by=created_by,
            approved_by=created_by if is_approved else None,
            **{fk: counterparty},
        )

    @staticmethod
    def create_payment(counterparty, amount, created_by=None, is_approved=True, payment_mode='Cash'):
        """Create a ledger payment for a trader or an artisan"""
        if isinstance(counterparty, Vyapari):
            model, prefix, fk = VyapariPayment, 'VP', 'vyapari'
        else:
            model, prefix, fk = KarigarPayment, 'KP', 'karigar'
        return model.objects.create(
            payment_id=next_reference(prefix),
            amount=Decimal(str(amount)),
            payment_mode=payment_mode,
            is_approved=is_approved,
            created_by=created_by,
            approved_by=created_by if is_approved else None,
            **{fk: counterparty},
        )

    @staticmethod
    def create_product(user=None, name=None, sku=None, price='1000.00', stock=10, cost_price=None, supplier=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        return Product.objects.create(
            name=name,
            sku=sku,
            category='Rings',
            material='Gold',
            price=Decimal(price),
            cost_price=Decimal(cost_price) if cost_price is not None else None,
            stock=stock,
            supplier=supplier,
            user=user,
        )

    @staticmethod
    def create_long_set(product=None, parts=None):
        """Create a long set; ``parts`` is a list of (name, cost_price, karigar) tuples"""
        if product is None:
            product = TestDataFactory.create_product(stock=2)
        long_set = LongSetProduct.objects.create(product=product)
        for part_name, cost_price, karigar in parts or [('Pendant', '1500.00', None)]:
            LongSetPart.objects.create(
                long_set=long_set,
                part_name=part_name,
                cost_price=Decimal(cost_price) if cost_price is not None else None,
                karigar=karigar,
            )
        return long_set

    @staticmethod
    def create_sales_request(user, product, quantity=1, customer='Walk-in', status='Pending'):
        """Create a sales request with a single line"""
        sales_request = SalesRequest.objects.create(
            request_id=next_reference('SR'),
            customer=customer,
            total_value=product.price * quantity,
            status=status,
            user=user,
        )
        SalesItem.objects.create(
            sales_request=sales_request,
            product=product,
            product_name=product.name,
            product_sku=product.sku,
            quantity=quantity,
            price=product.price,
        )
        return sales_request


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
