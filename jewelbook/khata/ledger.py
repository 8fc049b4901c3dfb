"""
Balance computation for khata accounts.

Balances are never stored: every call sums the approved transactions and
approved payments of one counterparty and combines the two totals with the
sign convention of its kind.
"""
from decimal import Decimal

from django.db.models import Sum


class BalancePolicy:
    """Combines transaction and payment totals into a balance"""
    name = None

    def combine(self, transaction_total, payment_total):
        raise NotImplementedError

    def totals(self, counterparty):
        transaction_total = counterparty.transactions.filter(is_approved=True).aggregate(
            total=Sum('amount'))['total'] or Decimal('0.00')
        payment_total = counterparty.payments.filter(is_approved=True).aggregate(
            total=Sum('amount'))['total'] or Decimal('0.00')
        return transaction_total, payment_total

    def balance(self, counterparty):
        transaction_total, payment_total = self.totals(counterparty)
        return self.combine(transaction_total, payment_total)


class VyapariBalancePolicy(BalancePolicy):
    """Trader accounts: payments add to the running balance"""
    name = 'vyapari'

    def combine(self, transaction_total, payment_total):
        return transaction_total + payment_total


class KarigarBalancePolicy(BalancePolicy):
    """Artisan accounts: payments settle what we owe"""
    name = 'karigar'

    def combine(self, transaction_total, payment_total):
        return transaction_total - payment_total


def compute_balance(counterparty, policy):
    return policy.balance(counterparty)
