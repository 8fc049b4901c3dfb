"""Registry of khata account kinds addressed by the ``{kind}`` URL segment"""
from jewelbook.core.exceptions import NotFound

from .ledger import KarigarBalancePolicy, VyapariBalancePolicy
from .models import (
    Karigar, KarigarPayment, KarigarTransaction,
    Vyapari, VyapariPayment, VyapariTransaction,
)


class LedgerKind:
    """Everything that differs between trader and artisan accounts"""

    def __init__(self, slug, label, model, transaction_model, payment_model,
                 fk_name, transaction_prefix, payment_prefix, policy):
        self.slug = slug
        self.label = label
        self.model = model
        self.transaction_model = transaction_model
        self.payment_model = payment_model
        self.fk_name = fk_name
        self.transaction_prefix = transaction_prefix
        self.payment_prefix = payment_prefix
        self.policy = policy

    def __repr__(self):
        return f"<LedgerKind {self.slug}>"


VYAPARI = LedgerKind(
    slug='vyaparis',
    label='Vyapari',
    model=Vyapari,
    transaction_model=VyapariTransaction,
    payment_model=VyapariPayment,
    fk_name='vyapari',
    transaction_prefix='VT',
    payment_prefix='VP',
    policy=VyapariBalancePolicy(),
)

KARIGAR = LedgerKind(
    slug='karigars',
    label='Karigar',
    model=Karigar,
    transaction_model=KarigarTransaction,
    payment_model=KarigarPayment,
    fk_name='karigar',
    transaction_prefix='KT',
    payment_prefix='KP',
    policy=KarigarBalancePolicy(),
)

KINDS = {kind.slug: kind for kind in (VYAPARI, KARIGAR)}


def get_kind(slug):
    try:
        return KINDS[slug]
    except KeyError:
        raise NotFound(f'Unknown account type: {slug}')
