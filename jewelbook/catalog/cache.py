"""
Product list caching.

List responses are cached per filter query under a generation number; any
product save or delete bumps the generation so stale lists are simply never
read again and expire on their own TTL.
"""
import hashlib
import logging

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Product

logger = logging.getLogger(__name__)

PRODUCT_LIST_KEY_PREFIX = 'product_list:'
PRODUCT_LIST_GENERATION_KEY = 'product_list:generation'

# Products change often; keep lists short-lived
PRODUCT_LIST_CACHE_TTL = 180  # 3 minutes


def get_generation():
    generation = cache.get(PRODUCT_LIST_GENERATION_KEY)
    if generation is None:
        generation = 1
        cache.add(PRODUCT_LIST_GENERATION_KEY, generation, None)
    return generation


def get_product_list_cache_key(query_string: str) -> str:
    """Cache key for one filtered product list"""
    digest = hashlib.md5((query_string or '').encode('utf-8')).hexdigest()
    return f"{PRODUCT_LIST_KEY_PREFIX}{get_generation()}:{digest}"


def invalidate_product_lists():
    try:
        cache.incr(PRODUCT_LIST_GENERATION_KEY)
    except ValueError:
        cache.set(PRODUCT_LIST_GENERATION_KEY, 2, None)
    logger.debug("Product list cache invalidated")


@receiver(post_save, sender=Product)
@receiver(post_delete, sender=Product)
def product_changed(sender, instance, **kwargs):
    """Invalidate cached lists now and again once the change is committed"""
    invalidate_product_lists()
    transaction.on_commit(invalidate_product_lists)
