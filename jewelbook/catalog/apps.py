from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'jewelbook.catalog'

    def ready(self):
        """Import signals when app is ready"""
        import jewelbook.catalog.cache  # noqa: F401  # Product list cache invalidation
