from django.apps import AppConfig


class CatalogModulesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'catalog_core.modules'
    label = 'catalog_modules'
    verbose_name = 'Module Catalog'

    def ready(self):
        # Import signal definitions
        from . import signals
