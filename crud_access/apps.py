"""
Django app configuration for the crud-access library.

This module configures:
- Django application registration
- Role registry loader from settings
- Library settings validation
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


class CrudAccessConfig(BaseAppConfig):
    """Django app configuration for crud-access."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "crud_access"
    verbose_name = "CRUD Access"
    label = "crud_access"

    def ready(self):
        """Initialize the application after Django has loaded."""
        self._setup_role_loader()
        self._validate_configuration()
        logger.debug("crud-access initialized")

    def _setup_role_loader(self):
        """Install the role loader named by ``permission_settings.role_loader``."""
        from .config_proxy import get_setting
        from .security.rbac.roles import role_registry

        loader_path = get_setting("permission_settings.role_loader")
        if not loader_path:
            return
        try:
            loader = import_string(loader_path)
        except ImportError as e:
            logger.warning(f"Could not import role loader '{loader_path}': {e}")
            return
        role_registry.set_loader(loader)
        logger.debug("Role loader configured: %s", loader_path)

    def _validate_configuration(self):
        """Validate library configuration."""
        from .config_proxy import get_setting

        if get_setting("permission_settings.validate_roles", False) and not get_setting(
            "permission_settings.role_loader"
        ):
            logger.warning(
                "permission_settings.validate_roles is enabled but no role_loader "
                "is configured; user roles will not be validated"
            )
