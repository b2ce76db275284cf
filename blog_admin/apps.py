"""Django app configuration for blog_admin."""
from django.apps import AppConfig


class BlogAdminConfig(AppConfig):
    """Configuration for the blog admin app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "blog_admin"
    verbose_name = "Blog Admin"
