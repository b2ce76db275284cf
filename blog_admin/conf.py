"""
Configuration settings for django-blog-admin.

Override these in your Django settings.py:

    BLOG_ADMIN = {
        'UPLOAD_ROOT': '/srv/site/public/uploads',
        'PUBLIC_ROOT': '/uploads',
        'MAX_UPLOAD_SIZE_MB': 5,
        ...
    }

UPLOAD_ROOT defaults to MEDIA_ROOT/uploads when left unset.
"""
import os

from django.conf import settings

DEFAULTS = {
    # Storage
    "UPLOAD_ROOT": None,
    "PUBLIC_ROOT": "/uploads",
    "IMAGES_DIRECTORY": "images",

    # Upload validation
    "MAX_UPLOAD_SIZE_MB": 5,
    "ALLOWED_IMAGE_TYPES": ["image/jpeg", "image/png", "image/gif", "image/webp"],

    # Cropping
    "JPEG_QUALITY": 90,
    "ZOOM_MIN": 1.0,
    "ZOOM_MAX": 3.0,
    "DEFAULT_RATIO": "square",

    # Upload client
    "UPLOAD_TIMEOUT": 30,

    # Auth tokens
    "TOKEN_MAX_AGE": 7 * 24 * 60 * 60,
    "TOKEN_SALT": "blog_admin.token",

    # Posts
    "MAX_IMAGES_PER_POST": 10,
    "POSTS_PER_PAGE": 10,
    "EXCERPT_LENGTH": 160,
    "SLUG_MAX_LENGTH": 100,
}


class BlogAdminSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from blog_admin.conf import admin_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid blog_admin setting: {name}")

        user_settings = getattr(settings, "BLOG_ADMIN", {})
        return user_settings.get(name, DEFAULTS[name])

    @property
    def UPLOAD_ROOT(self):
        """Return the upload root, falling back to MEDIA_ROOT/uploads."""
        user_settings = getattr(settings, "BLOG_ADMIN", {})
        root = user_settings.get("UPLOAD_ROOT")
        if root:
            return os.fspath(root)
        return os.path.join(os.fspath(settings.MEDIA_ROOT or ""), "uploads")

    @property
    def MAX_UPLOAD_SIZE(self):
        """Return the per-file upload limit in bytes."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


admin_settings = BlogAdminSettings()
