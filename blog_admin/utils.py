"""
Helpers for filenames, slugs and excerpts.
"""
import time

from django.utils.crypto import get_random_string
from django.utils.html import strip_tags
from django.utils.text import slugify

from .conf import admin_settings

BASE36_CHARS = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_base_identifier(original_name=None):
    """
    Generate a filename shared by every variant of one uploaded image.

    Format is ``{epoch-ms}-{random}.{ext}``; the extension comes from
    ``original_name`` and defaults to jpg. Uniqueness is probabilistic,
    existing files are not checked.
    """
    extension = "jpg"
    if original_name and "." in original_name:
        extension = original_name.rsplit(".", 1)[1].lower() or extension
    timestamp = int(time.time() * 1000)
    return f"{timestamp}-{get_random_string(11, BASE36_CHARS)}.{extension}"


def unique_slug(model, value, instance=None, field="slug"):
    """
    Slugify ``value`` and append -1, -2, ... until no other row uses it.
    """
    max_length = min(
        admin_settings.SLUG_MAX_LENGTH,
        model._meta.get_field(field).max_length or admin_settings.SLUG_MAX_LENGTH,
    )
    base_slug = slugify(value)[:max_length].strip("-") or "untitled"
    slug = base_slug
    counter = 1
    queryset = model.objects.all()
    if instance is not None and instance.pk:
        queryset = queryset.exclude(pk=instance.pk)
    while queryset.filter(**{field: slug}).exists():
        suffix = f"-{counter}"
        # Keep room for the suffix within the column length
        slug = base_slug[:max_length - len(suffix)].rstrip("-") + suffix
        counter += 1
    return slug


def generate_excerpt(content, length=None):
    """Return plain-text content truncated to ``length`` characters."""
    length = length or admin_settings.EXCERPT_LENGTH
    text = " ".join(strip_tags(content or "").split())
    if len(text) > length:
        return text[:length].rstrip() + "..."
    return text
