"""
Models for django-blog-admin.

All models are importable from blog_admin.models:

    from blog_admin.models import Post, Category
"""
from .posts import Category, Post

__all__ = [
    "Category",
    "Post",
]
