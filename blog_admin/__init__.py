"""
django-blog-admin - A content admin panel for Django blogs.

Features:
- Posts and categories with slug and excerpt derivation
- Author/admin roles with signed bearer tokens
- Multi-aspect-ratio image cropping (square, landscape, portrait, ...)
- Batch upload of cropped variants under one shared base filename
- Aspect-ratio keyed storage layout (images/1-1/, images/16-9/, ...)
"""

__version__ = "0.1.0"
__author__ = "Nestor Wheelock"
