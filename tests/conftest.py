"""
Shared fixtures for django-blog-admin tests.
"""
import io

import pytest
from django.contrib.auth import get_user_model
from PIL import Image

from blog_admin.auth import issue_token

User = get_user_model()


def make_image(width=400, height=300, color=(200, 30, 30), fmt="PNG", mode="RGB"):
    """Return encoded image bytes of a solid-colour image."""
    img = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def source_image():
    """A 400x300 PNG source image."""
    return make_image()


@pytest.fixture
def upload_root(tmp_path, settings):
    """Point UPLOAD_ROOT at a fresh temporary directory."""
    root = tmp_path / "uploads"
    settings.BLOG_ADMIN = {**settings.BLOG_ADMIN, "UPLOAD_ROOT": str(root)}
    return root


@pytest.fixture
def user(db):
    """Create an author."""
    return User.objects.create_user(
        username="author",
        email="author@example.com",
        password="testpass123",
        first_name="Ada",
        last_name="Author",
    )


@pytest.fixture
def other_user(db):
    """Create a second author."""
    return User.objects.create_user(
        username="other",
        email="other@example.com",
        password="testpass123",
    )


@pytest.fixture
def staff_user(db):
    """Create an admin."""
    return User.objects.create_user(
        username="editor",
        email="editor@example.com",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def auth_header():
    """Build the Authorization header for a user."""

    def build(user):
        return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(user)}"}

    return build


@pytest.fixture
def image_factory():
    """Return the image-bytes builder."""
    return make_image
