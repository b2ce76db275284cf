"""
Tests for the blog_admin JSON API.
"""
import json

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from blog_admin.auth import issue_token, verify_token
from blog_admin.ingest import UploadIngestService
from blog_admin.models import Category, Post

User = get_user_model()


def jpeg(content=b"\xff\xd8data", name="crop.jpg"):
    return SimpleUploadedFile(name, content, content_type="image/jpeg")


def send_json(client, method, url, payload, headers):
    return getattr(client, method)(
        url, data=json.dumps(payload), content_type="application/json", **headers
    )


@pytest.fixture
def category(db):
    return Category.objects.create(name="News")


@pytest.fixture
def post(db, user, category):
    return Post.objects.create(title="First", content="Body", author=user, category=category)


class TestTokens:
    """Tests for bearer token issue and verification."""

    def test_obtain_token(self, client, user):
        response = send_json(
            client, "post", reverse("blog_admin:token"),
            {"username": "author", "password": "testpass123"}, {},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["role"] == "AUTHOR"
        assert verify_token(data["token"]).id == user.pk

    def test_bad_credentials(self, client, user):
        response = send_json(
            client, "post", reverse("blog_admin:token"),
            {"username": "author", "password": "wrong"}, {},
        )
        assert response.status_code == 401

    def test_staff_is_admin(self, staff_user):
        assert verify_token(issue_token(staff_user)).is_admin

    def test_tampered_token(self, user):
        assert verify_token(issue_token(user) + "x") is None

    def test_expired_token(self, user, settings):
        token = issue_token(user)
        settings.BLOG_ADMIN = {**settings.BLOG_ADMIN, "TOKEN_MAX_AGE": -1}
        assert verify_token(token) is None


class TestMultipleUpload:
    """Tests for the multiple upload endpoint."""

    url = "/api/upload/multiple/"

    def test_requires_token(self, client, upload_root):
        response = client.post(self.url, {"files": [jpeg()], "aspectRatios": ["square"]})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_upload(self, client, user, upload_root, auth_header):
        response = client.post(
            self.url,
            {
                "files": [jpeg(b"one"), jpeg(b"three")],
                "aspectRatios": ["square", "wide"],
                "baseFilename": "abc123.jpg",
            },
            **auth_header(user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["baseFilename"] == "abc123.jpg"
        assert data["totalFiles"] == 2
        assert data["uploads"][1] == {
            "url": "/uploads/images/21-9/abc123.jpg",
            "aspectRatio": "wide",
            "directory": "21-9",
            "fileName": "abc123.jpg",
            "size": 5,
            "type": "image/jpeg",
        }
        assert (upload_root / "images" / "1-1" / "abc123.jpg").read_bytes() == b"one"

    def test_generates_base_filename(self, client, user, upload_root, auth_header):
        response = client.post(
            self.url,
            {"files": [jpeg()], "aspectRatios": ["free"]},
            **auth_header(user),
        )
        base = response.json()["baseFilename"]
        assert base.endswith(".jpg")
        assert (upload_root / "images" / "free" / base).exists()

    def test_no_files(self, client, user, upload_root, auth_header):
        response = client.post(self.url, {"aspectRatios": ["square"]}, **auth_header(user))
        assert response.status_code == 400
        assert response.json() == {"error": "No files provided"}

    def test_mismatch(self, client, user, upload_root, auth_header):
        response = client.post(
            self.url,
            {"files": [jpeg(), jpeg()], "aspectRatios": ["square", "wide", "free"]},
            **auth_header(user),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Mismatch between files and aspect ratios"}
        assert not upload_root.exists()

    def test_wrong_type(self, client, user, upload_root, auth_header):
        text = SimpleUploadedFile("notes.txt", b"hi", content_type="text/plain")
        response = client.post(
            self.url,
            {"files": [jpeg(), text], "aspectRatios": ["square", "wide"]},
            **auth_header(user),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid file type. Only images are allowed."}
        assert not upload_root.exists()

    def test_path_traversal_rejected(self, client, user, upload_root, auth_header):
        response = client.post(
            self.url,
            {"files": [jpeg()], "aspectRatios": ["square"], "baseFilename": "../../x.jpg"},
            **auth_header(user),
        )
        assert response.status_code == 400
        assert not upload_root.exists()

    def test_unexpected_failure(self, client, user, upload_root, auth_header, monkeypatch):
        def explode(self, files, ratio_tags, base_identifier):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(UploadIngestService, "ingest", explode)
        response = client.post(
            self.url,
            {"files": [jpeg()], "aspectRatios": ["square"]},
            **auth_header(user),
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Upload failed"}


class TestSingleUpload:
    """Tests for the single upload endpoint."""

    url = "/api/upload/"

    def test_upload(self, client, user, upload_root, auth_header):
        response = client.post(self.url, {"file": jpeg(b"abc", name="cat.jpg")}, **auth_header(user))

        assert response.status_code == 200
        data = response.json()
        assert data["url"] == f"/uploads/{data['fileName']}"
        assert data["size"] == 3
        assert (upload_root / data["fileName"]).read_bytes() == b"abc"

    def test_no_file(self, client, user, upload_root, auth_header):
        response = client.post(self.url, {}, **auth_header(user))
        assert response.status_code == 400

    def test_too_large(self, client, user, upload_root, auth_header, settings):
        settings.BLOG_ADMIN = {**settings.BLOG_ADMIN, "MAX_UPLOAD_SIZE_MB": 1}
        big = jpeg(b"x" * (1024 * 1024 + 1))
        response = client.post(self.url, {"file": big}, **auth_header(user))
        assert response.status_code == 400
        assert response.json() == {"error": "File too large. Maximum size is 1MB."}


class TestPostApi:
    """Tests for post endpoints."""

    def test_list_requires_token(self, client, db):
        assert client.get("/api/posts/").status_code == 401

    def test_author_sees_own_posts(self, client, post, other_user, auth_header):
        Post.objects.create(title="Theirs", content="x", author=other_user)

        response = client.get("/api/posts/", **auth_header(post.author))
        data = response.json()
        assert [p["title"] for p in data["posts"]] == ["First"]
        assert data["pagination"] == {"page": 1, "limit": 5, "total": 1, "pages": 1}

    def test_admin_sees_all_posts(self, client, post, other_user, staff_user, auth_header):
        Post.objects.create(title="Theirs", content="x", author=other_user)

        response = client.get("/api/posts/", **auth_header(staff_user))
        assert response.json()["pagination"]["total"] == 2

    def test_filters(self, client, post, user, auth_header):
        Post.objects.create(title="Live", content="needle", author=user, status=Post.STATUS_PUBLISHED)

        published = client.get("/api/posts/?status=PUBLISHED", **auth_header(user)).json()
        assert [p["title"] for p in published["posts"]] == ["Live"]
        found = client.get("/api/posts/?search=NEEDLE", **auth_header(user)).json()
        assert [p["title"] for p in found["posts"]] == ["Live"]

    def test_bad_pagination(self, client, user, auth_header):
        response = client.get("/api/posts/?page=abc", **auth_header(user))
        assert response.status_code == 400

    def test_create_post(self, client, user, category, auth_header):
        response = send_json(
            client, "post", "/api/posts/",
            {
                "title": "Hello World",
                "content": "<p>Hello <b>there</b></p>",
                "categoryId": category.pk,
                "seoTitle": "Hello",
                "images": [
                    {"url": "/uploads/images/1-1/abc.jpg", "aspectRatio": "square"},
                    {"url": "/uploads/images/16-9/abc.jpg", "aspectRatio": "16-9"},
                ],
            },
            auth_header(user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["slug"] == "hello-world"
        assert data["excerpt"] == "Hello there"
        assert data["status"] == "DRAFT"
        assert data["seoTitle"] == "Hello"
        assert data["category"]["id"] == category.pk
        assert data["author"]["id"] == user.pk
        assert data["images"][1] == {"url": "/uploads/images/16-9/abc.jpg", "aspectRatio": "landscape"}

    def test_create_published_post(self, client, user, auth_header):
        response = send_json(
            client, "post", "/api/posts/",
            {"title": "Now", "content": "Live", "status": "PUBLISHED"},
            auth_header(user),
        )
        assert response.json()["publishedAt"] is not None

    def test_create_duplicate_title(self, client, post, auth_header):
        response = send_json(
            client, "post", "/api/posts/",
            {"title": "First", "content": "Again"},
            auth_header(post.author),
        )
        assert response.json()["slug"] == "first-1"

    def test_create_invalid(self, client, user, auth_header):
        response = send_json(client, "post", "/api/posts/", {"content": "No title"}, auth_header(user))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input"
        assert "title" in response.json()["details"]

    def test_create_unknown_ratio(self, client, user, auth_header):
        response = send_json(
            client, "post", "/api/posts/",
            {
                "title": "Bad",
                "content": "x",
                "images": [{"url": "/a.jpg", "aspectRatio": "panorama"}],
            },
            auth_header(user),
        )
        assert response.status_code == 400
        assert "images" in response.json()["details"]

    def test_too_many_images(self, client, user, auth_header):
        images = [{"url": f"/{i}.jpg", "aspectRatio": "free"} for i in range(11)]
        response = send_json(
            client, "post", "/api/posts/",
            {"title": "Many", "content": "x", "images": images},
            auth_header(user),
        )
        assert response.status_code == 400

    def test_malformed_json(self, client, user, auth_header):
        response = client.post(
            "/api/posts/", data="{nope", content_type="application/json", **auth_header(user)
        )
        assert response.status_code == 400

    def test_detail_is_public(self, client, post):
        response = client.get(f"/api/posts/{post.pk}/")
        assert response.status_code == 200
        assert response.json()["title"] == "First"

    def test_detail_missing(self, client, db):
        assert client.get("/api/posts/999/").status_code == 404

    def test_partial_update(self, client, post, auth_header):
        response = send_json(
            client, "put", f"/api/posts/{post.pk}/",
            {"title": "Renamed", "status": "PUBLISHED"},
            auth_header(post.author),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["slug"] == "renamed"
        assert data["content"] == "Body"
        assert data["category"]["name"] == "News"
        assert data["publishedAt"] is not None

    def test_update_forbidden(self, client, post, other_user, auth_header):
        response = send_json(
            client, "put", f"/api/posts/{post.pk}/", {"title": "Mine now"}, auth_header(other_user)
        )
        assert response.status_code == 403
        post.refresh_from_db()
        assert post.title == "First"

    def test_admin_can_update(self, client, post, staff_user, auth_header):
        response = send_json(
            client, "put", f"/api/posts/{post.pk}/", {"content": "Edited"}, auth_header(staff_user)
        )
        assert response.status_code == 200
        assert response.json()["excerpt"] == "Edited"

    def test_delete(self, client, post, auth_header):
        response = client.delete(f"/api/posts/{post.pk}/", **auth_header(post.author))
        assert response.status_code == 200
        assert not Post.objects.filter(pk=post.pk).exists()

    def test_delete_forbidden(self, client, post, other_user, auth_header):
        response = client.delete(f"/api/posts/{post.pk}/", **auth_header(other_user))
        assert response.status_code == 403
        assert Post.objects.filter(pk=post.pk).exists()


class TestCategoryApi:
    """Tests for category endpoints."""

    def test_list_is_public(self, client, post):
        response = client.get("/api/categories/")
        assert response.json()["categories"][0]["postCount"] == 1

    def test_author_cannot_create(self, client, user, auth_header):
        response = send_json(client, "post", "/api/categories/", {"name": "Tech"}, auth_header(user))
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    def test_admin_creates(self, client, staff_user, category, auth_header):
        response = send_json(
            client, "post", "/api/categories/", {"name": "News"}, auth_header(staff_user)
        )
        assert response.status_code == 201
        assert response.json()["slug"] == "news-1"

    def test_create_invalid(self, client, staff_user, auth_header):
        response = send_json(client, "post", "/api/categories/", {"name": ""}, auth_header(staff_user))
        assert response.status_code == 400

    def test_update(self, client, staff_user, category, auth_header):
        response = send_json(
            client, "put", f"/api/categories/{category.pk}/",
            {"description": "Latest"},
            auth_header(staff_user),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "News"
        assert response.json()["description"] == "Latest"

    def test_delete_with_posts(self, client, staff_user, post, auth_header):
        response = client.delete(f"/api/categories/{post.category.pk}/", **auth_header(staff_user))
        assert response.status_code == 400
        assert response.json() == {"error": "Cannot delete category with existing posts"}

    def test_delete(self, client, staff_user, category, auth_header):
        response = client.delete(f"/api/categories/{category.pk}/", **auth_header(staff_user))
        assert response.status_code == 200
        assert not Category.objects.exists()


class TestDashboard:
    """Tests for the dashboard endpoint."""

    def test_author_dashboard(self, client, post, other_user, auth_header):
        Post.objects.create(title="Theirs", content="x", author=other_user)

        data = client.get("/api/dashboard/", **auth_header(post.author)).json()
        assert data["userRole"] == "AUTHOR"
        assert data["stats"]["totalPosts"] == 1
        assert data["stats"]["draftPosts"] == 1
        assert data["stats"]["totalUsers"] is None
        assert data["authorStats"] is None

    def test_admin_dashboard(self, client, post, staff_user, auth_header):
        data = client.get("/api/dashboard/", **auth_header(staff_user)).json()
        assert data["userRole"] == "ADMIN"
        assert data["stats"]["totalPosts"] == 1
        assert data["stats"]["totalCategories"] == 1
        assert data["stats"]["totalUsers"] == 2
        assert data["authorStats"][0]["postCount"] == 1
        assert [p["title"] for p in data["recentPosts"]] == ["First"]


class TestUserApi:
    """Tests for admin user management."""

    url = "/api/users/"

    def test_author_forbidden(self, client, user, auth_header):
        response = client.get(self.url, **auth_header(user))
        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}

    def test_author_cannot_create(self, client, user, auth_header):
        response = send_json(
            client, "post", self.url,
            {"name": "Eve", "email": "eve@example.com", "password": "secret1"},
            auth_header(user),
        )
        assert response.status_code == 403
        assert not User.objects.filter(email="eve@example.com").exists()

    def test_list_users(self, client, post, staff_user, auth_header):
        response = client.get(self.url, **auth_header(staff_user))

        assert response.status_code == 200
        users = {u["email"]: u for u in response.json()["users"]}
        assert users["author@example.com"]["postCount"] == 1
        assert users["author@example.com"]["role"] == "AUTHOR"
        assert users["editor@example.com"]["role"] == "ADMIN"

    def test_create_author(self, client, staff_user, auth_header):
        response = send_json(
            client, "post", self.url,
            {"name": "Grace Hopper", "email": "grace@example.com", "password": "cobol60"},
            auth_header(staff_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Grace Hopper"
        assert data["role"] == "AUTHOR"
        created = User.objects.get(pk=data["id"])
        assert not created.is_staff
        assert created.check_password("cobol60")

    def test_created_user_can_log_in(self, client, staff_user, auth_header):
        send_json(
            client, "post", self.url,
            {"name": "Grace", "email": "grace@example.com", "password": "cobol60", "role": "ADMIN"},
            auth_header(staff_user),
        )

        response = send_json(
            client, "post", reverse("blog_admin:token"),
            {"username": "grace@example.com", "password": "cobol60"}, {},
        )
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "ADMIN"

    def test_duplicate_email(self, client, user, staff_user, auth_header):
        response = send_json(
            client, "post", self.url,
            {"name": "Copy", "email": "Author@example.com", "password": "secret1"},
            auth_header(staff_user),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "User with this email already exists"}

    def test_invalid_input(self, client, staff_user, auth_header):
        response = send_json(
            client, "post", self.url,
            {"name": "", "email": "not-an-email", "password": "123", "role": "OWNER"},
            auth_header(staff_user),
        )
        assert response.status_code == 400
        details = response.json()["details"]
        assert set(details) == {"name", "email", "password", "role"}
