"""
JSON views for django-blog-admin.
"""
import json
import logging

from django.contrib.auth import authenticate, get_user_model
from django.core.paginator import Paginator
from django.db.models import Count, Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .auth import BearerTokenMixin, issue_token, role_for
from .conf import admin_settings
from .exceptions import BatchRejected, EmptyBatch, UnknownRatio
from .forms import (
    POST_FIELD_ALIASES,
    CategoryForm,
    PostForm,
    UserCreateForm,
    form_data,
)
from .ingest import UploadIngestService
from .models import Category, Post
from .utils import generate_base_identifier

logger = logging.getLogger(__name__)


def parse_json(request):
    """Return the request body as a dict, or None if it isn't one."""
    try:
        payload = json.loads(request.body or b"{}")
    except (ValueError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def invalid_input(errors=None):
    body = {"error": "Invalid input"}
    if errors is not None:
        body["details"] = {field: list(messages) for field, messages in errors.items()}
    return JsonResponse(body, status=400)


@method_decorator(csrf_exempt, name="dispatch")
class TokenObtainView(View):
    """Exchange a username and password for a bearer token."""

    def post(self, request):
        payload = parse_json(request) or request.POST
        user = authenticate(
            request,
            username=payload.get("username", ""),
            password=payload.get("password", ""),
        )
        if user is None or not user.is_active:
            return JsonResponse({"error": "Invalid credentials"}, status=401)

        return JsonResponse({
            "token": issue_token(user),
            "user": {
                "id": user.pk,
                "email": user.email,
                "name": user.get_full_name() or user.get_username(),
                "role": role_for(user),
            },
        })


class MultipleUploadView(BearerTokenMixin, View):
    """
    Store the cropped variants of one image.

    Expects repeated ``files`` and ``aspectRatios`` fields in the same order
    and an optional ``baseFilename`` shared by every file.
    """

    def post(self, request):
        files = request.FILES.getlist("files")
        aspect_ratios = request.POST.getlist("aspectRatios")
        base_filename = request.POST.get("baseFilename") or generate_base_identifier()

        try:
            records = UploadIngestService().ingest(files, aspect_ratios, base_filename)
        except (BatchRejected, EmptyBatch, UnknownRatio) as exc:
            logger.warning("Rejected upload batch from user %s: %s",
                           request.token_user.id, exc.message)
            return JsonResponse({"error": exc.message}, status=400)
        except Exception:
            logger.exception("Multiple upload failed")
            return JsonResponse({"error": "Upload failed"}, status=500)

        return JsonResponse({
            "success": True,
            "uploads": [record.as_dict() for record in records],
            "baseFilename": base_filename,
            "totalFiles": len(records),
        })


class SingleUploadView(BearerTokenMixin, View):
    """Store one uncropped image under a generated name."""

    def post(self, request):
        file_obj = request.FILES.get("file")
        if file_obj is None:
            return JsonResponse({"error": "No file provided"}, status=400)

        try:
            url, file_name = UploadIngestService().store(file_obj)
        except BatchRejected as exc:
            return JsonResponse({"error": exc.message}, status=400)
        except Exception:
            logger.exception("Upload failed")
            return JsonResponse({"error": "Upload failed"}, status=500)

        return JsonResponse({
            "url": url,
            "fileName": file_name,
            "size": file_obj.size,
            "type": file_obj.content_type,
        })


class PostListView(BearerTokenMixin, View):
    """List posts (authors see their own) and create new ones."""

    def get(self, request):
        qs = Post.objects.select_related("author", "category")
        if not request.token_user.is_admin:
            qs = qs.filter(author_id=request.token_user.id)

        status = request.GET.get("status")
        if status:
            qs = qs.filter(status=status)
        search = request.GET.get("search")
        if search:
            qs = qs.filter(Q(title__icontains=search) | Q(content__icontains=search))

        try:
            page_number = max(int(request.GET.get("page", 1)), 1)
            limit = max(int(request.GET.get("limit", admin_settings.POSTS_PER_PAGE)), 1)
        except ValueError:
            return invalid_input({"page": ["page and limit must be integers."]})

        paginator = Paginator(qs, limit)
        page = paginator.get_page(page_number)
        return JsonResponse({
            "posts": [post.to_dict() for post in page],
            "pagination": {
                "page": page.number,
                "limit": limit,
                "total": paginator.count,
                "pages": paginator.num_pages,
            },
        })

    def post(self, request):
        payload = parse_json(request)
        if payload is None:
            return invalid_input()

        data = {"status": Post.STATUS_DRAFT, **form_data(payload, POST_FIELD_ALIASES)}
        form = PostForm(data)
        if not form.is_valid():
            return invalid_input(form.errors)

        form.instance.author_id = request.token_user.id
        post = form.save()
        logger.info("Post %s created by user %s", post.pk, request.token_user.id)
        return JsonResponse(post.to_dict(), status=201)


class PostDetailView(BearerTokenMixin, View):
    """Read, update or delete a single post."""

    public_methods = ("get",)

    def get(self, request, pk):
        post = get_object_or_404(Post.objects.select_related("author", "category"), pk=pk)
        return JsonResponse(post.to_dict())

    def put(self, request, pk):
        post = get_object_or_404(Post, pk=pk)
        if not post.can_edit(request.token_user):
            return JsonResponse({"error": "Forbidden"}, status=403)

        payload = parse_json(request)
        if payload is None:
            return invalid_input()

        data = form_data(
            payload, POST_FIELD_ALIASES, instance=post, fields=PostForm.Meta.fields
        )
        form = PostForm(data, instance=post)
        if not form.is_valid():
            return invalid_input(form.errors)

        post = form.save()
        return JsonResponse(post.to_dict())

    def delete(self, request, pk):
        post = get_object_or_404(Post, pk=pk)
        if not post.can_edit(request.token_user):
            return JsonResponse({"error": "Forbidden"}, status=403)

        post.delete()
        return JsonResponse({"message": "Post deleted successfully"})


class CategoryListView(BearerTokenMixin, View):
    """List categories; admins create them."""

    public_methods = ("get",)
    admin_methods = ("post",)

    def get(self, request):
        categories = Category.objects.annotate(num_posts=Count("posts"))
        return JsonResponse({"categories": [c.to_dict() for c in categories]})

    def post(self, request):
        payload = parse_json(request)
        if payload is None:
            return invalid_input()

        form = CategoryForm(form_data(payload))
        if not form.is_valid():
            return invalid_input(form.errors)

        category = form.save()
        return JsonResponse(category.to_dict(), status=201)


class CategoryDetailView(BearerTokenMixin, View):
    """Read a category; admins update or delete it."""

    public_methods = ("get",)
    admin_methods = ("put", "delete")

    def get(self, request, pk):
        category = get_object_or_404(Category, pk=pk)
        return JsonResponse(category.to_dict())

    def put(self, request, pk):
        category = get_object_or_404(Category, pk=pk)
        payload = parse_json(request)
        if payload is None:
            return invalid_input()

        data = form_data(payload, instance=category, fields=CategoryForm.Meta.fields)
        form = CategoryForm(data, instance=category)
        if not form.is_valid():
            return invalid_input(form.errors)

        category = form.save()
        return JsonResponse(category.to_dict())

    def delete(self, request, pk):
        category = get_object_or_404(Category, pk=pk)
        if category.posts.exists():
            return JsonResponse(
                {"error": "Cannot delete category with existing posts"}, status=400
            )

        category.delete()
        return JsonResponse({"message": "Category deleted successfully"})


class DashboardView(BearerTokenMixin, View):
    """Post statistics for the signed-in user; site totals for admins."""

    def get(self, request):
        user = request.token_user
        qs = Post.objects.all()
        if not user.is_admin:
            qs = qs.filter(author_id=user.id)

        stats = {
            "totalPosts": qs.count(),
            "publishedPosts": qs.filter(status=Post.STATUS_PUBLISHED).count(),
            "draftPosts": qs.filter(status=Post.STATUS_DRAFT).count(),
            "totalCategories": None,
            "totalUsers": None,
        }
        author_stats = None

        if user.is_admin:
            User = get_user_model()
            stats["totalCategories"] = Category.objects.count()
            stats["totalUsers"] = User.objects.count()
            authors = User.objects.annotate(
                num_posts=Count("admin_posts")
            ).order_by("-num_posts")[:5]
            author_stats = [
                {
                    "id": author.pk,
                    "name": author.get_full_name() or author.get_username(),
                    "role": role_for(author),
                    "postCount": author.num_posts,
                }
                for author in authors
            ]

        recent = qs.select_related("author", "category").order_by("-updated_at")[:5]
        return JsonResponse({
            "stats": stats,
            "recentPosts": [post.to_dict() for post in recent],
            "authorStats": author_stats,
            "userRole": user.role,
        })


def user_to_dict(user):
    return {
        "id": user.pk,
        "name": user.get_full_name() or user.get_username(),
        "email": user.email,
        "role": role_for(user),
        "createdAt": user.date_joined.isoformat(),
    }


class UserListView(BearerTokenMixin, View):
    """List and create admin-panel users (admins only)."""

    admin_methods = ("get", "post")

    def get(self, request):
        users = get_user_model().objects.annotate(
            num_posts=Count("admin_posts")
        ).order_by("-date_joined", "-pk")
        return JsonResponse({
            "users": [
                {**user_to_dict(user), "postCount": user.num_posts} for user in users
            ],
        })

    def post(self, request):
        payload = parse_json(request)
        if payload is None:
            return invalid_input()

        form = UserCreateForm(payload)
        if not form.is_valid():
            return invalid_input(form.errors)

        email = form.cleaned_data["email"]
        User = get_user_model()
        if User.objects.filter(Q(email__iexact=email) | Q(username__iexact=email)).exists():
            return JsonResponse(
                {"error": "User with this email already exists"}, status=400
            )

        user = form.save()
        logger.info("User %s created by admin %s", user.pk, request.token_user.id)
        return JsonResponse(user_to_dict(user), status=201)
