"""
URL configuration for django-blog-admin.

Include in your project urls.py:

    path('api/', include('blog_admin.urls')),
"""
from django.urls import path

from . import views

app_name = "blog_admin"

urlpatterns = [
    # Auth
    path("auth/token/", views.TokenObtainView.as_view(), name="token"),

    # Uploads
    path("upload/", views.SingleUploadView.as_view(), name="upload"),
    path("upload/multiple/", views.MultipleUploadView.as_view(), name="upload_multiple"),

    # Posts
    path("posts/", views.PostListView.as_view(), name="post_list"),
    path("posts/<int:pk>/", views.PostDetailView.as_view(), name="post_detail"),

    # Categories
    path("categories/", views.CategoryListView.as_view(), name="category_list"),
    path("categories/<int:pk>/", views.CategoryDetailView.as_view(), name="category_detail"),

    # Users
    path("users/", views.UserListView.as_view(), name="user_list"),

    # Dashboard
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
]
