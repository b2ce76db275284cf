"""
Django admin configuration for blog_admin.
"""
from django.contrib import admin
from django.utils.html import format_html_join

from .models import Category, Post
from .ratios import catalog


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "post_count", "created_at"]
    search_fields = ["name", "slug", "description"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = [
        "title_preview",
        "author",
        "status",
        "category",
        "image_count",
        "updated_at",
    ]
    list_filter = ["status", "category", "created_at"]
    search_fields = ["title", "content", "author__username"]
    raw_id_fields = ["author", "category"]
    date_hierarchy = "created_at"
    readonly_fields = [
        "excerpt",
        "image_previews",
        "created_at",
        "updated_at",
        "published_at",
    ]
    prepopulated_fields = {"slug": ("title",)}

    fieldsets = (
        (None, {
            "fields": ("title", "slug", "content", "excerpt", "author")
        }),
        ("Taxonomy", {
            "fields": ("category", "status")
        }),
        ("Images", {
            "fields": ("featured_image", "images", "image_previews")
        }),
        ("SEO", {
            "fields": ("seo_title", "seo_description"),
            "classes": ("collapse",),
        }),
        ("Metadata", {
            "fields": ("published_at", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    actions = ["publish_posts"]

    @admin.display(description="Title")
    def title_preview(self, obj):
        return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title

    @admin.display(description="Images")
    def image_count(self, obj):
        return len(obj.images or [])

    @admin.display(description="Previews")
    def image_previews(self, obj):
        if not obj.images:
            return "-"
        return format_html_join(
            "",
            '<figure style="display:inline-block;margin:0 8px 8px 0">'
            '<img src="{}" style="max-width: 120px; max-height: 120px;" />'
            "<figcaption>{}</figcaption></figure>",
            (
                (image.get("url", ""), catalog.label_for(image.get("aspectRatio", "")))
                for image in obj.images
            ),
        )

    @admin.action(description="Publish selected posts")
    def publish_posts(self, request, queryset):
        for post in queryset:
            post.publish()
        self.message_user(request, f"{queryset.count()} posts published.")
