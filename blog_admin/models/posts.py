"""
Post and Category models for django-blog-admin.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone

from ..ratios import catalog
from ..utils import generate_excerpt, unique_slug


class Category(models.Model):
    """
    Flat category for organizing posts.
    """

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Categories"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        # Re-derive slug when the name changes
        if not self.slug or self._name_changed():
            self.slug = unique_slug(Category, self.name, instance=self)
        super().save(*args, **kwargs)

    def _name_changed(self):
        if not self.pk:
            return False
        previous = Category.objects.filter(pk=self.pk).values_list("name", flat=True).first()
        return previous is not None and previous != self.name

    @property
    def post_count(self):
        """Return the number of posts, using a num_posts annotation if present."""
        if hasattr(self, "num_posts"):
            return self.num_posts
        return self.posts.count()

    def to_dict(self):
        return {
            "id": self.pk,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "postCount": self.post_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class Post(models.Model):
    """
    Blog post / article.

    Supports:
    - Draft and published states
    - Slugs and excerpts derived from title and content
    - A list of cropped images, each tagged with its aspect ratio
    """

    STATUS_DRAFT = "DRAFT"
    STATUS_PUBLISHED = "PUBLISHED"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
    ]

    # Content
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    content = models.TextField()
    excerpt = models.TextField(blank=True)

    # SEO
    seo_title = models.CharField(max_length=255, blank=True)
    seo_description = models.TextField(blank=True)

    # Images
    featured_image = models.CharField(max_length=500, blank=True)
    images = models.JSONField(
        default=list,
        blank=True,
        help_text='Uploaded images as [{"url": ..., "aspectRatio": ...}]',
    )

    # Status
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
    )
    published_at = models.DateTimeField(null=True, blank=True, db_index=True)

    # Relations
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="admin_posts",
    )
    category = models.ForeignKey(
        Category,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posts",
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["author", "-updated_at"]),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        # Slug follows the title, unique across posts
        if not self.slug or self._title_changed():
            self.slug = unique_slug(Post, self.title, instance=self)

        self.excerpt = generate_excerpt(self.content)

        # Set published_at on first publish
        if self.status == self.STATUS_PUBLISHED and not self.published_at:
            self.published_at = timezone.now()

        super().save(*args, **kwargs)

    def _title_changed(self):
        if not self.pk:
            return False
        previous = Post.objects.filter(pk=self.pk).values_list("title", flat=True).first()
        return previous is not None and previous != self.title

    @property
    def is_published(self):
        return self.status == self.STATUS_PUBLISHED

    def can_edit(self, user):
        """Authors edit their own posts; admins edit everything."""
        return user.is_admin or user.id == self.author_id

    def images_for_ratio(self, name):
        """Return the images stored for one aspect ratio."""
        ratio = catalog.resolve(name)
        return [
            image for image in self.images
            if image.get("aspectRatio") in (ratio.name, ratio.directory)
        ]

    def publish(self):
        """Publish the post immediately; already published posts keep their date."""
        if self.is_published:
            return
        self.status = self.STATUS_PUBLISHED
        self.published_at = timezone.now()
        self.save()

    def to_dict(self):
        author = self.author
        return {
            "id": self.pk,
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "excerpt": self.excerpt,
            "seoTitle": self.seo_title,
            "seoDescription": self.seo_description,
            "featuredImage": self.featured_image,
            "images": self.images,
            "status": self.status,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "author": {
                "id": author.pk,
                "name": author.get_full_name() or author.get_username(),
                "email": author.email,
            },
            "category": (
                {"id": self.category.pk, "name": self.category.name}
                if self.category
                else None
            ),
        }
