"""
Forms validating JSON payloads for posts, categories and users.
"""
from django import forms
from django.contrib.auth import get_user_model
from django.forms.models import model_to_dict

from .auth import ROLE_ADMIN, ROLE_AUTHOR
from .conf import admin_settings
from .models import Category, Post
from .ratios import catalog

# JSON keys used by the editor -> form field names
POST_FIELD_ALIASES = {
    "seoTitle": "seo_title",
    "seoDescription": "seo_description",
    "featuredImage": "featured_image",
    "categoryId": "category",
}


def form_data(payload, aliases=None, instance=None, fields=None):
    """
    Build form data from a JSON payload.

    Keys are renamed through ``aliases``. When ``instance`` is given, its
    current values fill in every field the payload leaves out, so partial
    updates keep the rest of the object.
    """
    aliases = aliases or {}
    data = {}
    if instance is not None:
        data.update(model_to_dict(instance, fields=fields))
    for key, value in payload.items():
        data[aliases.get(key, key)] = value
    return data


class PostForm(forms.ModelForm):
    class Meta:
        model = Post
        fields = [
            "title",
            "content",
            "seo_title",
            "seo_description",
            "featured_image",
            "images",
            "status",
            "category",
        ]

    def clean_images(self):
        images = self.cleaned_data.get("images") or []
        if not isinstance(images, list):
            raise forms.ValidationError("Images must be a list.")
        if len(images) > admin_settings.MAX_IMAGES_PER_POST:
            raise forms.ValidationError(
                f"A post can have at most {admin_settings.MAX_IMAGES_PER_POST} images."
            )

        cleaned = []
        for image in images:
            if not isinstance(image, dict) or not isinstance(image.get("url"), str):
                raise forms.ValidationError("Each image needs a url.")
            ratio = image.get("aspectRatio")
            if not isinstance(ratio, str) or ratio not in catalog:
                raise forms.ValidationError(f"Unknown aspect ratio: {ratio}")
            cleaned.append({"url": image["url"], "aspectRatio": catalog.resolve(ratio).name})
        return cleaned


class CategoryForm(forms.ModelForm):
    class Meta:
        model = Category
        fields = ["name", "description"]


class UserCreateForm(forms.Form):
    """New admin-panel user; the email doubles as the login name."""

    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=6)
    role = forms.ChoiceField(
        choices=[(ROLE_ADMIN, "Admin"), (ROLE_AUTHOR, "Author")],
        required=False,
    )

    def clean_role(self):
        return self.cleaned_data.get("role") or ROLE_AUTHOR

    def save(self):
        first_name, _, last_name = self.cleaned_data["name"].partition(" ")
        return get_user_model().objects.create_user(
            username=self.cleaned_data["email"],
            email=self.cleaned_data["email"],
            password=self.cleaned_data["password"],
            first_name=first_name,
            last_name=last_name,
            is_staff=self.cleaned_data["role"] == ROLE_ADMIN,
        )
