"""
Bearer token authentication for the admin JSON API.

Tokens are signed with Django's SECRET_KEY and expire after
TOKEN_MAX_AGE seconds. They carry the user's id, email, name and role.
"""
from dataclasses import dataclass

from django.core import signing
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt

from .conf import admin_settings

ROLE_ADMIN = "ADMIN"
ROLE_AUTHOR = "AUTHOR"


@dataclass(frozen=True)
class TokenUser:
    """Identity resolved from a bearer token."""

    id: int
    email: str
    name: str
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN


def role_for(user):
    """Staff users are admins, everyone else is an author."""
    return ROLE_ADMIN if user.is_staff or user.is_superuser else ROLE_AUTHOR


def issue_token(user):
    """Return a signed token for a Django user."""
    payload = {
        "id": user.pk,
        "email": user.email,
        "name": user.get_full_name() or user.get_username(),
        "role": role_for(user),
    }
    return signing.dumps(payload, salt=admin_settings.TOKEN_SALT)


def verify_token(token):
    """Return the TokenUser for a valid token, or None."""
    try:
        payload = signing.loads(
            token,
            salt=admin_settings.TOKEN_SALT,
            max_age=admin_settings.TOKEN_MAX_AGE,
        )
        return TokenUser(
            id=payload["id"],
            email=payload["email"],
            name=payload["name"],
            role=payload["role"],
        )
    except (signing.BadSignature, KeyError, TypeError):
        return None


def user_from_request(request):
    """Resolve the Authorization: Bearer header of ``request``."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return verify_token(header[len("Bearer "):])


class BearerTokenMixin:
    """
    Authenticate class-based views with a bearer token.

    Methods listed in ``public_methods`` skip authentication; methods in
    ``admin_methods`` additionally require the ADMIN role. The resolved
    identity is available as ``request.token_user``.
    """

    public_methods = ()
    admin_methods = ()

    @method_decorator(csrf_exempt)
    def dispatch(self, request, *args, **kwargs):
        method = request.method.lower()
        if method not in self.public_methods:
            token_user = user_from_request(request)
            if token_user is None:
                return JsonResponse({"error": "Unauthorized"}, status=401)
            request.token_user = token_user
            if method in self.admin_methods and not token_user.is_admin:
                return JsonResponse({"error": "Admin access required"}, status=403)
        return super().dispatch(request, *args, **kwargs)
