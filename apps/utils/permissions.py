from django.conf import settings
from rest_framework.permissions import BasePermission


class ApiAccessPermission(BasePermission):
    """
    Pluggable API guard.
    Open when API_AUTH_REQUIRED is off, otherwise requires an authenticated
    user (JWT bearer token or session). Read at request time so the flag can
    be flipped per environment without touching the views.
    """

    def has_permission(self, request, view):
        if not getattr(settings, "API_AUTH_REQUIRED", False):
            return True
        return bool(request.user and request.user.is_authenticated)
