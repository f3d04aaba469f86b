from rest_framework import permissions

from apps.projects.exceptions import AuthenticationRequired, GoogleAuthRequired
from .session import SessionContext


class HasGoogleConfig(permissions.BasePermission):
    """Session must hold a Google API credential bundle."""

    def has_permission(self, request, view):
        if not SessionContext.for_request(request).has_google_config:
            raise AuthenticationRequired('No Google configuration found')
        return True


class HasGoogleTokens(permissions.BasePermission):
    """
    Session must hold unexpired Google OAuth tokens. Nothing is refreshed here;
    clients call the refresh endpoint and retry.
    """

    def has_permission(self, request, view):
        if not SessionContext.for_request(request).has_valid_tokens:
            raise GoogleAuthRequired()
        return True
