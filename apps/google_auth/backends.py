"""
Swappable login backends, selected by ``settings.AUTH_BACKEND``.

Submitting a Google API configuration is the first step of every sign-in.
The ``dev`` backend signs the session straight in as a fixed development
user; the ``google`` backend answers with a consent URL and finishes on the
OAuth callback.
"""
import logging
import secrets

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.urls import reverse

from apps.projects.exceptions import ValidationError
from apps.projects.storage import storage
from apps.users.serializers import UserProfileSerializer
from .services import GoogleOAuthService
from .session import GoogleTokens

logger = logging.getLogger(__name__)


class LoginBackend:
    name = None

    def submit_config(self, request, context, config) -> dict:
        """Store ``config`` on the session and start signing in. Returns the response body."""
        raise NotImplementedError

    def complete_login(self, request, context, code, state):
        raise ValidationError('OAuth sign-in is not enabled')


class DevLoginBackend(LoginBackend):
    """Development shortcut: any configuration logs in ``settings.DEV_USER``."""
    name = 'dev'

    def submit_config(self, request, context, config):
        user = storage.upsert_user({**settings.DEV_USER, 'google_api_config': config.to_dict()})
        context.google_config = config
        context.switch_user(user.id)
        logger.info(f"Development login as {user.email}")
        return {'success': True, 'user': UserProfileSerializer(user).data}


class GoogleOAuthBackend(LoginBackend):
    name = 'google'

    @staticmethod
    def callback_uri(request):
        return request.build_absolute_uri(reverse('google_auth:callback'))

    def submit_config(self, request, context, config):
        context.google_config = config
        context.oauth_state = secrets.token_urlsafe(24)
        url = GoogleOAuthService(config).authorization_url(self.callback_uri(request), context.oauth_state)
        return {'success': True, 'authUrl': url}

    def complete_login(self, request, context, code, state):
        if not context.google_config:
            raise ValidationError('No Google configuration found')
        if not code or not state or state != context.oauth_state:
            raise ValidationError('Invalid OAuth state')

        service = GoogleOAuthService(context.google_config)
        tokens = service.exchange_code(code, self.callback_uri(request))
        if not tokens.get('id_token'):
            raise ValidationError('Google did not return an ID token')
        claims = service.verify_id_token(tokens['id_token'])

        existing = storage.get_user_by_email(claims['email'])
        user = storage.upsert_user({
            'id': existing.id if existing else None,
            'email': claims['email'],
            'first_name': claims.get('given_name', ''),
            'last_name': claims.get('family_name', ''),
            'profile_image_url': claims.get('picture', ''),
            'google_api_config': context.google_config.to_dict(),
        })

        context.switch_user(user.id)
        context.google_tokens = GoogleTokens.from_token_response(tokens)
        context.oauth_state = None
        logger.info(f"Google sign-in completed for {user.email}")
        return user


BACKENDS = {
    DevLoginBackend.name: DevLoginBackend,
    GoogleOAuthBackend.name: GoogleOAuthBackend,
}


def get_login_backend():
    try:
        return BACKENDS[settings.AUTH_BACKEND]()
    except KeyError:
        raise ImproperlyConfigured(f"Unknown AUTH_BACKEND: {settings.AUTH_BACKEND}")
