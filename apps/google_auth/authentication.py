from django.contrib.auth import get_user_model
from rest_framework.authentication import BaseAuthentication

from .session import SessionContext

User = get_user_model()


class SessionContextAuthentication(BaseAuthentication):
    """
    Resolves the session's user. ``request.auth`` becomes the SessionContext.

    CSRF is not enforced: the SPA talks to the API with a same-site cookie.
    """

    def authenticate(self, request):
        context = SessionContext.load(request._request.session)
        if not context.user_id:
            return None

        user = User.objects.filter(pk=context.user_id, is_active=True).first()
        if user is None:
            return None

        context.user = user
        return (user, context)

    def authenticate_header(self, request):
        # Makes DRF answer 401 instead of 403 for unauthenticated requests
        return 'Session'
