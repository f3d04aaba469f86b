import logging

from django.conf import settings
from django.http import HttpResponseRedirect
from rest_framework import permissions, serializers, views
from rest_framework.response import Response

from apps.projects.exceptions import EntityNotFound, GoogleAuthRequired, ProjectFlowError
from apps.projects.storage import storage
from apps.teams.permissions import require_project_access
from apps.users.serializers import UserProfileSerializer
from .backends import get_login_backend
from .permissions import HasGoogleConfig
from .services import GoogleOAuthService
from .session import GoogleApiConfig, GoogleTokens, SessionContext

logger = logging.getLogger(__name__)


class GoogleConfigSerializer(serializers.Serializer):
    apiKey = serializers.CharField(max_length=255)
    clientId = serializers.CharField(max_length=255)
    clientSecret = serializers.CharField(max_length=255)
    geminiApiKey = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def to_config(self):
        return GoogleApiConfig.from_dict(self.validated_data)


def save_context(request, context, previous_user_id):
    # New identity on this browser: rotate the session key
    if context.user_id and context.user_id != previous_user_id:
        request.session.cycle_key()
    context.save(request.session)


def restore_google_config(user, context):
    """
    Give a signed-in session without configuration the user's own bundle, or
    else the bundle of a project someone else owns that the user belongs to.
    """
    if user.google_api_config:
        context.google_config = GoogleApiConfig.from_dict(user.google_api_config)
        return True

    for project in storage.get_user_projects(user.id):
        if project.google_api_config and project.owner_id != user.id:
            context.google_config = GoogleApiConfig.from_dict(project.google_api_config)
            logger.info(f"Inherited Google configuration from project {project.id} for {user.email}")
            return True
    return False


class AuthStatusView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        context = SessionContext.for_request(request)
        user = request.user if request.user.is_authenticated else None

        if user is not None and not context.has_google_config:
            if restore_google_config(user, context):
                context.save(request.session)

        return Response({
            'isAuthenticated': user is not None,
            'hasGoogleConfig': context.has_google_config,
            'hasGmailScope': context.has_valid_tokens and context.has_gmail_scope,
            'hasValidGoogleTokens': context.has_valid_tokens,
            'clientId': context.google_config.client_id if context.google_config else None,
            'state': context.state,
            'authBackend': settings.AUTH_BACKEND,
            'user': UserProfileSerializer(user).data if user else None,
        })


class GoogleConfigView(views.APIView):
    """Submit a Google API configuration and start signing in."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = GoogleConfigSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        context = SessionContext.for_request(request)
        previous_user_id = context.user_id
        payload = get_login_backend().submit_config(request, context, serializer.to_config())
        save_context(request, context, previous_user_id)
        return Response(payload)


class OAuthCallbackView(views.APIView):
    """Google redirects the browser here after consent."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        if request.query_params.get('error'):
            logger.warning(f"Google consent failed: {request.query_params.get('error')}")
            return HttpResponseRedirect(f"{settings.FRONTEND_URL}/?auth_error=consent_denied")

        context = SessionContext.for_request(request)
        previous_user_id = context.user_id
        try:
            get_login_backend().complete_login(
                request, context, request.query_params.get('code'), request.query_params.get('state')
            )
        except ProjectFlowError as e:
            logger.error(f"OAuth callback failed: {e.message}")
            return HttpResponseRedirect(f"{settings.FRONTEND_URL}/?auth_error=login_failed")

        save_context(request, context, previous_user_id)
        return HttpResponseRedirect(f"{settings.FRONTEND_URL}/dashboard")


class ExchangeOAuthCodeView(views.APIView):
    """Popup flow: trade an authorization code for tokens kept in the session."""
    permission_classes = [HasGoogleConfig]

    def post(self, request):
        code = request.data.get('code')
        if not code:
            raise serializers.ValidationError({'code': ['Authorization code is required.']})

        context = SessionContext.for_request(request)
        tokens = GoogleOAuthService(context.google_config).exchange_code(code)
        context.google_tokens = GoogleTokens.from_token_response(tokens)
        context.save(request.session)

        return Response({
            'success': True,
            'hasGmailScope': context.has_gmail_scope,
            'scopes': context.google_tokens.scopes,
            'expiresIn': context.google_tokens.expires_in(),
        })


class CheckGoogleTokensView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        context = SessionContext.for_request(request)
        if not context.has_valid_tokens:
            return Response({'hasValidTokens': False})

        tokens = context.google_tokens
        return Response({
            'hasValidTokens': True,
            'tokens': {
                'access_token': tokens.access_token,
                'scope': tokens.scope,
                'token_type': tokens.token_type,
                'expires_in': tokens.expires_in(),
            },
        })


class RefreshGoogleTokenView(views.APIView):
    """Explicit renewal of an expired access token with the stored refresh token."""
    permission_classes = [permissions.IsAuthenticated, HasGoogleConfig]

    def post(self, request):
        context = request.auth
        if context.google_tokens is None or not context.google_tokens.refresh_token:
            raise GoogleAuthRequired('No refresh token available; authorize with Google again')

        service = GoogleOAuthService(context.google_config)
        refreshed = service.refresh_access_token(context.google_tokens.refresh_token)
        context.google_tokens = GoogleTokens.from_token_response(
            refreshed, refresh_token=context.google_tokens.refresh_token
        )
        context.save(request.session)

        return Response({
            'success': True,
            'hasGmailScope': context.has_gmail_scope,
            'expiresIn': context.google_tokens.expires_in(),
        })


class CurrentUserView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserProfileSerializer(request.user).data)


class LogoutView(views.APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        request.session.flush()
        return Response({'success': True})


class SaveGoogleConfigView(views.APIView):
    """Store the caller's own Google configuration without signing in."""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = GoogleConfigSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        config = serializer.to_config()

        context = SessionContext.for_request(request)
        context.google_config = config
        context.save(request.session)

        if request.user.is_authenticated:
            storage.upsert_user({
                'id': request.user.id,
                'email': request.user.email,
                'google_api_config': config.to_dict(),
            })
        return Response({'message': 'Google configuration saved successfully'})


class InheritProjectConfigView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        project_id = request.data.get('projectId')
        if not project_id:
            raise serializers.ValidationError({'projectId': ['This field is required.']})

        membership = require_project_access(project_id, request.user.id)
        project = membership.project
        if not project.google_api_config:
            raise EntityNotFound('Project Google configuration not found')

        context = request.auth
        context.google_config = GoogleApiConfig.from_dict(project.google_api_config)
        context.save(request.session)
        return Response({
            'success': True,
            'message': 'Inherited project Google configuration',
            'hasGoogleConfig': True,
        })
