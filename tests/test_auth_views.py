from unittest.mock import patch

import pytest
from django.urls import reverse

from apps.google_auth.session import GoogleApiConfig, SessionContext
from apps.projects.storage import storage

pytestmark = pytest.mark.django_db

CONFIG_BODY = {
    'apiKey': 'key',
    'clientId': 'client.apps.googleusercontent.com',
    'clientSecret': 'secret',
}


def session_context(client):
    return SessionContext.load(client.session)


def test_status_for_anonymous_session(api_client):
    response = api_client.get(reverse('google_auth:status'))

    assert response.status_code == 200
    assert response.data['isAuthenticated'] is False
    assert response.data['hasGoogleConfig'] is False
    assert response.data['state'] == 'anonymous'
    assert response.data['user'] is None


def test_dev_backend_signs_in_fixed_user(api_client, settings):
    settings.AUTH_BACKEND = 'dev'

    response = api_client.post(reverse('google_auth:google-config'), CONFIG_BODY)

    assert response.status_code == 200
    assert response.data['success'] is True
    assert response.data['user']['email'] == settings.DEV_USER['email']

    user = storage.get_user(settings.DEV_USER['id'])
    assert user.google_api_config == CONFIG_BODY

    status = api_client.get(reverse('google_auth:status')).data
    assert status['isAuthenticated'] is True
    assert status['hasGoogleConfig'] is True
    assert status['clientId'] == CONFIG_BODY['clientId']
    assert status['state'] == 'authenticated'


def test_google_backend_returns_consent_url(api_client, settings):
    settings.AUTH_BACKEND = 'google'

    response = api_client.post(reverse('google_auth:google-config'), CONFIG_BODY)

    assert response.status_code == 200
    assert response.data['authUrl'].startswith('https://accounts.google.com/o/oauth2/v2/auth?')
    context = session_context(api_client)
    assert context.user_id is None
    assert context.oauth_state in response.data['authUrl']


def test_google_config_requires_all_credentials(api_client):
    response = api_client.post(reverse('google_auth:google-config'), {'apiKey': 'key'})

    assert response.status_code == 400
    assert 'clientId' in response.data['errors']


def test_oauth_callback_signs_user_in(api_client, settings):
    settings.AUTH_BACKEND = 'google'
    api_client.post(reverse('google_auth:google-config'), CONFIG_BODY)
    state = session_context(api_client).oauth_state

    tokens = {
        'access_token': 'access',
        'refresh_token': 'refresh',
        'expires_in': 3600,
        'scope': 'openid https://www.googleapis.com/auth/gmail.send',
        'id_token': 'id-token',
    }
    claims = {'email': 'ada@example.com', 'given_name': 'Ada', 'family_name': 'Lovelace'}
    with patch('apps.google_auth.backends.GoogleOAuthService.exchange_code', return_value=tokens), \
            patch('apps.google_auth.backends.GoogleOAuthService.verify_id_token', return_value=claims):
        response = api_client.get(reverse('google_auth:callback'), {'code': 'abc', 'state': state})

    assert response.status_code == 302
    assert response['Location'] == f"{settings.FRONTEND_URL}/dashboard"

    user = storage.get_user_by_email('ada@example.com')
    context = session_context(api_client)
    assert context.user_id == user.id
    assert context.has_gmail_scope
    assert context.oauth_state is None


def test_oauth_callback_rejects_wrong_state(api_client, settings):
    settings.AUTH_BACKEND = 'google'
    api_client.post(reverse('google_auth:google-config'), CONFIG_BODY)

    response = api_client.get(reverse('google_auth:callback'), {'code': 'abc', 'state': 'forged'})

    assert response.status_code == 302
    assert 'auth_error=login_failed' in response['Location']
    assert session_context(api_client).user_id is None


def test_status_restores_config_inherited_from_project(login, owner, project, make_user):
    member = make_user('member@example.com')
    storage.add_project_member(project.id, member.id)
    client = login(member, config=None)

    response = client.get(reverse('google_auth:status'))

    assert response.data['hasGoogleConfig'] is True
    assert response.data['clientId'] == project.google_api_config['clientId']


def test_protected_routes_answer_401(api_client):
    assert api_client.get(reverse('google_auth:user')).status_code == 401
    assert api_client.get(reverse('projects:project-list')).status_code == 401

    response = api_client.post(reverse('google_auth:exchange-oauth-code'), {'code': 'abc'})
    assert response.status_code == 401
    assert response.data == {'message': 'No Google configuration found'}


def test_check_tokens_hides_refresh_token(login, owner, make_tokens):
    client = login(owner, tokens=make_tokens())

    response = client.get(reverse('google_auth:check-google-tokens'))

    assert response.data['hasValidTokens'] is True
    assert response.data['tokens']['access_token'] == 'access-token'
    assert 'refresh_token' not in response.data['tokens']


def test_expired_tokens_are_not_refreshed_implicitly(login, owner, make_tokens):
    client = login(owner, tokens=make_tokens(expires_in=-10))

    assert client.get(reverse('google_auth:check-google-tokens')).data == {'hasValidTokens': False}


def test_refresh_google_token(login, owner, make_tokens):
    client = login(owner, tokens=make_tokens(expires_in=-10))
    refreshed = {'access_token': 'fresh', 'expires_in': 3600, 'scope': 'https://www.googleapis.com/auth/drive.file'}

    with patch('apps.google_auth.views.GoogleOAuthService.refresh_access_token', return_value=refreshed) as refresh:
        response = client.post(reverse('google_auth:refresh-google-token'))

    assert response.status_code == 200
    refresh.assert_called_once_with('refresh-token')
    context = session_context(client)
    assert context.google_tokens.access_token == 'fresh'
    assert context.google_tokens.refresh_token == 'refresh-token'
    assert context.has_valid_tokens


def test_refresh_without_refresh_token(login, owner, make_tokens):
    client = login(owner, tokens=make_tokens(refresh_token=''))

    response = client.post(reverse('google_auth:refresh-google-token'))

    assert response.status_code == 401
    assert response.data['message'].startswith('No refresh token available')


def test_save_google_config_persists_for_user(login, owner):
    client = login(owner, config=None)

    response = client.post(reverse('google_auth:save-google-config'), CONFIG_BODY)

    assert response.status_code == 200
    owner.refresh_from_db()
    assert GoogleApiConfig.from_dict(owner.google_api_config).client_id == CONFIG_BODY['clientId']


def test_inherit_project_config_requires_membership(login, project, outsider):
    client = login(outsider, config=None)

    response = client.post(reverse('google_auth:inherit-project-config'), {'projectId': project.id})

    assert response.status_code == 403


def test_logout_clears_session(login, owner):
    client = login(owner)

    assert client.post(reverse('google_auth:logout')).status_code == 200
    assert client.get(reverse('google_auth:user')).status_code == 401
