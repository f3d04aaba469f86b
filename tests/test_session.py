import time

from apps.google_auth.session import (
    GMAIL_SEND_SCOPE,
    GoogleApiConfig,
    GoogleTokens,
    SessionContext,
    SessionState,
)


class FakeSession(dict):
    modified = False


def test_google_config_uses_camel_case_keys():
    config = GoogleApiConfig.from_dict({'apiKey': 'k', 'clientId': 'c', 'clientSecret': 's'})

    assert config.client_id == 'c'
    assert config.to_dict() == {'apiKey': 'k', 'clientId': 'c', 'clientSecret': 's'}
    assert GoogleApiConfig.from_dict(None) is None


def test_token_response_keeps_previous_refresh_token():
    tokens = GoogleTokens.from_token_response(
        {'access_token': 'new', 'expires_in': 60, 'scope': GMAIL_SEND_SCOPE}, refresh_token='old-refresh'
    )

    assert tokens.refresh_token == 'old-refresh'
    assert tokens.has_scope(GMAIL_SEND_SCOPE)
    assert 0 < tokens.expires_in() <= 60


def test_expired_tokens_count_as_absent(google_config):
    context = SessionContext(
        user_id='u1',
        google_config=google_config,
        google_tokens=GoogleTokens(access_token='a', expires_at=time.time() - 1),
    )

    assert not context.has_valid_tokens
    assert context.state == SessionState.AUTHENTICATED


def test_state_progression(google_config):
    context = SessionContext()
    assert context.state == SessionState.ANONYMOUS

    context.google_config = google_config
    assert context.state == SessionState.CONFIGURED

    context.user_id = 'u1'
    assert context.state == SessionState.AUTHENTICATED

    context.google_tokens = GoogleTokens(access_token='a', expires_at=time.time() + 600)
    assert context.state == SessionState.GOOGLE_LINKED


def test_save_and_load_round_trip(google_config):
    session = FakeSession()
    tokens = GoogleTokens(access_token='a', refresh_token='r', scope=GMAIL_SEND_SCOPE, expires_at=time.time() + 600)
    SessionContext(user_id='u1', google_config=google_config, google_tokens=tokens, oauth_state='xyz').save(session)

    loaded = SessionContext.load(session)

    assert session.modified
    assert loaded.user_id == 'u1'
    assert loaded.google_config == google_config
    assert loaded.google_tokens == tokens
    assert loaded.oauth_state == 'xyz'


def test_switching_identity_drops_tokens(google_config):
    tokens = GoogleTokens(access_token='a', expires_at=time.time() + 600)
    context = SessionContext(user_id='u1', google_config=google_config, google_tokens=tokens)

    context.switch_user('u1')
    assert context.google_tokens is tokens

    context.switch_user('u2')
    assert context.user_id == 'u2'
    assert context.google_tokens is None
    assert context.google_config == google_config
