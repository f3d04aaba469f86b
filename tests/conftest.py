"""Pytest configuration and fixtures."""
import time

import pytest
from rest_framework.test import APIClient

from apps.google_auth.session import (
    DRIVE_FILE_SCOPE,
    GMAIL_SEND_SCOPE,
    GoogleApiConfig,
    GoogleTokens,
    SessionContext,
)
from apps.projects.storage import storage


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def google_config():
    return GoogleApiConfig(
        api_key='test-api-key',
        client_id='test-client.apps.googleusercontent.com',
        client_secret='test-secret',
        gemini_api_key='test-gemini-key',
    )


@pytest.fixture
def make_user(db):
    def _make_user(email, first_name=None):
        return storage.upsert_user({
            'email': email,
            'first_name': first_name or email.split('@')[0].title(),
        })
    return _make_user


@pytest.fixture
def owner(make_user):
    return make_user('owner@example.com', 'Olivia')


@pytest.fixture
def outsider(make_user):
    return make_user('outsider@example.com')


@pytest.fixture
def project(owner, google_config):
    return storage.create_project(
        owner.id, 'Website Relaunch', 'Ship the new site', google_api_config=google_config.to_dict()
    )


@pytest.fixture
def make_tokens():
    def _make_tokens(scopes=(DRIVE_FILE_SCOPE, GMAIL_SEND_SCOPE), expires_in=3600, refresh_token='refresh-token'):
        return GoogleTokens(
            access_token='access-token',
            refresh_token=refresh_token,
            scope=' '.join(scopes),
            expires_at=time.time() + expires_in,
        )
    return _make_tokens


@pytest.fixture
def login(api_client, google_config):
    """Signs ``api_client`` in by writing a session context into its session."""
    def _login(user=None, config=google_config, tokens=None):
        session = api_client.session
        SessionContext(
            user_id=user.id if user else None,
            google_config=config,
            google_tokens=tokens,
        ).save(session)
        session.save()
        return api_client
    return _login
