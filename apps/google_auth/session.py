"""
Typed view of the per-session authentication state.

A browser session moves through four states:

    anonymous -> configured -> authenticated -> google_linked

``configured`` means the session holds a Google API credential bundle,
``authenticated`` adds a user, and ``google_linked`` adds OAuth tokens that
have not expired. Expired tokens are treated as absent; they are only renewed
when the client asks for it explicitly.
"""
import time
from dataclasses import dataclass, field
from typing import Optional

GMAIL_SEND_SCOPE = 'https://www.googleapis.com/auth/gmail.send'
DRIVE_FILE_SCOPE = 'https://www.googleapis.com/auth/drive.file'


@dataclass
class GoogleApiConfig:
    """Credential bundle a user submits (or inherits from a project owner)."""
    api_key: str = ''
    client_id: str = ''
    client_secret: str = ''
    gemini_api_key: str = ''

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['GoogleApiConfig']:
        if not data:
            return None
        return cls(
            api_key=data.get('apiKey', ''),
            client_id=data.get('clientId', ''),
            client_secret=data.get('clientSecret', ''),
            gemini_api_key=data.get('geminiApiKey', ''),
        )

    def to_dict(self) -> dict:
        data = {
            'apiKey': self.api_key,
            'clientId': self.client_id,
            'clientSecret': self.client_secret,
        }
        if self.gemini_api_key:
            data['geminiApiKey'] = self.gemini_api_key
        return data


@dataclass
class GoogleTokens:
    access_token: str
    refresh_token: str = ''
    scope: str = ''
    expires_at: float = 0  # epoch seconds
    token_type: str = 'Bearer'

    @classmethod
    def from_token_response(cls, data: dict, refresh_token: str = '') -> 'GoogleTokens':
        """Build from a Google token endpoint response (``expires_in`` is relative)."""
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token') or refresh_token,
            scope=data.get('scope', ''),
            expires_at=time.time() + int(data.get('expires_in', 3600)),
            token_type=data.get('token_type') or 'Bearer',
        )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['GoogleTokens']:
        if not data or not data.get('access_token'):
            return None
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token', ''),
            scope=data.get('scope', ''),
            expires_at=float(data.get('expires_at', 0)),
            token_type=data.get('token_type', 'Bearer'),
        )

    def to_dict(self) -> dict:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'scope': self.scope,
            'expires_at': self.expires_at,
            'token_type': self.token_type,
        }

    @property
    def scopes(self) -> list:
        return self.scope.split()

    def has_scope(self, scope: str) -> bool:
        return scope in self.scopes

    def is_expired(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return bool(self.expires_at) and now >= self.expires_at

    def expires_in(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        return max(0, int(self.expires_at - now))


class SessionState:
    ANONYMOUS = 'anonymous'
    CONFIGURED = 'configured'
    AUTHENTICATED = 'authenticated'
    GOOGLE_LINKED = 'google_linked'


@dataclass
class SessionContext:
    """
    Everything a handler may know about the caller, loaded from the Django
    session. Authentication attaches it to ``request.auth``; anonymous
    handlers obtain it through :meth:`for_request`.
    """
    SESSION_KEY = 'projectflow'

    user_id: Optional[str] = None
    google_config: Optional[GoogleApiConfig] = None
    google_tokens: Optional[GoogleTokens] = None
    oauth_state: Optional[str] = None

    # Resolved by the authentication class, never persisted
    user: object = field(default=None, repr=False, compare=False)

    @classmethod
    def load(cls, session) -> 'SessionContext':
        data = session.get(cls.SESSION_KEY) or {}
        return cls(
            user_id=data.get('user_id'),
            google_config=GoogleApiConfig.from_dict(data.get('google_config')),
            google_tokens=GoogleTokens.from_dict(data.get('google_tokens')),
            oauth_state=data.get('oauth_state'),
        )

    @classmethod
    def for_request(cls, request) -> 'SessionContext':
        if isinstance(request.auth, cls):
            return request.auth
        return cls.load(request.session)

    def save(self, session):
        session[self.SESSION_KEY] = {
            'user_id': self.user_id,
            'google_config': self.google_config.to_dict() if self.google_config else None,
            'google_tokens': self.google_tokens.to_dict() if self.google_tokens else None,
            'oauth_state': self.oauth_state,
        }
        session.modified = True

    @property
    def has_google_config(self) -> bool:
        return self.google_config is not None

    @property
    def has_valid_tokens(self) -> bool:
        return self.google_tokens is not None and not self.google_tokens.is_expired()

    @property
    def has_gmail_scope(self) -> bool:
        return self.google_tokens is not None and self.google_tokens.has_scope(GMAIL_SEND_SCOPE)

    @property
    def state(self) -> str:
        if self.user_id and self.has_valid_tokens:
            return SessionState.GOOGLE_LINKED
        if self.user_id:
            return SessionState.AUTHENTICATED
        if self.google_config:
            return SessionState.CONFIGURED
        return SessionState.ANONYMOUS

    def switch_user(self, user_id: str):
        """Bind the session to another identity, dropping tokens issued to the previous one."""
        if self.user_id and self.user_id != user_id:
            self.google_tokens = None
        self.user_id = user_id
