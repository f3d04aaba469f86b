"""
Thin clients for the Google endpoints the backend talks to directly:
OAuth 2.0 (consent URL, code exchange, refresh, ID-token verification),
Gmail (invitation e-mails) and Drive (project documents).
"""
import base64
import json
import logging
from email.mime.text import MIMEText
from urllib.parse import urlencode

import requests
from django.conf import settings

from apps.projects.exceptions import AuthenticationRequired, UpstreamServiceError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
GOOGLE_TOKENINFO_URL = 'https://oauth2.googleapis.com/tokeninfo'
GOOGLE_ISSUERS = ('accounts.google.com', 'https://accounts.google.com')

GMAIL_SEND_URL = 'https://gmail.googleapis.com/gmail/v1/users/me/messages/send'

DRIVE_FILES_URL = 'https://www.googleapis.com/drive/v3/files'
DRIVE_UPLOAD_URL = 'https://www.googleapis.com/upload/drive/v3/files'

# Popup (GIS code client) flows use this literal redirect URI
POPUP_REDIRECT_URI = 'postmessage'


def _timeout():
    return settings.GOOGLE_REQUEST_TIMEOUT


def _short(token):
    return f"{token[:8]}..." if token else '<none>'


class GoogleOAuthService:
    def __init__(self, config):
        self.config = config

    def authorization_url(self, redirect_uri, state, scopes=None):
        params = {
            'response_type': 'code',
            'client_id': self.config.client_id,
            'redirect_uri': redirect_uri,
            'scope': ' '.join(scopes or settings.GOOGLE_OAUTH_SCOPES),
            'access_type': 'offline',
            'prompt': 'consent',
            'include_granted_scopes': 'true',
            'state': state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def exchange_code(self, code, redirect_uri=POPUP_REDIRECT_URI):
        """Exchange an authorization code for tokens. Returns the raw token response."""
        logger.info("Exchanging OAuth code for tokens...")
        return self._token_request({
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret,
            'code': code,
            'grant_type': 'authorization_code',
            'redirect_uri': redirect_uri,
        }, 'Failed to exchange code for tokens')

    def refresh_access_token(self, refresh_token):
        logger.info(f"Refreshing Google access token with refresh token {_short(refresh_token)}")
        return self._token_request({
            'client_id': self.config.client_id,
            'client_secret': self.config.client_secret,
            'refresh_token': refresh_token,
            'grant_type': 'refresh_token',
        }, 'Failed to refresh Google token')

    def verify_id_token(self, id_token):
        """
        Validate an ID token with Google's tokeninfo endpoint and return its claims.
        The audience must be this session's OAuth client.
        """
        try:
            response = requests.get(GOOGLE_TOKENINFO_URL, params={'id_token': id_token}, timeout=_timeout())
        except requests.RequestException as e:
            raise UpstreamServiceError('Failed to verify Google identity', detail=str(e))

        if response.status_code != 200:
            logger.warning(f"ID token rejected by Google: {response.text}")
            raise AuthenticationRequired('Invalid Google ID token')

        claims = response.json()
        if claims.get('aud') != self.config.client_id:
            raise AuthenticationRequired('Google ID token was issued for another client')
        if claims.get('iss') not in GOOGLE_ISSUERS:
            raise AuthenticationRequired('Google ID token has an unexpected issuer')
        if not claims.get('email') or str(claims.get('email_verified')).lower() != 'true':
            raise AuthenticationRequired('Google account e-mail is not verified')
        return claims

    def _token_request(self, data, error_message):
        try:
            response = requests.post(GOOGLE_TOKEN_URL, data=data, timeout=_timeout())
        except requests.RequestException as e:
            raise UpstreamServiceError(error_message, detail=str(e))

        if response.status_code != 200:
            raise UpstreamServiceError(error_message, detail=response.text)

        tokens = response.json()
        logger.info(f"Got Google tokens with scopes: {tokens.get('scope')}")
        return tokens


class GmailService:
    def __init__(self, access_token):
        self.access_token = access_token

    def send_invitation_email(self, to, project_name, inviter_name, role, invite_link):
        subject = f"You've been invited to join {project_name}"
        body = f"""Hello!

{inviter_name} has invited you to join the project "{project_name}" as {role}.

Click the link below to accept the invitation:
{invite_link}

Best regards,
The ProjectFlow Team
"""
        message = MIMEText(body)
        message['to'] = to
        message['subject'] = subject
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode()

        try:
            response = requests.post(
                GMAIL_SEND_URL,
                headers={'Authorization': f'Bearer {self.access_token}'},
                json={'raw': raw},
                timeout=_timeout(),
            )
        except requests.RequestException as e:
            raise UpstreamServiceError('Failed to send invitation e-mail', detail=str(e))

        if response.status_code != 200:
            raise UpstreamServiceError('Failed to send invitation e-mail', detail=response.text)

        logger.info(f"Invitation e-mail sent to {to} for project \"{project_name}\"")
        return response.json().get('id')


class DriveService:
    """Stores one JSON document per project in the user's Drive."""

    BOUNDARY = 'projectflow_document'

    def __init__(self, access_token):
        self.access_token = access_token

    def save_document(self, name, document, file_id=None):
        """Create or overwrite a Drive file holding ``document``. Returns the file id."""
        metadata = {'name': name}
        if not file_id:
            metadata['mimeType'] = 'application/json'

        body = (
            f"--{self.BOUNDARY}\r\n"
            "Content-Type: application/json; charset=UTF-8\r\n\r\n"
            f"{json.dumps(metadata)}\r\n"
            f"--{self.BOUNDARY}\r\n"
            "Content-Type: application/json\r\n\r\n"
            f"{json.dumps(document)}\r\n"
            f"--{self.BOUNDARY}--"
        )
        headers = {
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': f'multipart/related; boundary={self.BOUNDARY}',
        }

        try:
            if file_id:
                response = requests.patch(
                    f"{DRIVE_UPLOAD_URL}/{file_id}", params={'uploadType': 'multipart'},
                    headers=headers, data=body.encode('utf-8'), timeout=_timeout(),
                )
            else:
                response = requests.post(
                    DRIVE_UPLOAD_URL, params={'uploadType': 'multipart'},
                    headers=headers, data=body.encode('utf-8'), timeout=_timeout(),
                )
        except requests.RequestException as e:
            raise UpstreamServiceError('Failed to save project to Google Drive', detail=str(e))

        if response.status_code != 200:
            raise UpstreamServiceError('Failed to save project to Google Drive', detail=response.text)

        return response.json()['id']

    def load_document(self, file_id):
        try:
            response = requests.get(
                f"{DRIVE_FILES_URL}/{file_id}", params={'alt': 'media'},
                headers={'Authorization': f'Bearer {self.access_token}'},
                timeout=_timeout(),
            )
        except requests.RequestException as e:
            raise UpstreamServiceError('Failed to load project from Google Drive', detail=str(e))

        if response.status_code != 200:
            raise UpstreamServiceError('Failed to load project from Google Drive', detail=response.text)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamServiceError('Google Drive file is not a project document', detail=str(e))
