import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from apps.domain.exceptions import AuthenticationError

logger = logging.getLogger('apps')

IDENTITY_TOOLKIT_URL = 'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'


@dataclass(frozen=True)
class AuthSession:
    """Signed-in identity passed explicitly to every backend call."""
    id_token: Optional[str] = None
    uid: Optional[str] = None
    email: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id_token)

    def auth_headers(self) -> Dict[str, str]:
        if not self.id_token:
            return {}
        return {'Authorization': f'Bearer {self.id_token}'}

    @classmethod
    def anonymous(cls) -> 'AuthSession':
        return cls()

    @classmethod
    def sign_in_with_password(cls, api_key: str, email: str, password: str) -> 'AuthSession':
        if not api_key:
            raise AuthenticationError('FIREBASE_API_KEY is not configured')

        payload = {'email': email, 'password': password, 'returnSecureToken': True}
        try:
            response = requests.post(IDENTITY_TOOLKIT_URL, params={'key': api_key}, json=payload, timeout=30)
        except requests.exceptions.RequestException as e:
            logger.error(f'Error contacting identity provider: {str(e)}')
            raise AuthenticationError('Identity provider is not reachable')

        if not response.ok:
            message = 'Sign-in failed'
            try:
                message = response.json().get('error', {}).get('message') or message
            except ValueError:
                pass
            logger.warning(f'Sign-in rejected for {email}: {response.status_code} {message}')
            raise AuthenticationError(message)

        data = response.json()
        logger.info(f'Signed in as {data.get("email", email)}')
        return cls(
            id_token=data.get('idToken'),
            uid=data.get('localId'),
            email=data.get('email', email),
            refresh_token=data.get('refreshToken'),
        )
