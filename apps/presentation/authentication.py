import logging
from dataclasses import dataclass, field
from typing import Dict, Optional
from rest_framework import authentication, exceptions

from apps.infrastructure.services.identity_verifier import IdentityVerificationError, get_identity_verifier

logger = logging.getLogger('apps')

SESSION_COOKIE = '__session'


@dataclass
class IdentityUser:
    uid: str
    email: Optional[str] = None
    claims: Dict = field(default_factory=dict)

    is_authenticated = True
    is_anonymous = False

    def __str__(self):
        return self.uid


class IdentityTokenAuthentication(authentication.BaseAuthentication):
    """
    Accepts a Firebase ID token from "Authorization: Bearer <token>" or the
    __session cookie.

    Malformed, expired and missing tokens all get the same 403 Unauthorized.
    """

    def authenticate(self, request):
        token = self._get_token(request)
        if not token:
            raise exceptions.AuthenticationFailed('Unauthorized')

        try:
            claims = get_identity_verifier().verify(token)
        except IdentityVerificationError as e:
            logger.info(f'Rejected ID token: {str(e)}')
            raise exceptions.AuthenticationFailed('Unauthorized')

        return IdentityUser(uid=claims['uid'], email=claims.get('email'), claims=claims), token

    def _get_token(self, request) -> Optional[str]:
        header = authentication.get_authorization_header(request).decode('latin-1')
        if header.startswith('Bearer '):
            return header.split('Bearer ', 1)[1].strip() or None
        return request.COOKIES.get(SESSION_COOKIE) or None
