import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import google.auth
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger('apps')

FIREBASE_ISSUER = 'https://securetoken.google.com/{project_id}'

DEFAULT_SERVICE_ACCOUNT_PATHS = (
    'service-account.json',
    'functions/service-account.json',
)


class IdentityVerificationError(Exception):
    """Raised when an ID token cannot be verified"""
    pass


class IdentityVerifier:
    """Verifies Firebase ID tokens issued for one identity project."""

    def __init__(self, project_id: Optional[str], source: str = 'settings'):
        self.project_id = project_id
        self.source = source
        self._request = google_requests.Request()

    def verify(self, token: str) -> Dict:
        if not token:
            raise IdentityVerificationError('Missing ID token')
        if not self.project_id:
            raise IdentityVerificationError('Identity project is not configured')
        try:
            claims = id_token.verify_firebase_token(token, self._request, audience=self.project_id)
        except Exception as e:
            logger.debug(f'ID token verification failed: {str(e)}')
            raise IdentityVerificationError('Invalid ID token')
        if not claims:
            raise IdentityVerificationError('Invalid ID token')
        if claims.get('iss') != FIREBASE_ISSUER.format(project_id=self.project_id):
            logger.debug(f'ID token issuer mismatch: {claims.get("iss")}')
            raise IdentityVerificationError('Invalid ID token')
        if not isinstance(claims.get('sub'), str) or not claims['sub']:
            raise IdentityVerificationError('Invalid ID token')

        # Firebase tokens carry the uid in "sub"; "user_id" mirrors it
        claims.setdefault('uid', claims.get('user_id') or claims.get('sub'))
        return claims


_verifier: Optional[IdentityVerifier] = None


def _candidate_paths() -> Iterable[Path]:
    configured = getattr(settings, 'FIREBASE_SERVICE_ACCOUNT_PATH', None)
    if configured:
        yield Path(configured)
    base_dir = Path(getattr(settings, 'BASE_DIR', '.'))
    for relative in DEFAULT_SERVICE_ACCOUNT_PATHS:
        yield base_dir / relative


def _load_service_account() -> Optional[Dict]:
    for path in _candidate_paths():
        if not path.exists():
            continue
        try:
            with path.open(encoding='utf-8') as fh:
                info = json.load(fh)
            logger.info(f'Loaded service account from: {path}')
            return info
        except (OSError, ValueError) as e:
            logger.warning(f'Failed to parse service account at {path}: {str(e)}')
    return None


def initialize_identity() -> IdentityVerifier:
    """
    Build the process-wide ID token verifier.

    Called once at startup (see wsgi.py) before requests are served. Resolves
    the identity project from a service-account file, then from ambient
    default credentials, then from FIREBASE_PROJECT_ID. Never fails startup.
    """
    global _verifier

    project_id = None
    source = 'settings'

    service_account = _load_service_account()
    if service_account:
        project_id = service_account.get('project_id')
        source = 'service_account'
    else:
        logger.info('No service account found, using default credentials')
        try:
            _, project_id = google.auth.default()
            source = 'default_credentials'
        except DefaultCredentialsError as e:
            logger.warning(f'Default credentials unavailable: {str(e)}')

    if not project_id:
        project_id = getattr(settings, 'FIREBASE_PROJECT_ID', None)
        source = 'settings'

    if not project_id:
        logger.warning('Identity project id is not configured; every protected request will be rejected')

    _verifier = IdentityVerifier(project_id, source=source)
    logger.info(f'Identity verifier ready (project: {project_id}, source: {source})')
    return _verifier


def get_identity_verifier() -> IdentityVerifier:
    if _verifier is None:
        raise ImproperlyConfigured('initialize_identity() must run before serving requests')
    return _verifier
