from django.conf import settings
from django.core.management.base import CommandError

from apps.domain.exceptions import AuthenticationError
from apps.infrastructure.clients.auth_session import AuthSession
from apps.infrastructure.clients.persistence_gateway import PersistenceGateway


def add_backend_arguments(parser):
    parser.add_argument('--api-url', default=None, help='Backend base URL (default: REPORT_ANALYZER_API_URL)')
    parser.add_argument('--id-token', default=None, help='Firebase ID token used as bearer credential')
    parser.add_argument('--email', default=None, help='Sign in with email and password instead of --id-token')
    parser.add_argument('--password', default=None)
    parser.add_argument('--json', action='store_true', help='Print raw JSON')


def build_gateway(options) -> PersistenceGateway:
    return PersistenceGateway(options.get('api_url') or settings.REPORT_ANALYZER_API_URL)


def build_session(options) -> AuthSession:
    if options.get('id_token'):
        return AuthSession(id_token=options['id_token'])
    if options.get('email'):
        if not options.get('password'):
            raise CommandError('--password is required with --email')
        try:
            return AuthSession.sign_in_with_password(settings.FIREBASE_API_KEY, options['email'], options['password'])
        except AuthenticationError as e:
            raise CommandError(f'Sign-in failed: {e}')
    return AuthSession.anonymous()
