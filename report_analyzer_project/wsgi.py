import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'report_analyzer_project.settings')

application = get_wsgi_application()

from apps.infrastructure.services.identity_verifier import initialize_identity  # noqa: E402

initialize_identity()
