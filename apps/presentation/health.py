from django.db import connection
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema


@extend_schema(
    summary='Health Check',
    description='Liveness probe. Reports the storage backend in use.',
    tags=['Health'],
    responses={
        200: {
            'type': 'object',
            'properties': {
                'status': {
                    'type': 'string',
                    'example': 'ok',
                    'description': 'Overall API status'
                },
                'db': {
                    'type': 'string',
                    'example': 'PostgreSQL',
                    'description': 'Storage backend name'
                }
            }
        }
    },
)
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    return Response({
        "status": "ok",
        "db": connection.display_name
    }, status=status.HTTP_200_OK)
