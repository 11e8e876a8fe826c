import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes
from apps.application.services.analysis_store_service import AnalysisStoreService
from apps.presentation.serializers import AnalysisResultSerializer, DocumentRecordSerializer
from apps.presentation.utils import error_response

logger = logging.getLogger('apps')


@extend_schema(
    summary='List analyzed documents',
    description='Returns the list records of every analyzed report, newest first.',
    tags=['Documents'],
    responses={
        200: DocumentRecordSerializer(many=True),
        500: OpenApiTypes.OBJECT,
    },
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_documents(request):
    try:
        records = AnalysisStoreService().list_documents()
        return Response(DocumentRecordSerializer(records, many=True).data, status=status.HTTP_200_OK)
    except Exception as e:
        logger.exception('Fetch documents failed')
        return error_response(str(e))


@extend_schema(
    summary='Analysis history of a document',
    description='Returns every stored analysis whose top-level id matches, newest first.',
    tags=['Documents'],
    responses={
        200: OpenApiTypes.OBJECT,
        500: OpenApiTypes.OBJECT,
    },
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def document_history(request, doc_id):
    try:
        return Response(AnalysisStoreService().history(doc_id), status=status.HTTP_200_OK)
    except Exception as e:
        logger.exception(f'History fetch error for {doc_id}')
        return error_response(str(e))


@extend_schema(
    summary='Latest analysis',
    description='Returns the most recent stored analysis, or null when nothing has been saved yet. Used as trend context for new analyses.',
    tags=['Documents'],
    responses={
        200: OpenApiTypes.OBJECT,
        500: OpenApiTypes.OBJECT,
    },
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def latest_analysis(request):
    try:
        return Response(AnalysisStoreService().latest(), status=status.HTTP_200_OK)
    except Exception as e:
        logger.exception('Fetch latest analysis failed')
        return error_response(str(e))


@extend_schema(
    summary='Save analysis result',
    description=(
        'Stores an analysis result. The report date (slashes replaced with hyphens) is used as the '
        'document id, so uploading the same reporting period again overwrites it. The list record '
        'is merged, the detail record is replaced.'
    ),
    tags=['Documents'],
    request=AnalysisResultSerializer,
    responses={
        200: OpenApiTypes.OBJECT,
        400: OpenApiTypes.OBJECT,
        500: OpenApiTypes.OBJECT,
    },
    examples=[
        OpenApiExample(
            'Saved',
            value={'success': True, 'id': '2025-01-15'},
            response_only=True,
        )
    ],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def save_analysis(request):
    serializer = AnalysisResultSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid analysis result', status.HTTP_400_BAD_REQUEST, serializer.errors)

    score = serializer.validated_data['evaluation']['score']
    if not 0 <= score <= 100:
        logger.warning(f'Saving evaluation score {score} outside 0-100')

    try:
        doc_id = AnalysisStoreService().save(request.data, request.user.uid)
        return Response({'success': True, 'id': doc_id}, status=status.HTTP_200_OK)
    except Exception as e:
        logger.exception('Save analysis failed')
        return error_response(str(e))
