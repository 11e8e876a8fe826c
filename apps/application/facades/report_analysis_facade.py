import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from django.utils.translation import gettext as _

from apps.application.services.document_analysis_service import DocumentAnalysisService, UploadedReport
from apps.domain.entities import AnalysisResult
from apps.domain.exceptions import PersistenceError, UnsupportedFileError
from apps.infrastructure.clients.auth_session import AuthSession
from apps.infrastructure.clients.persistence_gateway import PersistenceGateway

logger = logging.getLogger('apps')

ACCEPTED_EXTENSIONS = ('.xls', '.xlsx', '.xlsm', '.pdf')


def validate_upload(upload: UploadedReport) -> None:
    if Path(upload.filename).suffix.lower() not in ACCEPTED_EXTENSIONS:
        raise UnsupportedFileError(_('Please upload an Excel file (.xls, .xlsx) or a PDF file.'))
    if not upload.content:
        raise UnsupportedFileError(_('The uploaded file is empty.'))


@dataclass(frozen=True)
class PipelineOutcome:
    result: AnalysisResult
    saved: bool = False
    warning: Optional[str] = None
    saved_id: Optional[str] = None


class ReportAnalysisFacade:
    """Upload -> analyze -> persist, where persistence problems never hide the result."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        analysis_service: Optional[DocumentAnalysisService] = None,
    ):
        self.gateway = gateway
        self.analysis_service = analysis_service or DocumentAnalysisService(gateway=gateway)

    def process(self, upload: UploadedReport, session: Optional[AuthSession] = None, save: bool = True) -> PipelineOutcome:
        validate_upload(upload)

        result = self.analysis_service.analyze(upload, session)

        if not save:
            return PipelineOutcome(result=result)

        if not self.gateway.health():
            logger.warning('Backend not connected, skipping save.')
            return PipelineOutcome(
                result=result,
                warning=_('The analysis finished, but the backend is not reachable, so it was not saved.'),
            )

        try:
            saved_id = self.gateway.save(result, session)
        except PersistenceError as e:
            logger.error(f'Failed to save analysis {result.id}: {str(e)}')
            return PipelineOutcome(
                result=result,
                warning=_('The analysis finished, but saving it to the database failed: %(error)s') % {'error': str(e)},
            )

        logger.info(f'Analysis {result.id} saved to backend as {saved_id}')
        return PipelineOutcome(result=result, saved=True, saved_id=saved_id)
