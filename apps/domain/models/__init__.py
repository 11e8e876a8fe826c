from .document_record import DocumentRecord
from .analysis_record import AnalysisRecord

__all__ = [
    'DocumentRecord',
    'AnalysisRecord',
]
