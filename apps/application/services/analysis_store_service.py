import logging
import time
from typing import Dict, List, Optional
from django.db import transaction

from apps.domain.entities import normalize_report_date
from apps.domain.models import AnalysisRecord, DocumentRecord

logger = logging.getLogger('apps')


class AnalysisStoreService:
    """Backend side of the save/list/history contract."""

    @staticmethod
    def canonical_doc_id(payload: Dict) -> str:
        extracted_data = payload.get('extracted_data') or {}
        return normalize_report_date(extracted_data.get('report_date')) or str(payload.get('id') or '')

    def save(self, payload: Dict, user_id: str) -> str:
        """
        Upsert one analysis result into both collections atomically.

        Reports sharing a report date collapse onto the same docId, so the
        latest upload for a reporting period replaces the earlier one. The list
        record is merged (fields missing from this save keep their stored
        values), the detail record is replaced.
        """
        metadata = payload.get('metadata') or {}
        extracted_data = payload.get('extracted_data') or {}
        evaluation = payload.get('evaluation') or {}
        executive_summary = extracted_data.get('executive_summary')
        if not isinstance(executive_summary, dict):
            executive_summary = {}

        doc_id = self.canonical_doc_id(payload)
        if not doc_id:
            raise ValueError('Analysis result has neither a report date nor an id')

        saved_data = {
            **payload,
            'id': doc_id,
            'metadata': {**metadata, 'id': doc_id},
        }
        timestamp = payload.get('timestamp') or int(time.time() * 1000)

        list_fields = {
            'title': metadata.get('title'),
            'category': metadata.get('category'),
            'author': metadata.get('author'),
            'date': extracted_data.get('report_date') or metadata.get('date'),
            'timestamp': timestamp,
            'last_evaluation': evaluation.get('status'),
            'bullish_bearish_score': self._score(executive_summary.get('bullish_bearish_score')),
            'summary_headline': str(executive_summary.get('headline') or ''),
            'sentiment': str(executive_summary.get('sentiment') or 'Neutral'),
        }
        # Merge semantics: unset fields never overwrite what is stored
        list_fields = {key: value for key, value in list_fields.items() if value is not None}

        with transaction.atomic():
            DocumentRecord.objects.update_or_create(doc_id=doc_id, defaults=list_fields)
            AnalysisRecord.objects.update_or_create(
                doc_id=doc_id,
                defaults={
                    'result_id': doc_id,
                    'timestamp': timestamp,
                    'user_id': user_id or '',
                    'payload': {**saved_data, 'userId': user_id},
                },
            )

        logger.info(f'Saved analysis {doc_id} for user {user_id}')
        return doc_id

    @staticmethod
    def _score(value) -> float:
        try:
            return float(value or 0)
        except (TypeError, ValueError):
            logger.warning(f'Non numeric bullish_bearish_score {value!r}, storing 0')
            return 0.0

    def list_documents(self) -> List[DocumentRecord]:
        return list(DocumentRecord.objects.order_by('-timestamp'))

    def history(self, result_id: str) -> List[Dict]:
        records = AnalysisRecord.objects.filter(result_id=result_id).order_by('-timestamp')
        return [record.payload for record in records]

    def latest(self) -> Optional[Dict]:
        record = AnalysisRecord.objects.order_by('-timestamp').first()
        return record.payload if record else None
