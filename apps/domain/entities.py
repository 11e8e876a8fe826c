import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger('apps')

EVALUATION_STATUSES = ('positive', 'neutral', 'negative', 'warning')

SENTIMENT_SCALE = ('Strong Bullish', 'Bullish', 'Neutral', 'Bearish', 'Strong Bearish')


def normalize_report_date(report_date: Optional[str]) -> Optional[str]:
    """Turn a report date such as 2025/01/15 into a storage key (2025-01-15)."""
    if not report_date:
        return None
    return str(report_date).replace('/', '-')


def _dedupe(values) -> List[str]:
    seen = []
    for value in values or []:
        if value not in seen:
            seen.append(value)
    return seen


@dataclass(frozen=True)
class DocumentMetadata:
    id: str
    title: str
    category: Optional[str] = None
    date: Optional[str] = None
    author: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'DocumentMetadata':
        return cls(
            id=str(data.get('id') or ''),
            title=data.get('title') or '',
            category=data.get('category'),
            date=data.get('date'),
            author=data.get('author'),
        )

    def to_dict(self) -> Dict:
        data = {'id': self.id, 'title': self.title}
        for key in ('category', 'date', 'author'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class ExtractedData:
    """
    Fields extracted by the model.

    Only summary and key_points are guaranteed; report specific fields
    (report_date, warehouses, executive_summary, ...) live in extra and are
    serialized next to them.
    """
    summary: str
    key_points: List[str]
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> 'ExtractedData':
        data = dict(data or {})
        summary = data.pop('summary', '') or ''
        key_points = list(data.pop('key_points', None) or [])
        return cls(summary=summary, key_points=key_points, extra=data)

    def to_dict(self) -> Dict:
        return {**self.extra, 'summary': self.summary, 'key_points': list(self.key_points)}

    @property
    def report_date(self) -> Optional[str]:
        return self.extra.get('report_date') or None

    @property
    def executive_summary(self) -> Dict:
        value = self.extra.get('executive_summary')
        return value if isinstance(value, dict) else {}

    @property
    def warehouses(self) -> List[Dict]:
        value = self.extra.get('warehouses')
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]


@dataclass(frozen=True)
class AnalysisEvaluation:
    score: float
    status: str
    details: str
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'AnalysisEvaluation':
        data = data or {}
        status = data.get('status') or 'neutral'
        if status not in EVALUATION_STATUSES:
            logger.warning(f'Unknown evaluation status "{status}", using "neutral"')
            status = 'neutral'

        score = data.get('score', 0)
        try:
            score = float(score)
        except (TypeError, ValueError):
            logger.warning(f'Non numeric evaluation score {score!r}, using 0')
            score = 0.0
        if not 0 <= score <= 100:
            logger.warning(f'Evaluation score {score} outside 0-100, keeping it as reported')

        return cls(
            score=score,
            status=status,
            details=data.get('details') or '',
            tags=_dedupe(data.get('tags')),
        )

    def to_dict(self) -> Dict:
        return {
            'score': self.score,
            'status': self.status,
            'details': self.details,
            'tags': list(self.tags),
        }


@dataclass(frozen=True)
class AnalysisResult:
    id: str
    metadata: DocumentMetadata
    extracted_data: ExtractedData
    evaluation: AnalysisEvaluation
    timestamp: int

    @classmethod
    def from_dict(cls, data: Dict) -> 'AnalysisResult':
        metadata = DocumentMetadata.from_dict(data.get('metadata') or {})
        return cls(
            id=str(data.get('id') or metadata.id),
            metadata=metadata,
            extracted_data=ExtractedData.from_dict(data.get('extracted_data')),
            evaluation=AnalysisEvaluation.from_dict(data.get('evaluation')),
            timestamp=int(data.get('timestamp') or 0),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'metadata': self.metadata.to_dict(),
            'extracted_data': self.extracted_data.to_dict(),
            'evaluation': self.evaluation.to_dict(),
            'timestamp': self.timestamp,
        }
