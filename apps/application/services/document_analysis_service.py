import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union
from django.conf import settings

from apps.domain.entities import (
    AnalysisEvaluation,
    AnalysisResult,
    DocumentMetadata,
    ExtractedData,
    normalize_report_date,
)
from apps.domain.exceptions import AnalysisError, ConfigError
from apps.infrastructure.clients.auth_session import AuthSession
from apps.infrastructure.clients.persistence_gateway import PersistenceGateway
from apps.infrastructure.services.gemini_analyzer import GeminiAnalyzerService
from apps.infrastructure.services.spreadsheet_extractor import SpreadsheetExtractorService, is_spreadsheet

logger = logging.getLogger('apps')

CONTEXT_WAREHOUSES = ('ANTWERP', 'HAMBURG')
MAX_CONTEXT_HEADLINE = 200


@dataclass(frozen=True)
class UploadedReport:
    filename: str
    content: bytes

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> 'UploadedReport':
        path = Path(path)
        return cls(filename=path.name, content=path.read_bytes())

    @property
    def stem(self) -> str:
        name = Path(self.filename).name
        return name.rsplit('.', 1)[0] if '.' in name else name


class DocumentAnalysisService:
    def __init__(
        self,
        extractor: Optional[SpreadsheetExtractorService] = None,
        gateway: Optional[PersistenceGateway] = None,
        analyzer_factory: Optional[Callable[[], GeminiAnalyzerService]] = None,
    ):
        self.extractor = extractor or SpreadsheetExtractorService()
        self.gateway = gateway
        self.analyzer_factory = analyzer_factory or GeminiAnalyzerService

    def analyze(self, upload: UploadedReport, session: Optional[AuthSession] = None) -> AnalysisResult:
        if not getattr(settings, 'GEMINI_API_KEY', None):
            raise ConfigError('API Key not found. Please set your Gemini API Key.')

        start_time = time.time()

        if is_spreadsheet(upload.filename):
            csv_text = self.extractor.extract_text(upload.content)
            content_part = f'\n\n=== CSV DATA ===\n{csv_text}'
        else:
            content_part = {'mime_type': 'application/pdf', 'data': upload.content}

        previous_context = self._previous_context(session)
        prompt = self._create_analysis_prompt(previous_context)

        analyzer = self.analyzer_factory()
        logger.info(f'Analyzing {upload.filename} with Gemini')
        data = analyzer.analyze_parts([prompt, content_part])

        result = self._build_result(data, upload)
        logger.info(f'Analyzed {upload.filename} as {result.id} in {time.time() - start_time:.2f}s')
        return result

    def _build_result(self, data: Dict, upload: UploadedReport) -> AnalysisResult:
        for section in ('metadata', 'extracted_data', 'evaluation'):
            if not isinstance(data.get(section), dict):
                raise AnalysisError(f'AI response is missing "{section}"')

        extracted = ExtractedData.from_dict(data['extracted_data'])
        doc_id = (
            data['metadata'].get('id')
            or normalize_report_date(extracted.report_date)
            or upload.stem
        )
        metadata = DocumentMetadata.from_dict({**data['metadata'], 'id': doc_id})
        if not metadata.title:
            metadata = DocumentMetadata.from_dict({**metadata.to_dict(), 'title': upload.filename})

        return AnalysisResult(
            id=doc_id,
            metadata=metadata,
            extracted_data=extracted,
            evaluation=AnalysisEvaluation.from_dict(data['evaluation']),
            timestamp=int(time.time() * 1000),
        )

    def _previous_context(self, session: Optional[AuthSession]) -> str:
        if self.gateway is None:
            return ''
        try:
            previous = self.gateway.latest(session)
            if previous is None:
                return ''
            return self._render_context(previous)
        except Exception as e:
            logger.warning(f'Could not load previous report for context: {str(e)}')
            return ''

    def _render_context(self, previous: AnalysisResult) -> str:
        extra = previous.extracted_data.extra
        executive_summary = previous.extracted_data.executive_summary
        warehouses = {
            str(item.get('name', '')).upper(): item.get('bags')
            for item in previous.extracted_data.warehouses
        }
        headline = str(executive_summary.get('headline') or '')[:MAX_CONTEXT_HEADLINE]

        lines: List[str] = [
            '# Previous Report (for trend comparison)',
            f'- Report date: {extra.get("report_date", "unknown")}',
            f'- Total bags: {extra.get("total_bags", "unknown")}',
            f'- Bullish/bearish score: {executive_summary.get("bullish_bearish_score", "unknown")}',
        ]
        for name in CONTEXT_WAREHOUSES:
            lines.append(f'- {name}: {warehouses.get(name, "unknown")} bags')
        lines.append(f'- Headline: {headline or "none"}')
        lines.append('Use these figures to describe change_from_previous and the trend.')
        return '\n'.join(lines)

    def _create_analysis_prompt(self, previous_context: str) -> str:
        """Create analysis prompt in English (responses in the configured language)"""
        language = getattr(settings, 'ANALYSIS_OUTPUT_LANGUAGE', 'Japanese')
        prompt = f"""# Role
You are a senior commodity strategist and data scientist at a hedge fund or trading house.
You analyze the ICE Futures U.S. "Coffee 'C' Certified Warehouse Stock Report" (provided as CSV or PDF)
and report supply/demand shifts, potential price impact and logistics risks to traders and physical buyers.

# Objective
Go beyond restating numbers: state clearly whether the data is bullish or bearish for prices and where the anomalies are.
Quantify the market impact as bullish_bearish_score from -100 (strongly bearish) to +100 (strongly bullish).

# Analysis Framework
1. Stock trend: rate and direction of change.
2. Quality mix: effective good-quality stock when age or penalty data exists.
3. Warehouse concentration: concentration in ports such as Antwerp and depletion risk in NY/US ports.
4. Origin: share of Brazil, Central America and Colombia.
5. Grading: pending grading and future stock pressure.
6. Variety: arabica specific factors.
7. Cancellations: demand implied by withdrawal pace.
8. Flow: balance of arrivals and withdrawals.
9. Seasonality: deviation from harvest cycles.
10. Price divergence: point out divergences.
11. Reliability: missing or anomalous data.
When a field is not present in the data, infer it from other figures or treat it as missing.

# Output Requirements
Return JSON that follows the response schema.
Write every text field (summary, headline, details, insights, tags) in {language}.
"""
        if previous_context:
            prompt = f'{prompt}\n{previous_context}\n'
        return prompt
