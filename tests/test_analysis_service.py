import pytest
from unittest.mock import Mock, patch

from apps.application.services.document_analysis_service import DocumentAnalysisService, UploadedReport
from apps.domain.entities import AnalysisResult
from apps.domain.exceptions import AnalysisError, ConfigError
from apps.infrastructure.clients.auth_session import AuthSession
from apps.infrastructure.services.gemini_analyzer import GeminiParseError
from conftest import make_result_payload


def model_response(**overrides):
    payload = make_result_payload()
    data = {
        'metadata': {'id': '', 'title': 'Coffee C Certified Stock Report'},
        'extracted_data': payload['extracted_data'],
        'evaluation': payload['evaluation'],
    }
    data.update(overrides)
    return data


@pytest.fixture
def analyzer():
    analyzer = Mock()
    analyzer.analyze_parts.return_value = model_response()
    return analyzer


@pytest.fixture
def service(analyzer):
    return DocumentAnalysisService(analyzer_factory=lambda: analyzer)


class TestDocumentAnalysisService:
    @patch('apps.application.services.document_analysis_service.settings')
    def test_missing_api_key_fails_before_network(self, mock_settings, workbook_bytes):
        mock_settings.GEMINI_API_KEY = None
        analyzer_factory = Mock()
        gateway = Mock()
        service = DocumentAnalysisService(gateway=gateway, analyzer_factory=analyzer_factory)

        with pytest.raises(ConfigError):
            service.analyze(UploadedReport('report.xlsx', workbook_bytes([('Jan', [['x']])])))

        analyzer_factory.assert_not_called()
        gateway.latest.assert_not_called()

    @patch('apps.application.services.document_analysis_service.settings')
    def test_spreadsheet_sent_as_csv_text(self, mock_settings, service, analyzer, workbook_bytes):
        mock_settings.GEMINI_API_KEY = 'test-key'
        mock_settings.ANALYSIS_OUTPUT_LANGUAGE = 'Japanese'
        upload = UploadedReport('stocks.xlsx', workbook_bytes([('Jan', [['ANTWERP', 1]]), ('Feb', [['HAMBURG', 2]])]))

        service.analyze(upload)

        prompt, content = analyzer.analyze_parts.call_args[0][0]
        assert 'Japanese' in prompt
        assert content.startswith('\n\n=== CSV DATA ===\n')
        assert '--- Sheet: Jan ---' in content
        assert '--- Sheet: Feb ---' in content

    @patch('apps.application.services.document_analysis_service.settings')
    def test_pdf_sent_as_inline_blob(self, mock_settings, service, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'

        service.analyze(UploadedReport('stocks.pdf', b'%PDF-1.4 data'))

        _, content = analyzer.analyze_parts.call_args[0][0]
        assert content == {'mime_type': 'application/pdf', 'data': b'%PDF-1.4 data'}

    @patch('apps.application.services.document_analysis_service.settings')
    def test_id_derived_from_report_date(self, mock_settings, service):
        mock_settings.GEMINI_API_KEY = 'test-key'

        result = service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

        assert isinstance(result, AnalysisResult)
        assert result.id == '2025-01-15'
        assert result.metadata.id == '2025-01-15'
        assert result.timestamp > 0
        assert result.extracted_data.summary == 'Certified stocks decreased.'
        assert result.extracted_data.extra['total_bags'] == 775000

    @patch('apps.application.services.document_analysis_service.settings')
    def test_model_id_takes_precedence(self, mock_settings, service, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        analyzer.analyze_parts.return_value = model_response(metadata={'id': 'ice-coffee-0115', 'title': 'Report'})

        result = service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

        assert result.id == 'ice-coffee-0115'

    @patch('apps.application.services.document_analysis_service.settings')
    def test_id_falls_back_to_filename(self, mock_settings, service, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        data = model_response()
        data['extracted_data'] = {'summary': 's', 'key_points': []}
        analyzer.analyze_parts.return_value = data

        result = service.analyze(UploadedReport('coffee_stocks.v2.pdf', b'%PDF'))

        assert result.id == 'coffee_stocks.v2'

    @patch('apps.application.services.document_analysis_service.settings')
    def test_parse_error_propagates_as_analysis_error(self, mock_settings, service, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        analyzer.analyze_parts.side_effect = GeminiParseError('Invalid JSON')

        with pytest.raises(AnalysisError):
            service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

    @patch('apps.application.services.document_analysis_service.settings')
    def test_missing_sections_raise_analysis_error(self, mock_settings, service, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        analyzer.analyze_parts.return_value = {'metadata': {'id': 'x', 'title': 't'}}

        with pytest.raises(AnalysisError):
            service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

    @patch('apps.application.services.document_analysis_service.settings')
    def test_previous_report_added_to_prompt(self, mock_settings, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        gateway = Mock()
        gateway.latest.return_value = AnalysisResult.from_dict(make_result_payload('2025/01/14'))
        session = AuthSession(id_token='token')
        service = DocumentAnalysisService(gateway=gateway, analyzer_factory=lambda: analyzer)

        service.analyze(UploadedReport('stocks.pdf', b'%PDF'), session)

        gateway.latest.assert_called_once_with(session)
        prompt = analyzer.analyze_parts.call_args[0][0][0]
        assert '# Previous Report' in prompt
        assert 'Total bags: 775000' in prompt
        assert 'ANTWERP: 410000 bags' in prompt
        assert 'HAMBURG: 120000 bags' in prompt
        assert 'Headline: Certified stocks keep falling' in prompt

    @patch('apps.application.services.document_analysis_service.settings')
    def test_previous_report_failure_is_ignored(self, mock_settings, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        gateway = Mock()
        gateway.latest.side_effect = RuntimeError('connection reset')
        service = DocumentAnalysisService(gateway=gateway, analyzer_factory=lambda: analyzer)

        result = service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

        assert result.id == '2025-01-15'
        assert '# Previous Report' not in analyzer.analyze_parts.call_args[0][0][0]

    @patch('apps.application.services.document_analysis_service.settings')
    def test_previous_report_with_unexpected_shapes(self, mock_settings, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        previous = make_result_payload('2025/01/14')
        previous['extracted_data']['executive_summary'] = 'Bullish overall'
        previous['extracted_data']['warehouses'] = 'ANTWERP 410000'
        gateway = Mock()
        gateway.latest.return_value = AnalysisResult.from_dict(previous)
        service = DocumentAnalysisService(gateway=gateway, analyzer_factory=lambda: analyzer)

        result = service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

        assert result.id == '2025-01-15'
        prompt = analyzer.analyze_parts.call_args[0][0][0]
        assert 'Report date: 2025/01/14' in prompt
        assert 'ANTWERP: unknown bags' in prompt
        assert 'Headline: none' in prompt

    @patch('apps.application.services.document_analysis_service.DocumentAnalysisService._render_context')
    @patch('apps.application.services.document_analysis_service.settings')
    def test_context_rendering_failure_is_ignored(self, mock_settings, mock_render, analyzer):
        mock_settings.GEMINI_API_KEY = 'test-key'
        mock_render.side_effect = TypeError('unexpected value')
        gateway = Mock()
        gateway.latest.return_value = AnalysisResult.from_dict(make_result_payload('2025/01/14'))
        service = DocumentAnalysisService(gateway=gateway, analyzer_factory=lambda: analyzer)

        result = service.analyze(UploadedReport('stocks.pdf', b'%PDF'))

        assert result.id == '2025-01-15'
        assert '# Previous Report' not in analyzer.analyze_parts.call_args[0][0][0]
