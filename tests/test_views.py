import pytest
from unittest.mock import patch

from apps.domain.models import AnalysisRecord, DocumentRecord
from conftest import make_result_payload


@pytest.mark.django_db
class TestHealthCheck:
    def test_health_without_credentials(self, api_client):
        response = api_client.get('/api/health')

        assert response.status_code == 200
        assert response.data['status'] == 'ok'
        assert response.data['db']


@pytest.mark.django_db
class TestAuthentication:
    def test_missing_token_is_unauthorized(self, api_client, identity_verifier):
        response = api_client.get('/api/documents')

        assert response.status_code == 403
        assert response.data['detail'] == 'Unauthorized'

    def test_invalid_token_is_unauthorized(self, api_client, identity_verifier):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer expired-token')

        response = api_client.get('/api/documents')

        assert response.status_code == 403
        assert response.data['detail'] == 'Unauthorized'

    def test_session_cookie_is_accepted(self, api_client, identity_verifier):
        api_client.cookies['__session'] = 'valid-id-token'

        response = api_client.get('/api/documents')

        assert response.status_code == 200


@pytest.mark.django_db
class TestSaveAnalysis:
    def test_save_uses_report_date_as_doc_id(self, auth_client, result_payload):
        response = auth_client.post('/api/save', result_payload, format='json')

        assert response.status_code == 200
        assert response.data == {'success': True, 'id': '2025-01-15'}

        detail = AnalysisRecord.objects.get(doc_id='2025-01-15')
        assert detail.payload['id'] == '2025-01-15'
        assert detail.payload['metadata']['id'] == '2025-01-15'
        assert detail.payload['userId'] == 'user-123'
        assert detail.user_id == 'user-123'

        listing = DocumentRecord.objects.get(doc_id='2025-01-15')
        assert listing.last_evaluation == 'positive'
        assert listing.date == '2025/01/15'
        assert listing.sentiment == 'Bullish'
        assert listing.bullish_bearish_score == 40
        assert listing.summary_headline == 'Certified stocks keep falling'

    def test_save_requires_authentication(self, api_client, identity_verifier, result_payload):
        response = api_client.post('/api/save', result_payload, format='json')

        assert response.status_code == 403
        assert AnalysisRecord.objects.count() == 0

    def test_save_rejects_malformed_payload(self, auth_client):
        response = auth_client.post('/api/save', {'id': 'x', 'evaluation': {'status': 'great'}}, format='json')

        assert response.status_code == 400
        assert 'error' in response.data

    def test_save_accepts_out_of_range_score(self, auth_client):
        payload = make_result_payload()
        payload['evaluation']['score'] = 140

        response = auth_client.post('/api/save', payload, format='json')

        assert response.status_code == 200
        assert AnalysisRecord.objects.get(doc_id='2025-01-15').payload['evaluation']['score'] == 140

    def test_save_accepts_string_executive_summary(self, auth_client):
        payload = make_result_payload()
        payload['extracted_data']['executive_summary'] = 'Bullish overall'

        response = auth_client.post('/api/save', payload, format='json')

        assert response.status_code == 200
        assert response.data == {'success': True, 'id': '2025-01-15'}
        assert DocumentRecord.objects.get(doc_id='2025-01-15').sentiment == 'Neutral'

    @patch('apps.presentation.views.AnalysisStoreService')
    def test_save_store_failure_returns_500(self, mock_service_class, auth_client, result_payload):
        mock_service_class.return_value.save.side_effect = RuntimeError('database unavailable')

        response = auth_client.post('/api/save', result_payload, format='json')

        assert response.status_code == 500
        assert response.data['error'] == 'database unavailable'


@pytest.mark.django_db
class TestReadEndpoints:
    def test_documents_newest_first(self, auth_client):
        auth_client.post('/api/save', make_result_payload('2025/01/14', timestamp=1000), format='json')
        auth_client.post('/api/save', make_result_payload('2025/01/15', timestamp=2000), format='json')

        response = auth_client.get('/api/documents')

        assert response.status_code == 200
        assert [item['id'] for item in response.data] == ['2025-01-15', '2025-01-14']
        assert response.data[0]['last_evaluation'] == 'positive'

    def test_history_by_id(self, auth_client, result_payload):
        auth_client.post('/api/save', result_payload, format='json')

        response = auth_client.get('/api/history/2025-01-15')

        assert response.status_code == 200
        assert len(response.data) == 1
        assert response.data[0]['id'] == '2025-01-15'

    def test_history_unknown_id_is_empty(self, auth_client):
        response = auth_client.get('/api/history/1999-01-01')

        assert response.status_code == 200
        assert response.data == []

    def test_latest_returns_null_when_empty(self, auth_client):
        response = auth_client.get('/api/latest')

        assert response.status_code == 200
        assert response.data is None

    def test_latest_returns_most_recent(self, auth_client):
        auth_client.post('/api/save', make_result_payload('2025/01/15', timestamp=3000), format='json')
        auth_client.post('/api/save', make_result_payload('2025/01/14', timestamp=1000), format='json')

        response = auth_client.get('/api/latest')

        assert response.status_code == 200
        assert response.data['id'] == '2025-01-15'

    @patch('apps.presentation.views.AnalysisStoreService')
    def test_history_failure_returns_500(self, mock_service_class, auth_client):
        mock_service_class.return_value.history.side_effect = RuntimeError('boom')

        response = auth_client.get('/api/history/2025-01-15')

        assert response.status_code == 500
        assert response.data['error'] == 'boom'
