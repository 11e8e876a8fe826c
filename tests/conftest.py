import io

import pytest
from unittest.mock import Mock, patch
from openpyxl import Workbook
from rest_framework.test import APIClient

from apps.infrastructure.services.identity_verifier import IdentityVerificationError


VALID_TOKEN = 'valid-id-token'


def _verify(token):
    if token != VALID_TOKEN:
        raise IdentityVerificationError('Invalid ID token')
    return {'uid': 'user-123', 'email': 'trader@example.com'}


@pytest.fixture
def identity_verifier():
    verifier = Mock()
    verifier.verify.side_effect = _verify
    with patch('apps.presentation.authentication.get_identity_verifier', return_value=verifier):
        yield verifier


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(api_client, identity_verifier):
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {VALID_TOKEN}')
    return api_client


def make_result_payload(report_date='2025/01/15', status='positive', timestamp=1736900000000, **overrides):
    payload = {
        'id': 'stock-report',
        'metadata': {
            'id': 'stock-report',
            'title': 'Coffee C Certified Stock Report',
            'category': 'report',
            'author': 'ICE Futures U.S.',
        },
        'extracted_data': {
            'report_date': report_date,
            'total_bags': 775000,
            'warehouses': [
                {'name': 'ANTWERP', 'bags': 410000},
                {'name': 'HAMBURG', 'bags': 120000},
            ],
            'grading': {'passed': 12000, 'failed': 3000, 'total_graded': 15000},
            'executive_summary': {
                'sentiment': 'Bullish',
                'bullish_bearish_score': 40,
                'headline': 'Certified stocks keep falling',
                'text': 'Stocks fell for the fifth straight session.',
            },
            'summary': 'Certified stocks decreased.',
            'key_points': ['Antwerp holds most of the stock', 'Grading failures rose'],
        },
        'evaluation': {
            'score': 72,
            'status': status,
            'details': 'Supply tightening',
            'tags': ['supply', 'antwerp'],
        },
        'timestamp': timestamp,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def result_payload():
    return make_result_payload()


@pytest.fixture
def workbook_bytes():
    def build(sheets):
        workbook = Workbook()
        workbook.remove(workbook.active)
        for name, rows in sheets:
            worksheet = workbook.create_sheet(title=name)
            for row in rows:
                worksheet.append(row)
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
    return build
