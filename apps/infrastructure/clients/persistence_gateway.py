import logging
from typing import Dict, List, Optional

import requests

from apps.domain.entities import AnalysisResult
from apps.domain.exceptions import PersistenceError
from .auth_session import AuthSession

logger = logging.getLogger('apps')


class PersistenceGateway:
    """
    HTTP client for the report backend.

    Every call is a single round trip without retry. Read paths degrade to
    empty values on failure; only save raises.
    """

    def __init__(self, base_url: str, timeout: int = 30):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _headers(self, session: Optional[AuthSession]) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        if session is not None:
            headers.update(session.auth_headers())
        return headers

    def _url(self, path: str) -> str:
        return f'{self.base_url}/api/{path}'

    def health(self) -> bool:
        try:
            response = requests.get(self._url('health'), timeout=self.timeout)
            return response.ok
        except requests.exceptions.RequestException:
            logger.warning(f'Backend server not reachable at {self.base_url}')
            return False

    def save(self, result: AnalysisResult, session: Optional[AuthSession] = None) -> str:
        try:
            response = requests.post(
                self._url('save'),
                json=result.to_dict(),
                headers=self._headers(session),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f'DB save failed: {str(e)}')
            raise PersistenceError('Failed to connect to backend database')

        if not response.ok:
            error_text = response.text[:500]
            logger.error(f'DB save failed: {response.status_code} - {error_text}')
            raise PersistenceError(f'Server returned {response.status_code}: {error_text}')

        try:
            return response.json().get('id', result.id)
        except ValueError:
            return result.id

    def list(self, session: Optional[AuthSession] = None) -> List[Dict]:
        try:
            response = requests.get(self._url('documents'), headers=self._headers(session), timeout=self.timeout)
            if not response.ok:
                logger.warning(f'Fetch documents failed: {response.status_code}')
                return []
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f'Fetch documents failed: {str(e)}')
            return []

    def history_by_id(self, doc_id: str, session: Optional[AuthSession] = None) -> List[AnalysisResult]:
        try:
            response = requests.get(
                self._url(f'history/{doc_id}'),
                headers=self._headers(session),
                timeout=self.timeout,
            )
            if not response.ok:
                logger.error(f'Fetch history failed: {response.status_code} {response.text[:200]}')
                return []
            history = [AnalysisResult.from_dict(item) for item in response.json()]
        except (requests.exceptions.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.error(f'Fetch history failed: {str(e)}')
            return []
        return sorted(history, key=lambda item: item.timestamp, reverse=True)

    def latest(self, session: Optional[AuthSession] = None) -> Optional[AnalysisResult]:
        try:
            response = requests.get(self._url('latest'), headers=self._headers(session), timeout=self.timeout)
            if not response.ok:
                return None
            data = response.json()
            return AnalysisResult.from_dict(data) if data else None
        except (requests.exceptions.RequestException, ValueError, TypeError, AttributeError) as e:
            logger.error(f'Fetch latest document failed: {str(e)}')
            return None
