import json
import logging
from typing import Dict, List, Optional, Union
from django.conf import settings

from apps.domain.entities import EVALUATION_STATUSES, SENTIMENT_SCALE
from apps.domain.exceptions import AnalysisError, ConfigError

logger = logging.getLogger('apps')

try:
    import google.generativeai as genai
    GEMINI_AVAILABLE = True
except ImportError:
    GEMINI_AVAILABLE = False
    logger.warning('google-generativeai not installed. Install with: pip install google-generativeai')


class GeminiAPIError(AnalysisError):
    """Base exception for Gemini API errors"""
    pass


class GeminiParseError(GeminiAPIError):
    """Raised when JSON parsing fails"""
    pass


# Schema declared in the Gemini (OpenAPI subset) format
RESPONSE_SCHEMA = {
    'type': 'OBJECT',
    'properties': {
        'metadata': {
            'type': 'OBJECT',
            'properties': {
                'id': {'type': 'STRING'},
                'title': {'type': 'STRING'},
                'category': {'type': 'STRING'},
                'date': {'type': 'STRING'},
                'author': {'type': 'STRING'},
            },
            'required': ['id', 'title'],
        },
        'extracted_data': {
            'type': 'OBJECT',
            'properties': {
                'report_date': {'type': 'STRING'},
                'total_bags': {'type': 'NUMBER'},
                'warehouses': {
                    'type': 'ARRAY',
                    'items': {
                        'type': 'OBJECT',
                        'properties': {
                            'name': {'type': 'STRING'},
                            'bags': {'type': 'NUMBER'},
                        },
                        'required': ['name', 'bags'],
                    },
                },
                'grading': {
                    'type': 'OBJECT',
                    'properties': {
                        'passed': {'type': 'NUMBER'},
                        'failed': {'type': 'NUMBER'},
                        'total_graded': {'type': 'NUMBER'},
                        'pending': {'type': 'NUMBER', 'description': 'Bags pending grading'},
                    },
                    'required': ['passed', 'failed', 'total_graded'],
                },
                'executive_summary': {
                    'type': 'OBJECT',
                    'properties': {
                        'sentiment': {'type': 'STRING', 'enum': list(SENTIMENT_SCALE)},
                        'bullish_bearish_score': {'type': 'NUMBER', 'description': '-100 (bearish) to 100 (bullish)'},
                        'headline': {'type': 'STRING', 'description': 'Most important takeaway'},
                        'text': {'type': 'STRING', 'description': 'Executive summary text'},
                    },
                    'required': ['sentiment', 'bullish_bearish_score', 'headline', 'text'],
                },
                'key_metrics': {
                    'type': 'OBJECT',
                    'properties': {
                        'fresh_vs_transition_ratio': {'type': 'STRING'},
                        'change_from_previous': {'type': 'STRING'},
                    },
                    'required': ['fresh_vs_transition_ratio', 'change_from_previous'],
                },
                'deep_dive_analysis': {
                    'type': 'OBJECT',
                    'properties': {
                        'geo_logistics_risk': {'type': 'STRING'},
                        'supply_demand_insight': {'type': 'STRING'},
                    },
                    'required': ['geo_logistics_risk', 'supply_demand_insight'],
                },
                'engineering_suggestions': {'type': 'ARRAY', 'items': {'type': 'STRING'}},
                'summary': {'type': 'STRING'},
                'key_points': {'type': 'ARRAY', 'items': {'type': 'STRING'}},
            },
            'required': [
                'report_date', 'total_bags', 'warehouses', 'grading', 'executive_summary',
                'key_metrics', 'deep_dive_analysis', 'engineering_suggestions', 'summary', 'key_points',
            ],
        },
        'evaluation': {
            'type': 'OBJECT',
            'properties': {
                'score': {'type': 'NUMBER'},
                'status': {'type': 'STRING', 'enum': list(EVALUATION_STATUSES)},
                'details': {'type': 'STRING'},
                'tags': {'type': 'ARRAY', 'items': {'type': 'STRING'}},
            },
            'required': ['score', 'status', 'details', 'tags'],
        },
    },
    'required': ['metadata', 'extracted_data', 'evaluation'],
}


class GeminiAnalyzerService:
    def __init__(self):
        if not GEMINI_AVAILABLE:
            raise ImportError('google-generativeai is not installed. Install with: pip install google-generativeai')

        api_key = getattr(settings, 'GEMINI_API_KEY', None)
        if not api_key:
            raise ConfigError('GEMINI_API_KEY not configured in settings')

        genai.configure(api_key=api_key)

        self.model_name = getattr(settings, 'GEMINI_MODEL', 'gemini-2.0-flash')
        self.temperature = getattr(settings, 'GEMINI_TEMPERATURE', 0.2)

        try:
            self.model = genai.GenerativeModel(self.model_name)
            logger.info(f'Initialized Gemini model: {self.model_name}')
        except Exception as e:
            logger.error(f'Error initializing Gemini model {self.model_name}: {str(e)}')
            raise GeminiAPIError(f'Failed to initialize Gemini model: {str(e)}')

    def analyze_parts(self, parts: List[Union[str, Dict]]) -> Dict:
        """
        Submit prompt parts to Gemini and return the parsed JSON document.

        Args:
            parts: Text segments and inline blobs ({'mime_type', 'data'})

        Returns:
            Dict shaped like RESPONSE_SCHEMA

        Raises:
            GeminiParseError: When the response is not valid JSON
            GeminiAPIError: When the call fails or returns no text
        """
        generation_config = {
            'temperature': self.temperature,
            'response_mime_type': 'application/json',
            'response_schema': RESPONSE_SCHEMA,
        }

        try:
            response = self.model.generate_content(parts, generation_config=generation_config)
        except Exception as e:
            logger.error(f'Gemini API error: {str(e)}')
            # Never expose API key in error messages
            raise GeminiAPIError('Gemini API error occurred')

        response_text = self._response_text(response)
        if not response_text:
            raise GeminiAPIError('No response from AI')

        tokens_used = None
        if hasattr(response, 'usage_metadata'):
            tokens_used = getattr(response.usage_metadata, 'total_token_count', None)
        logger.info(f'Gemini responded with {len(response_text)} characters (tokens used: {tokens_used})')

        return self.parse_json(response_text)

    def parse_json(self, response_text: str) -> Dict:
        response_text = response_text.strip()
        # Remove markdown code blocks if present
        if response_text.startswith('```json'):
            response_text = response_text[7:]
        if response_text.startswith('```'):
            response_text = response_text[3:]
        if response_text.endswith('```'):
            response_text = response_text[:-3]
        response_text = response_text.strip()

        try:
            data = json.loads(response_text)
        except json.JSONDecodeError as e:
            logger.error(f'Failed to parse Gemini JSON response: {str(e)}')
            logger.debug(f'Response text: {response_text[:500]}')
            raise GeminiParseError(f'Invalid JSON response from Gemini: {str(e)}')

        if not isinstance(data, dict):
            raise GeminiParseError('Gemini response is not a JSON object')
        return data

    def _response_text(self, response) -> Optional[str]:
        # response.text raises ValueError when the candidate has no text parts
        try:
            return response.text
        except ValueError as e:
            logger.warning(f'Gemini returned no text: {str(e)}')
            return None
