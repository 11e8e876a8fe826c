from rest_framework import serializers
from apps.domain.entities import EVALUATION_STATUSES
from apps.domain.models import DocumentRecord


class DocumentMetadataSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True, help_text='Document identifier')
    title = serializers.CharField(allow_blank=True, help_text='Document title')
    category = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    date = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    author = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AnalysisEvaluationSerializer(serializers.Serializer):
    score = serializers.FloatField(help_text='Evaluation score, expected 0-100')
    status = serializers.ChoiceField(choices=EVALUATION_STATUSES, help_text='positive, neutral, negative or warning')
    details = serializers.CharField(allow_blank=True)
    tags = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False, default=list)


class AnalysisResultSerializer(serializers.Serializer):
    """Validates the shape of a POST /api/save body; the raw payload is what gets stored."""
    id = serializers.CharField(required=False, allow_blank=True, help_text='Client derived id')
    metadata = DocumentMetadataSerializer()
    extracted_data = serializers.DictField(help_text='Extracted fields; summary and key_points plus report specific data')
    evaluation = AnalysisEvaluationSerializer()
    timestamp = serializers.IntegerField(required=False, allow_null=True, help_text='Analysis time in epoch milliseconds')

    def validate(self, attrs):
        extracted_data = attrs.get('extracted_data') or {}
        if not attrs.get('id') and not extracted_data.get('report_date'):
            raise serializers.ValidationError('Either id or extracted_data.report_date is required')
        return attrs


class DocumentRecordSerializer(serializers.ModelSerializer):
    id = serializers.CharField(source='doc_id', read_only=True)

    class Meta:
        model = DocumentRecord
        fields = [
            'id', 'title', 'category', 'date', 'author', 'timestamp',
            'last_evaluation', 'bullish_bearish_score', 'summary_headline', 'sentiment',
        ]
        read_only_fields = fields
