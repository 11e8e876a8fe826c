from django.db import models


class AnalysisRecord(models.Model):
    """Detail record holding the complete analysis result for one docId."""

    doc_id = models.CharField(max_length=255, primary_key=True)
    result_id = models.CharField(max_length=255, db_index=True)
    timestamp = models.BigIntegerField(default=0, db_index=True)
    user_id = models.CharField(max_length=128, blank=True, default='')
    payload = models.JSONField(default=dict)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'analyses'
        ordering = ['-timestamp']

    def __str__(self):
        return f"Analysis {self.result_id} @ {self.timestamp}"
