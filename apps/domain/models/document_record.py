from django.db import models


class DocumentRecord(models.Model):
    """List view record, one per report (docId)."""

    doc_id = models.CharField(max_length=255, primary_key=True)
    title = models.CharField(max_length=500, blank=True, default='')
    category = models.CharField(max_length=200, blank=True, null=True)
    date = models.CharField(max_length=50, blank=True, null=True)
    author = models.CharField(max_length=255, blank=True, null=True)
    timestamp = models.BigIntegerField(default=0, db_index=True)
    last_evaluation = models.CharField(max_length=20, blank=True, default='')
    bullish_bearish_score = models.FloatField(default=0)
    summary_headline = models.TextField(blank=True, default='')
    sentiment = models.CharField(max_length=50, default='Neutral')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'documents'
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.doc_id} ({self.last_evaluation})"
