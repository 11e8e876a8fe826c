from django.contrib import admin
from .models import DocumentRecord, AnalysisRecord


@admin.register(DocumentRecord)
class DocumentRecordAdmin(admin.ModelAdmin):
    list_display = ['doc_id', 'title', 'date', 'last_evaluation', 'sentiment', 'bullish_bearish_score', 'timestamp']
    list_filter = ['last_evaluation', 'sentiment', 'category']
    search_fields = ['doc_id', 'title', 'summary_headline']
    readonly_fields = ['updated_at']
    fieldsets = (
        ('Report', {
            'fields': ('doc_id', 'title', 'category', 'date', 'author')
        }),
        ('Latest evaluation', {
            'fields': ('timestamp', 'last_evaluation', 'sentiment', 'bullish_bearish_score', 'summary_headline')
        }),
        ('Dates', {
            'fields': ('updated_at',),
            'classes': ('collapse',)
        }),
    )


@admin.register(AnalysisRecord)
class AnalysisRecordAdmin(admin.ModelAdmin):
    list_display = ['doc_id', 'result_id', 'user_id', 'timestamp', 'updated_at']
    search_fields = ['doc_id', 'result_id', 'user_id']
    readonly_fields = ['updated_at']
