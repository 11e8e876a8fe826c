from django.urls import path
from .health import health_check
from .views import list_documents, document_history, latest_analysis, save_analysis

urlpatterns = [
    path('health', health_check, name='health'),
    path('documents', list_documents, name='documents'),
    path('history/<str:doc_id>', document_history, name='document-history'),
    path('latest', latest_analysis, name='latest-analysis'),
    path('save', save_analysis, name='save-analysis'),
]
