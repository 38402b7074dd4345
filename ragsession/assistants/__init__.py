"""
Assistant-based RAG: vector stores, documents, runs and answers.
"""

from .base import (
    Answer,
    Citation,
    RunStatus,
    SearchResult,
)
from .documents import create_vector_store, list_store_files, upload_documents
from .messages import MessagePages, build_answer, collect_search_results
from .polling import StatusPoller, wait_for_run
from .session import RAGSession

__all__ = [
    'Answer',
    'Citation',
    'RunStatus',
    'SearchResult',
    'create_vector_store',
    'list_store_files',
    'upload_documents',
    'MessagePages',
    'build_answer',
    'collect_search_results',
    'StatusPoller',
    'wait_for_run',
    'RAGSession',
]
