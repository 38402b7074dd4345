"""
RAG session client for hosted assistants.

Creates a vector store, uploads documents into it, binds an assistant to it
and answers questions with citations, all through the OpenAI SDK.
"""

from .config import ExpirationPolicy, PollPolicy, SessionConfig
from .errors import (
    ConfigError,
    PollCancelled,
    RemoteError,
    RunFailed,
    RunTimeout,
    SessionError,
)
from .assistants import Answer, Citation, RAGSession, SearchResult

__version__ = "0.1.0"

__all__ = [
    'ExpirationPolicy',
    'PollPolicy',
    'SessionConfig',
    'ConfigError',
    'PollCancelled',
    'RemoteError',
    'RunFailed',
    'RunTimeout',
    'SessionError',
    'Answer',
    'Citation',
    'RAGSession',
    'SearchResult',
]
