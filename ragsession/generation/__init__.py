"""
Generation module for plain chat completions.

RAG answers go through ``ragsession.assistants``; this module covers
single-shot chat completions against the same provider.
"""

from .providers import (
    LLMProvider,
    LLMConfig,
    ChatMessage,
    MessageRole,
    GenerationResult,
    OpenAIChatProvider,
)

__all__ = [
    'LLMProvider',
    'LLMConfig',
    'ChatMessage',
    'MessageRole',
    'GenerationResult',
    'OpenAIChatProvider',
]
