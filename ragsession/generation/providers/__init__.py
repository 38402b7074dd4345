"""
Chat-completion provider implementations.
"""

from .base import (
    LLMProvider,
    LLMConfig,
    ChatMessage,
    MessageRole,
    GenerationResult,
)
from .openai import OpenAIChatProvider

__all__ = [
    'LLMProvider',
    'LLMConfig',
    'ChatMessage',
    'MessageRole',
    'GenerationResult',
    'OpenAIChatProvider',
]
