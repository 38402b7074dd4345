"""
OpenAI chat-completion provider implementation.

This module provides a concrete implementation of the LLMProvider
interface using OpenAI's chat completions API.
"""

import logging
from typing import List, Optional

from openai import OpenAI

from ...client import translate_errors
from .base import (
    LLMProvider,
    LLMConfig,
    ChatMessage,
    GenerationResult,
)

logger = logging.getLogger(__name__)


class OpenAIChatProvider(LLMProvider):
    """
    LLM provider using OpenAI chat completions.

    Example:
        >>> config = LLMConfig(
        ...     model_name="gpt-4o-mini",
        ...     temperature=0.2,
        ...     api_key="sk-..."
        ... )
        >>> with OpenAIChatProvider(config) as provider:
        ...     result = provider.generate("Say this is a test")
        >>> print(result.text)
    """

    def __init__(self, config: LLMConfig, client: Optional[OpenAI] = None):
        """
        Initialize the OpenAI provider.

        Args:
            config: LLM configuration; api_key is required unless a client is given
            client: Existing OpenAI client to share (not closed by cleanup)
        """
        self._client: Optional[OpenAI] = client
        self._owns_client = client is None
        super().__init__(config)

    def _validate_config(self) -> None:
        super()._validate_config()

        if self._owns_client and not self.config.api_key:
            raise ValueError("api_key is required when no client is shared")

    def _initialize_client(self) -> None:
        """Initialize the OpenAI client if not already initialized."""
        if self._client is None:
            logger.info(f"Initializing OpenAI client for model: {self.config.model_name}")
            self._client = OpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                max_retries=self.config.max_retries,
                timeout=self.config.timeout,
            )
            self._owns_client = True

    def _format_messages(self, messages: List[ChatMessage]) -> List[dict]:
        # System messages stay inline
        return [msg.to_param() for msg in messages]

    def chat(self, messages: List[ChatMessage], **kwargs) -> GenerationResult:
        """
        Generate text from a conversation.

        Args:
            messages: List of ChatMessage objects
            **kwargs: ``temperature`` and ``max_tokens`` override the config

        Returns:
            GenerationResult with generated text and metadata

        Raises:
            RemoteError: If the API call fails
        """
        self._initialize_client()

        api_params = {
            "model": self.config.model_name,
            "messages": self._format_messages(messages),
            **self.sampling_params(**kwargs),
        }

        logger.debug(f"Calling chat completions with {len(messages)} messages")
        with translate_errors("Chat completion"):
            response = self._client.chat.completions.create(**api_params)

        choice = response.choices[0] if response.choices else None
        text = (choice.message.content or "") if choice else ""
        usage = response.usage

        result = GenerationResult(
            text=text,
            model=response.model,
            finish_reason=choice.finish_reason if choice else None,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None,
            metadata={"response_id": response.id},
        )

        logger.info(
            f"Generated {result.completion_tokens} tokens "
            f"(total: {result.total_tokens})"
        )
        return result

    def get_model_info(self) -> dict:
        info = super().get_model_info()
        info["api_provider"] = "OpenAI"
        return info

    def cleanup(self) -> None:
        """Close the client if this provider created it."""
        if self._client is not None and self._owns_client:
            logger.info(f"Closing OpenAI client for {self.config.model_name}")
            self._client.close()
            self._client = None

    def __enter__(self):
        """Context manager entry."""
        self._initialize_client()
        return self
