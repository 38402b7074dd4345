"""
Provider interface for plain chat completions.

Assistant runs have their own flow in ``ragsession.assistants``; a provider
here turns a list of messages into one completion and nothing more.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Dict, Any, Optional
from enum import Enum


# Sampling temperature range accepted by the chat completions API
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


class MessageRole(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ChatMessage:
    """One turn of a conversation; ``name`` tags the sender when set."""
    role: MessageRole
    content: str
    name: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER, content=content)

    def to_param(self) -> Dict[str, str]:
        param = {"role": self.role.value, "content": self.content}
        if self.name:
            param["name"] = self.name
        return param


@dataclass
class LLMConfig:
    """
    Settings for a chat-completion provider.

    Attributes:
        model_name: Model id sent with every request
        temperature: Sampling temperature (0.0 to 2.0)
        max_tokens: Upper bound on completion tokens
        top_p: Nucleus sampling; 1.0 leaves it to the provider
        stop_sequences: Sequences that end the completion
        api_key: Credential, needed only when the provider builds its own client
        base_url: Endpoint override
        max_retries: Retries the SDK makes for retryable failures
        timeout: Per-request timeout in seconds
    """
    model_name: str
    temperature: float = 0.7
    max_tokens: int = 1024
    top_p: float = 1.0
    stop_sequences: Optional[List[str]] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_retries: int = 2
    timeout: float = 60.0

    def validate(self) -> None:
        """
        Raises:
            ValueError: If a setting is out of range
        """
        if not self.model_name:
            raise ValueError("model_name is required")

        if not MIN_TEMPERATURE <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(
                f"temperature must be between {MIN_TEMPERATURE:g} and {MAX_TEMPERATURE:g}"
            )

        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")


@dataclass
class GenerationResult:
    """
    A finished completion.

    Token counts are None when the provider does not report usage.
    """
    text: str
    model: str
    finish_reason: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Base class for chat-completion providers.

    Subclasses implement ``chat`` and ``cleanup``; ``generate`` is built
    on ``chat``. Failures surface as ``RemoteError``.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._validate_config()

    def _validate_config(self) -> None:
        """Check the config; subclasses extend this with their own rules."""
        self.config.validate()

    def sampling_params(self, **overrides) -> Dict[str, Any]:
        """
        Sampling settings for one request.

        ``temperature`` and ``max_tokens`` in ``overrides`` win over the
        config; ``top_p`` and ``stop`` are included only when configured.
        """
        params = {
            "temperature": overrides.get("temperature", self.config.temperature),
            "max_tokens": overrides.get("max_tokens", self.config.max_tokens),
        }
        if self.config.top_p != 1.0:
            params["top_p"] = self.config.top_p
        if self.config.stop_sequences:
            params["stop"] = self.config.stop_sequences
        return params

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> GenerationResult:
        messages = [ChatMessage.system(system_prompt)] if system_prompt else []
        messages.append(ChatMessage.user(prompt))
        return self.chat(messages, **kwargs)

    @abstractmethod
    def chat(self, messages: List[ChatMessage], **kwargs) -> GenerationResult:
        """
        Complete a conversation.

        Args:
            messages: Conversation so far, oldest first
            **kwargs: Per-request overrides (see ``sampling_params``)

        Returns:
            GenerationResult for the next assistant turn

        Raises:
            RemoteError: If the provider call fails
        """

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "model_name": self.config.model_name,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "provider": type(self).__name__,
        }

    @abstractmethod
    def cleanup(self) -> None:
        """Release the provider's client."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
