"""
Provider client construction and error translation.

The OpenAI SDK owns the wire protocol and retries retryable failures itself
(``max_retries``). This module builds that client from a validated
``SessionConfig`` and converts SDK exceptions into ``RemoteError``.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import openai
from openai import OpenAI

from .config import SessionConfig
from .errors import RemoteError

logger = logging.getLogger(__name__)

# Status codes worth repeating the request for
RETRYABLE_STATUS_CODES = {408, 409, 429}


def create_client(config: SessionConfig) -> OpenAI:
    """
    Create an OpenAI client from configuration.

    The configuration is validated first, so a missing credential fails
    before the SDK is touched.

    Args:
        config: Session configuration

    Returns:
        Configured OpenAI client

    Raises:
        ConfigError: If the configuration is invalid
    """
    config.validate()

    logger.info(f"Initializing OpenAI client (max_retries={config.max_retries})")
    return OpenAI(
        api_key=config.api_key,
        base_url=config.base_url,
        max_retries=config.max_retries,
        timeout=config.request_timeout,
    )


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """
    Convert OpenAI SDK exceptions raised inside the block into RemoteError.

    Args:
        operation: Short description used in the error message

    Raises:
        RemoteError: For any SDK failure
    """
    try:
        yield
    except openai.APITimeoutError as e:
        raise RemoteError(f"{operation} timed out: {e}", retryable=True) from e
    except openai.APIConnectionError as e:
        raise RemoteError(f"{operation} failed to connect: {e}", retryable=True) from e
    except openai.APIStatusError as e:
        raise RemoteError(
            f"{operation} failed with HTTP {e.status_code}: {e.message}",
            status_code=e.status_code,
            retryable=is_retryable_status(e.status_code),
        ) from e
    except openai.OpenAIError as e:
        raise RemoteError(f"{operation} failed: {e}") from e
