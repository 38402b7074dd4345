"""
Exceptions raised by the RAG session client.

Every failure that crosses a public function boundary is one of these types.
SDK exceptions are translated in ``ragsession.client.translate_errors`` so
callers never need to import from ``openai`` to handle errors.
"""

from typing import Any, Optional


class SessionError(Exception):
    """Base exception for RAG session errors."""
    pass


class ConfigError(SessionError):
    """Raised when configuration is missing or invalid."""
    pass


class RemoteError(SessionError):
    """
    Raised when a call to the provider API fails.

    Attributes:
        status_code: HTTP status code, if the provider answered at all
        retryable: Whether repeating the same call could succeed
            (network failures, timeouts, rate limits and 5xx responses)
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class RunFailed(SessionError):
    """Raised when a run reaches a terminal status other than completed."""

    def __init__(self, run_id: str, status: str, last_error: Optional[Any] = None):
        self.run_id = run_id
        self.status = status
        self.last_error = last_error

        message = f"Run {run_id} ended with status '{status}'"
        if last_error is not None:
            code = getattr(last_error, "code", None)
            detail = getattr(last_error, "message", None) or str(last_error)
            message += f": {code}: {detail}" if code else f": {detail}"
        super().__init__(message)


class RunTimeout(SessionError):
    """Raised when polling gives up before a terminal status is observed."""

    def __init__(self, object_id: str, last_status: str, attempts: int):
        self.object_id = object_id
        self.last_status = last_status
        self.attempts = attempts
        super().__init__(
            f"Gave up waiting for {object_id} after {attempts} status reads "
            f"(last status: '{last_status}')"
        )


class PollCancelled(SessionError):
    """Raised when the caller's cancel event is set while polling."""
    pass
