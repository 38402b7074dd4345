"""
Configuration for RAG sessions.

Settings are plain dataclasses passed explicitly into the client and the
session; nothing here is a process-wide singleton. Values come from the
environment (optionally primed from a ``.env`` file by the CLI) or from a
YAML file with ``${VAR}`` placeholders.

Example YAML:
    session:
      api_key: ${OPENAI_API_KEY}
      model: gpt-4o-mini
      store_name: demo-store
      expiration:
        anchor: last_active_at
        days: 1
      poll:
        interval: 2
        timeout: 300
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

API_KEY_ENV = "OPENAI_API_KEY"
CONFIG_PATH_ENV = "RAGSESSION_CONFIG"

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_DOCUMENTS = [
    "data/documents/crew_manifest.txt",
    "data/documents/voyage_log.txt",
]
DEFAULT_QUESTION = (
    "Who was in command of the vessel that left Tromsø on 3 March 2024, "
    "and what was the vessel's destination?"
)
DEFAULT_INSTRUCTIONS = (
    "You are a research assistant. Answer questions using only the attached "
    "documents. Cite the documents you used. If the documents do not contain "
    "the answer, say that you don't know."
)


@dataclass
class ExpirationPolicy:
    """
    When the provider may discard a vector store.

    Attributes:
        anchor: Timestamp the expiry window is measured from
        days: Number of days after the anchor before expiry
    """
    anchor: str = "last_active_at"
    days: int = 7

    ANCHORS = ("last_active_at",)
    MAX_DAYS = 365

    def validate(self) -> None:
        if self.anchor not in self.ANCHORS:
            raise ConfigError(
                f"Unknown expiration anchor '{self.anchor}'. "
                f"Supported anchors: {list(self.ANCHORS)}"
            )
        if isinstance(self.days, bool) or not isinstance(self.days, int):
            raise ConfigError("expiration days must be an integer")
        if self.days <= 0 or self.days > self.MAX_DAYS:
            raise ConfigError(f"expiration days must be between 1 and {self.MAX_DAYS}")

    def to_param(self) -> Dict[str, Any]:
        return {"anchor": self.anchor, "days": self.days}


@dataclass
class PollPolicy:
    """
    Bounds for status polling.

    Attributes:
        interval: Seconds to wait between status reads
        timeout: Seconds after which polling gives up (None for no deadline)
        max_attempts: Maximum number of status reads (None for no limit)
    """
    interval: float = 2.0
    timeout: Optional[float] = 600.0
    max_attempts: Optional[int] = None

    def validate(self) -> None:
        _check_number("poll interval", self.interval)
        _check_number("poll timeout", self.timeout, optional=True)
        _check_number("poll max_attempts", self.max_attempts, integer=True, optional=True)

        if self.interval <= 0:
            raise ConfigError("poll interval must be positive")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("poll timeout must be positive")
        if self.max_attempts is not None and self.max_attempts <= 0:
            raise ConfigError("poll max_attempts must be positive")
        if self.timeout is None and self.max_attempts is None:
            raise ConfigError("poll policy needs a timeout or max_attempts")


@dataclass
class SessionConfig:
    """
    Settings for a RAG session and the demo CLI.

    Attributes:
        api_key: Provider credential
        model: Model used by assistants
        chat_model: Model used for plain chat completions
        base_url: Optional override of the provider endpoint
        store_name: Name given to new vector stores
        expiration: Vector store expiration policy
        assistant_name: Name given to new assistants
        instructions: Instruction prompt for new assistants
        documents: Local files uploaded by the demo
        question: Question asked by the demo
        poll: Polling bounds for runs and file indexing
        wait_for_indexing: Wait until uploaded files are indexed
        max_retries: SDK-level retries for retryable failures
        request_timeout: Per-request timeout in seconds
        log_level: Logging level name for the CLI
    """
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    chat_model: str = DEFAULT_MODEL
    base_url: Optional[str] = None
    store_name: str = "ragsession-store"
    expiration: ExpirationPolicy = field(default_factory=ExpirationPolicy)
    assistant_name: str = "ragsession-assistant"
    instructions: str = DEFAULT_INSTRUCTIONS
    documents: List[str] = field(default_factory=lambda: list(DEFAULT_DOCUMENTS))
    question: str = DEFAULT_QUESTION
    poll: PollPolicy = field(default_factory=PollPolicy)
    wait_for_indexing: bool = True
    max_retries: int = 2
    request_timeout: float = 60.0
    log_level: str = "WARNING"

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigError: If the credential is missing or any setting is invalid
        """
        if not self.api_key:
            raise ConfigError(
                f"{API_KEY_ENV} is not set. Export it or add it to a .env file."
            )

        if not self.model:
            raise ConfigError("model is required")

        if not self.chat_model:
            raise ConfigError("chat_model is required")

        if not self.store_name:
            raise ConfigError("store_name is required")

        if not isinstance(self.question, str) or not self.question.strip():
            raise ConfigError("question must not be empty")

        if not isinstance(self.documents, list) or not self.documents:
            raise ConfigError("documents must list at least one file")
        if not all(isinstance(path, str) and path for path in self.documents):
            raise ConfigError("documents must be file paths")

        _check_number("max_retries", self.max_retries, integer=True)
        _check_number("request_timeout", self.request_timeout)

        if self.max_retries < 0:
            raise ConfigError("max_retries must not be negative")

        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

        self.expiration.validate()
        self.poll.validate()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """
        Build a configuration from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``

        Returns:
            SessionConfig (not yet validated)
        """
        env = os.environ if env is None else env

        config = cls(api_key=env.get(API_KEY_ENV) or None)
        config.base_url = env.get("OPENAI_BASE_URL") or None

        if env.get("RAGSESSION_MODEL"):
            config.model = env["RAGSESSION_MODEL"]
            config.chat_model = env["RAGSESSION_MODEL"]

        if env.get("RAGSESSION_LOG_LEVEL"):
            config.log_level = env["RAGSESSION_LOG_LEVEL"].upper()

        try:
            if env.get("RAGSESSION_POLL_INTERVAL"):
                config.poll.interval = float(env["RAGSESSION_POLL_INTERVAL"])
            if env.get("RAGSESSION_POLL_TIMEOUT"):
                config.poll.timeout = float(env["RAGSESSION_POLL_TIMEOUT"])
        except ValueError as e:
            raise ConfigError(f"Invalid polling setting: {e}") from e

        return config

    @classmethod
    def from_yaml(
        cls,
        yaml_path: str,
        env: Optional[Mapping[str, str]] = None
    ) -> "SessionConfig":
        """
        Build a configuration from the ``session`` section of a YAML file.

        Args:
            yaml_path: Path to the YAML file
            env: Mapping used for ``${VAR}`` substitution

        Returns:
            SessionConfig (not yet validated)

        Raises:
            ConfigError: If the file is unreadable or has unknown keys
        """
        env = os.environ if env is None else env

        try:
            with open(yaml_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {yaml_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {yaml_path} must contain a mapping")

        session_data = config_data.get("session") or {}
        if not isinstance(session_data, dict):
            raise ConfigError(f"The session section of {yaml_path} must be a mapping")

        session_data = _substitute_env_vars(session_data, env)
        return cls.from_dict(session_data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        data = dict(data)
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")

        try:
            if "expiration" in data:
                data["expiration"] = ExpirationPolicy(**(data["expiration"] or {}))
            if "poll" in data:
                data["poll"] = PollPolicy(**(data["poll"] or {}))
        except TypeError as e:
            raise ConfigError(f"Invalid config section: {e}") from e

        return cls(**data)

    @classmethod
    def load(cls, env: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """
        Load and validate configuration.

        Reads the YAML file named by ``RAGSESSION_CONFIG`` when set, the
        environment otherwise. A credential missing from the YAML file is
        taken from ``OPENAI_API_KEY``.

        Raises:
            ConfigError: If the resulting configuration is invalid
        """
        env = os.environ if env is None else env

        config_path = env.get(CONFIG_PATH_ENV)
        if config_path:
            logger.info(f"Loading configuration from {config_path}")
            config = cls.from_yaml(config_path, env)
            if not config.api_key:
                config.api_key = env.get(API_KEY_ENV) or None
        else:
            config = cls.from_env(env)

        config.validate()
        return config


def _check_number(
    name: str,
    value: Any,
    integer: bool = False,
    optional: bool = False
) -> None:
    """Raise ConfigError unless value is a number (bool is not)."""
    if value is None and optional:
        return
    expected = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, expected):
        kind = "an integer" if integer else "a number"
        raise ConfigError(f"{name} must be {kind}, got {value!r}")

def _substitute_env_vars(value: Any, env: Mapping[str, str]) -> Any:
    """
    Substitute ``${VAR_NAME}`` placeholders, recursing into dicts and lists.
    """
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item, env) for key, item in value.items()}

    if isinstance(value, list):
        return [_substitute_env_vars(item, env) for item in value]

    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = env.get(var_name)
        if env_value is None:
            logger.warning(f"Environment variable {var_name} not set")
        return env_value

    return value
