"""
RAG session orchestrator.

Drives the provider objects in dependency order:

    client -> vector store -> documents -> assistant -> thread -> run -> messages

Only ids are kept locally; the provider holds the authoritative state.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from openai import OpenAI

from ..client import create_client, translate_errors
from ..config import ExpirationPolicy, SessionConfig
from ..errors import ConfigError
from ..generation import GenerationResult, LLMConfig, OpenAIChatProvider
from .base import Answer, FILE_SEARCH_RESULT_CONTENT
from .documents import PathLike, create_vector_store, list_store_files, upload_documents
from .messages import FilenameResolver, MessagePages, build_answer, collect_search_results
from .polling import StatusCallback, StatusPoller, wait_for_run

logger = logging.getLogger(__name__)


class RAGSession:
    """
    Question answering over uploaded documents with provider-side retrieval.

    Example:
        >>> config = SessionConfig.load()
        >>> session = RAGSession(config)
        >>> answer = session.ask_documents(
        ...     "Who commanded the vessel?",
        ...     ["crew_manifest.txt", "voyage_log.txt"],
        ... )
        >>> print(answer.render())
    """

    def __init__(
        self,
        config: SessionConfig,
        client: Optional[OpenAI] = None,
        poller: Optional[StatusPoller] = None
    ):
        """
        Initialize the session.

        Args:
            config: Session configuration; validated before any client exists
            client: OpenAI client to use instead of building one from config
            poller: Poller to use instead of one built from ``config.poll``

        Raises:
            ConfigError: If the configuration is invalid
        """
        config.validate()
        self.config = config
        self.client = client if client is not None else create_client(config)
        self.poller = poller if poller is not None else StatusPoller(config.poll)
        self._filenames = FilenameResolver(self.client)
        self._chat_provider: Optional[OpenAIChatProvider] = None

    def chat(self, prompt: str, system_prompt: Optional[str] = None) -> GenerationResult:
        """Send a plain chat completion using ``config.chat_model``."""
        if self._chat_provider is None:
            llm_config = LLMConfig(
                model_name=self.config.chat_model,
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                max_retries=self.config.max_retries,
                timeout=self.config.request_timeout,
            )
            self._chat_provider = OpenAIChatProvider(llm_config, client=self.client)

        return self._chat_provider.generate(prompt, system_prompt=system_prompt)

    def create_vector_store(
        self,
        name: Optional[str] = None,
        expiration: Optional[ExpirationPolicy] = None
    ) -> str:
        """
        Create a vector store.

        Args:
            name: Store name (defaults to ``config.store_name``)
            expiration: Expiry policy (defaults to ``config.expiration``)

        Returns:
            Store id
        """
        return create_vector_store(
            self.client,
            name if name is not None else self.config.store_name,
            expiration if expiration is not None else self.config.expiration,
        )

    def upload_documents(self, store_id: str, files: Sequence[PathLike]) -> List[str]:
        """
        Upload files into a store; returns one document id per file, in order.

        See ``ragsession.assistants.documents.upload_documents`` for the
        failure semantics.
        """
        poller = self.poller if self.config.wait_for_indexing else None
        document_ids = upload_documents(self.client, store_id, files, poller=poller)

        for path, document_id in zip(files, document_ids):
            self._filenames.remember(document_id, Path(path).name)

        return document_ids

    def list_store_files(self, store_id: str) -> List[str]:
        return list_store_files(self.client, store_id)

    def create_assistant(
        self,
        name: str,
        instructions: str,
        store_ids: Sequence[str],
        model: Optional[str] = None
    ) -> str:
        """
        Create an assistant that can search only the given stores.

        Args:
            name: Assistant name
            instructions: Instruction prompt
            store_ids: Vector stores the file-search tool may read
            model: Model id (defaults to ``config.model``)

        Returns:
            Assistant id

        Raises:
            ValueError: If no store ids are given
            ConfigError: If no model is configured
            RemoteError: If the API call fails
        """
        if not store_ids:
            raise ValueError("at least one vector store id is required")

        model = model or self.config.model
        if not model:
            raise ConfigError("model is required to create an assistant")

        with translate_errors(f"Creating assistant '{name}'"):
            assistant = self.client.beta.assistants.create(
                model=model,
                name=name,
                instructions=instructions,
                tools=[{"type": "file_search"}],
                tool_resources={"file_search": {"vector_store_ids": list(store_ids)}},
            )

        logger.info(f"Created assistant {assistant.id} ({name}) on {model}")
        return assistant.id

    def ask(
        self,
        assistant_id: str,
        question: str,
        cancel_event: Optional[threading.Event] = None,
        on_status: Optional[StatusCallback] = None
    ) -> Answer:
        """
        Ask an assistant one question on a fresh thread.

        Args:
            assistant_id: Assistant to run
            question: Question text, posted verbatim as the user message
            cancel_event: Set by the caller to stop waiting for the run
            on_status: Called with each newly observed run status

        Returns:
            Answer with citations and file-search sources

        Raises:
            RunFailed: If the run ends in a status other than completed
            RunTimeout: If the run does not finish within the poll policy
            PollCancelled: If ``cancel_event`` is set
            RemoteError: If any API call fails
        """
        if not question or not question.strip():
            raise ValueError("question must not be empty")

        with translate_errors("Creating thread"):
            thread = self.client.beta.threads.create()
        logger.info(f"Created thread {thread.id}")

        with translate_errors(f"Posting question to {thread.id}"):
            self.client.beta.threads.messages.create(
                thread_id=thread.id,
                role="user",
                content=question,
            )

        with translate_errors(f"Starting run on {thread.id}"):
            run = self.client.beta.threads.runs.create(
                thread_id=thread.id,
                assistant_id=assistant_id,
                include=[FILE_SEARCH_RESULT_CONTENT],
            )
        logger.info(f"Started run {run.id} on thread {thread.id}")

        run = wait_for_run(
            self.client,
            thread.id,
            run.id,
            self.poller,
            cancel_event=cancel_event,
            on_status=on_status,
        )

        sources = collect_search_results(self.client, thread.id, run.id)
        for source in sources:
            self._filenames.remember(source.file_id, source.file_name)

        pages = MessagePages(self.client, thread.id, run_id=run.id, order="asc")
        answer = build_answer(
            question,
            pages.messages(),
            resolve_filename=self._filenames,
            thread_id=thread.id,
            run_id=run.id,
        )
        answer.sources = sources

        return answer

    def ask_documents(
        self,
        question: str,
        documents: Sequence[PathLike],
        cancel_event: Optional[threading.Event] = None,
        on_status: Optional[StatusCallback] = None,
        on_step: Optional[Callable[[str, str], None]] = None
    ) -> Answer:
        """
        Answer a question from documents, creating every resource needed.

        Creates a store, uploads ``documents``, creates an assistant bound to
        the store, then asks. Nothing is deleted afterwards; the store expires
        per ``config.expiration``.

        Args:
            question: Question to ask
            documents: Local files to search
            cancel_event: Set by the caller to stop waiting for the run
            on_status: Called with each newly observed run status
            on_step: Called as ``on_step(step, resource_id)`` after each
                resource is created

        Returns:
            Answer with citations and file-search sources
        """
        def notify(step: str, resource_id: str) -> None:
            if on_step is not None:
                on_step(step, resource_id)

        store_id = self.create_vector_store()
        notify("vector_store", store_id)

        for document_id in self.upload_documents(store_id, documents):
            notify("document", document_id)

        assistant_id = self.create_assistant(
            self.config.assistant_name,
            self.config.instructions,
            [store_id],
        )
        notify("assistant", assistant_id)

        return self.ask(assistant_id, question, cancel_event=cancel_event, on_status=on_status)
