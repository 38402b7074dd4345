"""
Demo entry point.

Run with: python -m ragsession

Sends one chat completion, then answers the configured question from the
configured documents through a vector store, an assistant and a run.
Exit codes: 0 success, 1 remote error, 2 configuration error,
3 run failed, 4 run timed out or cancelled.
"""

import logging
import sys

from dotenv import load_dotenv

from .assistants import RAGSession
from .config import SessionConfig
from .console import SessionConsole
from .errors import (
    ConfigError,
    PollCancelled,
    RemoteError,
    RunFailed,
    RunTimeout,
)

logger = logging.getLogger("ragsession")

EXIT_OK = 0
EXIT_REMOTE_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_RUN_FAILED = 3
EXIT_RUN_TIMEOUT = 4

CHAT_PROMPT = "Say this is a test"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_demo(session: RAGSession, console: SessionConsole) -> None:
    """Walk through the chat completion and the RAG flow."""
    config = session.config

    console.step_header(
        1,
        "Chat Completion",
        "A single chat completion, no retrieval involved.",
    )
    with console.spinner("Waiting for completion"):
        result = session.chat(CHAT_PROMPT)
    console.key_value("Prompt", CHAT_PROMPT)
    console.key_value("Reply", result.text)
    console.key_value("Tokens", result.total_tokens)

    console.step_header(
        2,
        "Vector Store",
        "Create a vector store and upload the documents the assistant may search.",
    )
    with console.spinner("Creating vector store"):
        store_id = session.create_vector_store()
    console.key_value("Vector store", store_id)

    with console.spinner("Uploading documents"):
        document_ids = session.upload_documents(store_id, config.documents)
    for path, document_id in zip(config.documents, document_ids):
        console.key_value(path, document_id)
    console.info(f"{len(document_ids)} documents attached to {store_id}")

    console.step_header(
        3,
        "Assistant",
        "Create an assistant whose file-search tool is scoped to the new store.",
    )
    assistant_id = session.create_assistant(
        config.assistant_name,
        config.instructions,
        [store_id],
    )
    console.summary_table("Assistant", {
        "id": assistant_id,
        "name": config.assistant_name,
        "model": config.model,
    })

    console.step_header(
        4,
        "Question",
        "Ask on a new thread and poll the run until it finishes.",
    )
    console.question(config.question)
    answer = session.ask(assistant_id, config.question, on_status=console.run_status)

    console.display_answer(answer)
    console.display_sources(answer.sources)
    if not answer.citations:
        console.warning("The answer does not cite any document.")
    console.success("Done.")


def main() -> int:
    """Run the demo and return a process exit code."""
    load_dotenv()
    console = SessionConsole()

    try:
        config = SessionConfig.load()
    except ConfigError as e:
        configure_logging("WARNING")
        console.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    configure_logging(config.log_level)

    try:
        session = RAGSession(config)
        run_demo(session, console)
    except ConfigError as e:
        console.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR
    except RunFailed as e:
        logger.error(f"Run failed: {e}")
        console.error(str(e))
        return EXIT_RUN_FAILED
    except (RunTimeout, PollCancelled) as e:
        logger.error(f"Stopped waiting: {e}")
        console.error(str(e))
        return EXIT_RUN_TIMEOUT
    except RemoteError as e:
        hint = " (retryable)" if e.retryable else ""
        logger.error(f"Provider error{hint}: {e}")
        console.error(f"{e}{hint}")
        return EXIT_REMOTE_ERROR
    except FileNotFoundError as e:
        console.error(str(e))
        return EXIT_CONFIG_ERROR

    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
