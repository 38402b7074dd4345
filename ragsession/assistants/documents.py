"""
Vector stores and the documents uploaded into them.

Uploads are append-only and non-transactional: documents are uploaded and
attached one at a time in input order, and the first failure is raised
without removing the documents that were already attached.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from ..client import translate_errors
from ..config import ExpirationPolicy
from ..errors import RemoteError
from .base import DOCUMENT_PURPOSE, FILE_PENDING_STATUSES
from .polling import StatusPoller

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_vector_store(
    client,
    name: str,
    expiration: Optional[ExpirationPolicy] = None
) -> str:
    """
    Create an empty vector store.

    Args:
        client: OpenAI client
        name: Store name (must not be empty)
        expiration: When the provider may discard the store

    Returns:
        Id of the new store

    Raises:
        ValueError: If the name is empty
        ConfigError: If the expiration policy is invalid
        RemoteError: If the API call fails
    """
    if not name or not name.strip():
        raise ValueError("vector store name must not be empty")

    params = {"name": name}
    if expiration is not None:
        expiration.validate()
        params["expires_after"] = expiration.to_param()

    with translate_errors(f"Creating vector store '{name}'"):
        vector_store = client.vector_stores.create(**params)

    logger.info(f"Created vector store {vector_store.id} ({name})")
    return vector_store.id


def upload_documents(
    client,
    store_id: str,
    files: Sequence[PathLike],
    poller: Optional[StatusPoller] = None
) -> List[str]:
    """
    Upload local files and attach them to a vector store.

    Each file is opened only for the duration of its upload. When a poller
    is given, each attached file is polled until the store has indexed it.

    Args:
        client: OpenAI client
        store_id: Vector store to attach documents to
        files: Local paths, uploaded in this order
        poller: Waits for indexing after each attach when given

    Returns:
        Document ids, one per input file, in input order

    Raises:
        ValueError: If no files are given
        FileNotFoundError: If a path does not exist
        RemoteError: If an upload, attach or indexing step fails
        RunTimeout: If indexing takes longer than the poll policy allows
    """
    if not files:
        raise ValueError("at least one document is required")

    document_ids = []
    for path in files:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Document not found: {path}")

        with open(path, "rb") as f:
            with translate_errors(f"Uploading {path.name}"):
                uploaded = client.files.create(file=f, purpose=DOCUMENT_PURPOSE)

        logger.info(f"Uploaded {path.name} as {uploaded.id}")

        with translate_errors(f"Attaching {uploaded.id} to {store_id}"):
            client.vector_stores.files.create(vector_store_id=store_id, file_id=uploaded.id)

        if poller is not None:
            wait_for_indexing(client, store_id, uploaded.id, poller)

        document_ids.append(uploaded.id)

    return document_ids


def wait_for_indexing(client, store_id: str, file_id: str, poller: StatusPoller):
    """Poll a store file until the provider has finished indexing it."""

    def fetch():
        with translate_errors(f"Reading status of {file_id}"):
            return client.vector_stores.files.retrieve(file_id=file_id, vector_store_id=store_id)

    def failure(store_file) -> Exception:
        last_error = getattr(store_file, "last_error", None)
        detail = f": {last_error.message}" if last_error is not None else ""
        return RemoteError(f"Indexing {file_id} ended with status '{store_file.status}'{detail}")

    return poller.wait(
        fetch,
        object_id=file_id,
        success={"completed"},
        pending=FILE_PENDING_STATUSES,
        on_failure=failure,
    )


def iter_store_files(client, store_id: str) -> Iterator:
    """Yield every file attached to a store, following pagination."""
    with translate_errors(f"Listing files of {store_id}"):
        page = client.vector_stores.files.list(vector_store_id=store_id)

    while page is not None:
        yield from page.data
        if not page.has_next_page():
            break
        with translate_errors(f"Listing files of {store_id}"):
            page = page.get_next_page()


def list_store_files(client, store_id: str) -> List[str]:
    """
    List the ids of all documents attached to a store.

    Args:
        client: OpenAI client
        store_id: Vector store to list

    Returns:
        Document ids across all pages
    """
    return [store_file.id for store_file in iter_store_files(client, store_id)]
