"""
Reading answers back from a thread.

Messages are listed page by page. ``MessagePages`` is a lazy, finite view of
that listing: nothing is fetched until it is iterated, iteration stops when
the provider reports no further page, and iterating again starts over from
the first page.
"""

import logging
from typing import Dict, Iterator, List, Optional

from ..client import translate_errors
from ..errors import RemoteError
from .base import (
    Answer,
    Citation,
    FILE_SEARCH_RESULT_CONTENT,
    SearchResult,
)

logger = logging.getLogger(__name__)


class MessagePages:
    """
    Restartable iterable over the pages of a thread's message listing.

    Args:
        client: OpenAI client
        thread_id: Thread to read
        run_id: Only list messages created by this run
        order: ``"asc"`` (oldest first) or ``"desc"``
        page_size: Messages per page (provider default when None)
    """

    def __init__(
        self,
        client,
        thread_id: str,
        run_id: Optional[str] = None,
        order: str = "asc",
        page_size: Optional[int] = None
    ):
        if order not in ("asc", "desc"):
            raise ValueError("order must be 'asc' or 'desc'")

        self._client = client
        self.thread_id = thread_id
        self.run_id = run_id
        self.order = order
        self.page_size = page_size

    def _first_page(self):
        params = {"thread_id": self.thread_id, "order": self.order}
        if self.run_id is not None:
            params["run_id"] = self.run_id
        if self.page_size is not None:
            params["limit"] = self.page_size

        with translate_errors(f"Listing messages of {self.thread_id}"):
            return self._client.beta.threads.messages.list(**params)

    def __iter__(self) -> Iterator:
        page = self._first_page()
        page_number = 1

        while page is not None:
            logger.debug(f"Message page {page_number}: {len(page.data)} messages")
            yield page

            if not page.has_next_page():
                return

            with translate_errors(f"Listing messages of {self.thread_id}"):
                page = page.get_next_page()
            page_number += 1

    def messages(self) -> Iterator:
        """Yield messages across all pages."""
        for page in self:
            yield from page.data


class FilenameResolver:
    """
    Looks up document filenames by id, once per id.

    A failed lookup resolves to None; citations keep their file id.
    """

    def __init__(self, client):
        self._client = client
        self._cache: Dict[str, Optional[str]] = {}

    def __call__(self, file_id: str) -> Optional[str]:
        if file_id not in self._cache:
            try:
                with translate_errors(f"Reading file {file_id}"):
                    self._cache[file_id] = self._client.files.retrieve(file_id).filename
            except RemoteError as e:
                logger.warning(f"Could not resolve filename for {file_id}: {e}")
                self._cache[file_id] = None
        return self._cache[file_id]

    def remember(self, file_id: str, filename: Optional[str]) -> None:
        if filename and file_id not in self._cache:
            self._cache[file_id] = filename


def build_answer(
    question: str,
    messages,
    resolve_filename: Optional[FilenameResolver] = None,
    thread_id: Optional[str] = None,
    run_id: Optional[str] = None
) -> Answer:
    """
    Assemble an Answer from assistant messages.

    Text blocks are joined with blank lines. Each ``file_citation``
    annotation's placeholder is replaced with a ``[n]`` marker; a document
    cited more than once keeps the number it got first.

    Args:
        question: Question the messages answer
        messages: Thread messages (user messages are skipped)
        resolve_filename: Maps document ids to filenames
        thread_id: Thread the messages belong to
        run_id: Run that produced the messages

    Returns:
        Answer with rendered text and citations
    """
    parts = []
    citations: List[Citation] = []
    numbers: Dict[str, int] = {}
    message_ids = []

    for message in messages:
        if message.role != "assistant":
            continue
        message_ids.append(message.id)

        for block in message.content:
            if block.type != "text":
                logger.debug(f"Skipping {block.type} content in {message.id}")
                continue

            value = block.text.value
            for annotation in block.text.annotations or []:
                if annotation.type != "file_citation":
                    continue

                file_id = annotation.file_citation.file_id
                if file_id not in numbers:
                    numbers[file_id] = len(numbers) + 1
                    citations.append(Citation(
                        index=numbers[file_id],
                        marker=annotation.text,
                        file_id=file_id,
                        filename=resolve_filename(file_id) if resolve_filename is not None else None,
                        quote=getattr(annotation.file_citation, "quote", None),
                    ))

                if annotation.text:
                    value = value.replace(annotation.text, f"[{numbers[file_id]}]")

            parts.append(value)

    if not message_ids:
        logger.warning(f"No assistant messages found for run {run_id}")

    return Answer(
        question=question,
        text="\n\n".join(parts),
        citations=citations,
        thread_id=thread_id,
        run_id=run_id,
        message_ids=message_ids,
    )


def collect_search_results(client, thread_id: str, run_id: str) -> List[SearchResult]:
    """
    Read the file-search results recorded in a run's steps.

    Args:
        client: OpenAI client
        thread_id: Thread the run belongs to
        run_id: Completed run

    Returns:
        Retrieved chunks, highest score first
    """
    with translate_errors(f"Listing steps of {run_id}"):
        page = client.beta.threads.runs.steps.list(
            run_id=run_id,
            thread_id=thread_id,
            include=[FILE_SEARCH_RESULT_CONTENT],
        )

    results = []
    while page is not None:
        for step in page.data:
            details = step.step_details
            if details.type != "tool_calls":
                continue

            for tool_call in details.tool_calls:
                if tool_call.type != "file_search":
                    continue
                for result in tool_call.file_search.results or []:
                    content = "\n".join(
                        item.text for item in (result.content or []) if item.text
                    )
                    results.append(SearchResult(
                        file_id=result.file_id,
                        file_name=result.file_name,
                        score=result.score,
                        content=content,
                    ))

        if not page.has_next_page():
            break
        with translate_errors(f"Listing steps of {run_id}"):
            page = page.get_next_page()

    results.sort(key=lambda result: result.score, reverse=True)
    return results
