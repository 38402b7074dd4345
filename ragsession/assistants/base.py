"""
Value types for the assistant-based RAG flow.

Remote objects (vector stores, assistants, threads, runs) are held only as
string ids; the types here describe what the session reads back from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# Purpose tag for files that assistants may search
DOCUMENT_PURPOSE = "assistants"

# Asks the provider to attach retrieved chunk text to run-step details
FILE_SEARCH_RESULT_CONTENT = "step_details.tool_calls[*].file_search.results[*].content"


class RunStatus(Enum):
    """Statuses a run moves through."""
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"


RUN_PENDING_STATUSES = frozenset({
    RunStatus.QUEUED.value,
    RunStatus.IN_PROGRESS.value,
    RunStatus.CANCELLING.value,
})

# requires_action is terminal here: session assistants have no function tools
RUN_FAILURE_STATUSES = frozenset({
    RunStatus.REQUIRES_ACTION.value,
    RunStatus.CANCELLED.value,
    RunStatus.FAILED.value,
    RunStatus.INCOMPLETE.value,
    RunStatus.EXPIRED.value,
})

FILE_PENDING_STATUSES = frozenset({"in_progress"})


@dataclass
class Citation:
    """
    A file citation attached to a span of the answer.

    Attributes:
        index: 1-based footnote number
        marker: Placeholder text the provider put in the answer
        file_id: Id of the cited document
        filename: Name of the cited document, when it could be resolved
        quote: Quoted text, when the provider supplies one
    """
    index: int
    marker: str
    file_id: str
    filename: Optional[str] = None
    quote: Optional[str] = None

    @property
    def label(self) -> str:
        return self.filename or self.file_id


@dataclass
class SearchResult:
    """A chunk the file-search tool retrieved while answering."""
    file_id: str
    file_name: Optional[str]
    score: float
    content: str = ""


@dataclass
class Answer:
    """
    The assistant's answer to one question.

    Attributes:
        question: Question as asked
        text: Answer text with citation markers replaced by ``[n]``
        citations: Citations in footnote order
        sources: File-search results from the run steps
        thread_id: Thread the question was asked on
        run_id: Run that produced the answer
        message_ids: Assistant messages the text was assembled from
    """
    question: str
    text: str
    citations: List[Citation] = field(default_factory=list)
    sources: List[SearchResult] = field(default_factory=list)
    thread_id: Optional[str] = None
    run_id: Optional[str] = None
    message_ids: List[str] = field(default_factory=list)

    @property
    def cited_file_ids(self) -> List[str]:
        """Distinct cited document ids, in first-citation order."""
        seen = []
        for citation in self.citations:
            if citation.file_id not in seen:
                seen.append(citation.file_id)
        return seen

    def render(self) -> str:
        """Answer text followed by a footnote line per citation."""
        if not self.citations:
            return self.text

        footnotes = "\n".join(
            f"[{citation.index}] {citation.label}" for citation in self.citations
        )
        return f"{self.text}\n\n{footnotes}"
