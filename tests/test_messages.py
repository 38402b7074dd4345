"""
Unit tests for message pagination and answer assembly.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import httpx
import openai
import pytest

from ragsession.assistants.base import Answer, Citation, FILE_SEARCH_RESULT_CONTENT
from ragsession.assistants.messages import (
    FilenameResolver,
    MessagePages,
    build_answer,
    collect_search_results,
)


def make_page(items, next_page=None):
    """Fake cursor page."""
    page = Mock()
    page.data = items
    page.has_next_page.return_value = next_page is not None
    page.get_next_page.return_value = next_page
    return page


def citation(marker, file_id):
    return SimpleNamespace(
        type="file_citation",
        text=marker,
        file_citation=SimpleNamespace(file_id=file_id),
    )


def text_block(value, annotations=()):
    return SimpleNamespace(
        type="text",
        text=SimpleNamespace(value=value, annotations=list(annotations)),
    )


def message(message_id, role, *blocks):
    return SimpleNamespace(id=message_id, role=role, content=list(blocks))


class TestMessagePages:
    """Tests for lazy, restartable message pages."""

    def test_lazy(self):
        """Test that nothing is fetched until iteration."""
        client = Mock()

        MessagePages(client, "thread_1", run_id="run_1")

        client.beta.threads.messages.list.assert_not_called()

    def test_drains_all_pages(self):
        """Test iteration follows pages until there are no more."""
        third = make_page([message("msg_3", "assistant")])
        second = make_page([message("msg_2", "assistant")], next_page=third)
        first = make_page([message("msg_1", "assistant")], next_page=second)
        client = Mock()
        client.beta.threads.messages.list.return_value = first

        pages = MessagePages(client, "thread_1", run_id="run_1", page_size=1)
        ids = [m.id for m in pages.messages()]

        assert ids == ["msg_1", "msg_2", "msg_3"]
        client.beta.threads.messages.list.assert_called_once_with(
            thread_id="thread_1", order="asc", run_id="run_1", limit=1
        )
        third.get_next_page.assert_not_called()

    def test_restartable(self):
        """Test iterating twice starts from the first page each time."""
        client = Mock()
        client.beta.threads.messages.list.side_effect = lambda **kwargs: make_page(
            [message("msg_1", "assistant")]
        )

        pages = MessagePages(client, "thread_1")

        assert len(list(pages)) == 1
        assert len(list(pages)) == 1
        assert client.beta.threads.messages.list.call_count == 2

    def test_invalid_order(self):
        """Test that only asc and desc are accepted."""
        with pytest.raises(ValueError, match="order must be"):
            MessagePages(Mock(), "thread_1", order="newest")


class TestBuildAnswer:
    """Tests for assembling answers with citations."""

    def test_citations_from_two_documents(self):
        """Test an answer citing two documents."""
        messages = [
            message("msg_0", "user", text_block("Who was in command?")),
            message(
                "msg_1",
                "assistant",
                text_block(
                    "Captain Ingrid Solberg【4:0†crew_manifest.txt】 took the Halcyon "
                    "to Longyearbyen【4:1†voyage_log.txt】.",
                    [
                        citation("【4:0†crew_manifest.txt】", "file_crew"),
                        citation("【4:1†voyage_log.txt】", "file_voyage"),
                    ],
                ),
            ),
        ]
        names = {"file_crew": "crew_manifest.txt", "file_voyage": "voyage_log.txt"}

        answer = build_answer(
            "Who was in command?",
            messages,
            resolve_filename=names.get,
            thread_id="thread_1",
            run_id="run_1",
        )

        assert answer.text == (
            "Captain Ingrid Solberg[1] took the Halcyon to Longyearbyen[2]."
        )
        assert answer.cited_file_ids == ["file_crew", "file_voyage"]
        assert [c.filename for c in answer.citations] == [
            "crew_manifest.txt", "voyage_log.txt",
        ]
        assert answer.message_ids == ["msg_1"]
        assert answer.run_id == "run_1"

    def test_repeated_citation_keeps_number(self):
        """Test a document cited twice gets a single footnote."""
        messages = [message(
            "msg_1",
            "assistant",
            text_block(
                "A【1:0†a.txt】 and B【1:1†a.txt】.",
                [citation("【1:0†a.txt】", "file_a"), citation("【1:1†a.txt】", "file_a")],
            ),
        )]

        answer = build_answer("q", messages)

        assert answer.text == "A[1] and B[1]."
        assert len(answer.citations) == 1
        assert answer.citations[0].filename is None
        assert answer.citations[0].label == "file_a"

    def test_skips_non_text_blocks(self):
        """Test image blocks are ignored and text blocks joined."""
        messages = [message(
            "msg_1",
            "assistant",
            text_block("First part."),
            SimpleNamespace(type="image_file"),
            text_block("Second part."),
        )]

        answer = build_answer("q", messages)

        assert answer.text == "First part.\n\nSecond part."
        assert answer.citations == []

    def test_no_assistant_messages(self):
        """Test an empty answer when the run produced no messages."""
        answer = build_answer("q", [], run_id="run_1")

        assert answer.text == ""
        assert answer.message_ids == []


class TestAnswer:
    """Tests for the Answer value type."""

    def test_render_with_footnotes(self):
        """Test rendering text followed by footnotes."""
        answer = Answer(
            question="q",
            text="Fact[1]. Other fact[2].",
            citations=[
                Citation(index=1, marker="m1", file_id="file_a", filename="a.txt"),
                Citation(index=2, marker="m2", file_id="file_b"),
            ],
        )

        assert answer.render() == "Fact[1]. Other fact[2].\n\n[1] a.txt\n[2] file_b"

    def test_render_without_citations(self):
        """Test rendering an answer that cites nothing."""
        assert Answer(question="q", text="No idea.").render() == "No idea."


class TestFilenameResolver:
    """Tests for filename lookups."""

    def test_resolves_once(self):
        """Test each id is fetched once."""
        client = Mock()
        client.files.retrieve.return_value = SimpleNamespace(filename="a.txt")
        resolve = FilenameResolver(client)

        assert resolve("file_a") == "a.txt"
        assert resolve("file_a") == "a.txt"
        client.files.retrieve.assert_called_once_with("file_a")

    def test_remembered_names_skip_lookup(self):
        """Test names recorded at upload time are used directly."""
        client = Mock()
        resolve = FilenameResolver(client)
        resolve.remember("file_a", "a.txt")

        assert resolve("file_a") == "a.txt"
        client.files.retrieve.assert_not_called()

    def test_failed_lookup_resolves_to_none(self):
        """Test a deleted file leaves the filename unknown."""
        client = Mock()
        request = httpx.Request("GET", "https://api.openai.com/v1/files/file_gone")
        client.files.retrieve.side_effect = openai.NotFoundError(
            message="No such File object",
            response=httpx.Response(404, request=request),
            body=None
        )
        resolve = FilenameResolver(client)

        assert resolve("file_gone") is None
        assert resolve("file_gone") is None
        client.files.retrieve.assert_called_once_with("file_gone")


class TestCollectSearchResults:
    """Tests for reading file-search results from run steps."""

    def test_collects_results(self):
        """Test results are gathered across steps and sorted by score."""
        search_call = SimpleNamespace(
            type="file_search",
            file_search=SimpleNamespace(results=[
                SimpleNamespace(
                    file_id="file_a", file_name="a.txt", score=0.41,
                    content=[SimpleNamespace(type="text", text="alpha chunk")],
                ),
                SimpleNamespace(
                    file_id="file_b", file_name="b.txt", score=0.87,
                    content=[SimpleNamespace(type="text", text="beta chunk")],
                ),
            ]),
        )
        steps = [
            SimpleNamespace(step_details=SimpleNamespace(
                type="message_creation", message_creation=None,
            )),
            SimpleNamespace(step_details=SimpleNamespace(
                type="tool_calls", tool_calls=[search_call],
            )),
        ]
        client = Mock()
        client.beta.threads.runs.steps.list.return_value = make_page(steps)

        results = collect_search_results(client, "thread_1", "run_1")

        assert [r.file_name for r in results] == ["b.txt", "a.txt"]
        assert results[0].content == "beta chunk"
        client.beta.threads.runs.steps.list.assert_called_once_with(
            run_id="run_1",
            thread_id="thread_1",
            include=[FILE_SEARCH_RESULT_CONTENT],
        )

    def test_no_results(self):
        """Test a run that never searched."""
        client = Mock()
        client.beta.threads.runs.steps.list.return_value = make_page([])

        assert collect_search_results(client, "thread_1", "run_1") == []
