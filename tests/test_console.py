"""
Tests for the demo's rich console output.
"""

import pytest
from rich.console import Console

from ragsession.assistants.base import Answer, Citation, SearchResult
from ragsession.console import SessionConsole


@pytest.fixture
def console():
    """SessionConsole writing to a recording rich console."""
    return SessionConsole(Console(record=True, width=100, force_terminal=False))


def output(console):
    return console.console.export_text()


class TestDisplayAnswer:
    """Tests for answer rendering."""

    def test_answer_with_citations(self, console):
        """Test the answer text and one line per citation."""
        answer = Answer(
            question="q",
            text="Ingrid Solberg[1] sailed to Longyearbyen[2].",
            citations=[
                Citation(index=1, marker="m1", file_id="file_crew", filename="crew_manifest.txt"),
                Citation(index=2, marker="m2", file_id="file_voyage"),
            ],
        )

        console.display_answer(answer)
        text = output(console)

        assert "Ingrid Solberg[1] sailed to Longyearbyen[2]." in text
        assert "[1] crew_manifest.txt (file_crew)" in text
        assert "[2] file_voyage (file_voyage)" in text

    def test_empty_answer(self, console):
        """Test a placeholder is shown when no text came back."""
        console.display_answer(Answer(question="q", text=""))

        assert "No answer returned." in output(console)


class TestDisplaySources:
    """Tests for file-search source rendering."""

    def test_sources_listed_in_order(self, console):
        """Test each source is numbered with its score."""
        console.display_sources([
            SearchResult(file_id="file_b", file_name="b.txt", score=0.87),
            SearchResult(file_id="file_a", file_name=None, score=0.41),
        ])
        text = output(console)

        assert "1. b.txt (relevance: 0.870)" in text
        assert "2. file_a (relevance: 0.410)" in text

    def test_no_sources(self, console):
        """Test nothing is printed without sources."""
        console.display_sources([])

        assert output(console) == ""


class TestRunStatus:
    """Tests for run status lines."""

    @pytest.mark.parametrize("status", ["queued", "completed", "failed", "requires_action"])
    def test_status_line(self, console, status):
        """Test every status is printed."""
        console.run_status(status)

        assert f"run status: {status}" in output(console)


class TestMessages:
    """Tests for plain message lines."""

    def test_error_text_is_not_markup(self, console):
        """Test brackets in error text are printed literally."""
        console.error("Run run_1 ended with status 'failed': [server_error]")

        assert "[server_error]" in output(console)

    def test_key_value(self, console):
        """Test a label and its value on one line."""
        console.key_value("data/documents/crew_manifest.txt", "file_crew")

        assert "data/documents/crew_manifest.txt: file_crew" in output(console)


class TestBracketedNames:
    """Tests for names that look like rich markup."""

    def test_citation_filename_with_closing_tag(self, console):
        """Test a filename containing a closing tag is printed as is."""
        answer = Answer(
            question="q",
            text="Figures[1].",
            citations=[Citation(index=1, marker="m", file_id="file_r", filename="report[/bold].txt")],
        )

        console.display_answer(answer)

        assert "[1] report[/bold].txt (file_r)" in output(console)

    def test_citation_filename_with_style_tag(self, console):
        """Test a filename containing a style tag keeps its text."""
        answer = Answer(
            question="q",
            text="Figures[1].",
            citations=[Citation(index=1, marker="m", file_id="file_r", filename="[red]notes.txt")],
        )

        console.display_answer(answer)

        assert "[1] [red]notes.txt (file_r)" in output(console)

    def test_source_name_with_brackets(self, console):
        """Test a source name containing brackets is printed as is."""
        console.display_sources([
            SearchResult(file_id="file_r", file_name="q3[/dim]summary.txt", score=0.5),
        ])

        assert "1. q3[/dim]summary.txt (relevance: 0.500)" in output(console)

    def test_status_with_brackets(self, console):
        """Test an unexpected status string is printed as is."""
        console.run_status("[/]odd")

        assert "run status: [/]odd" in output(console)
