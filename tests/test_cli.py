"""
Tests for the demo entry point's exit codes.
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from ragsession import __main__ as cli
from ragsession.assistants.base import Answer, Citation, SearchResult
from ragsession.errors import PollCancelled, RemoteError, RunFailed, RunTimeout


@pytest.fixture(autouse=True)
def environment(monkeypatch):
    """Isolate the CLI from the caller's environment and .env files."""
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.delenv("RAGSESSION_CONFIG", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key-123")


@pytest.fixture
def session():
    """Mock session that completes the demo."""
    session = Mock()
    session.config = cli.SessionConfig(api_key="sk-test-key-123", documents=["a.txt", "b.txt"])
    session.chat.return_value = SimpleNamespace(text="This is a test.", total_tokens=17)
    session.create_vector_store.return_value = "vs_1"
    session.upload_documents.return_value = ["file_a", "file_b"]
    session.create_assistant.return_value = "asst_1"
    session.ask.return_value = Answer(
        question="q",
        text="Fact[1].",
        citations=[Citation(index=1, marker="m", file_id="file_a", filename="a.txt")],
        sources=[SearchResult(file_id="file_a", file_name="a.txt", score=0.9)],
    )
    return session


class TestMain:
    """Tests for main()."""

    def test_success(self, session):
        """Test a full demo run exits 0."""
        with patch.object(cli, "RAGSession", return_value=session):
            assert cli.main() == cli.EXIT_OK

        session.upload_documents.assert_called_once_with("vs_1", ["a.txt", "b.txt"])
        session.create_assistant.assert_called_once_with(
            session.config.assistant_name,
            session.config.instructions,
            ["vs_1"],
        )
        assert session.ask.call_args.args == ("asst_1", session.config.question)

    def test_missing_credential(self, monkeypatch):
        """Test a missing credential exits 2 without building a session."""
        monkeypatch.delenv("OPENAI_API_KEY")

        with patch.object(cli, "RAGSession") as mock_session_class:
            assert cli.main() == cli.EXIT_CONFIG_ERROR

        mock_session_class.assert_not_called()

    @pytest.mark.parametrize("contents", [
        "session:\n  documents: []\n",
        "session:\n  question: ''\n",
        "session:\n  poll:\n    interval: '2'\n",
        "- a\n- b\n",
    ])
    def test_invalid_yaml_exits_before_any_call(self, monkeypatch, tmp_path, contents):
        """Test bad YAML settings exit 2 without building a session."""
        config_file = tmp_path / "session.yaml"
        config_file.write_text(contents)
        monkeypatch.setenv("RAGSESSION_CONFIG", str(config_file))

        with patch.object(cli, "RAGSession") as mock_session_class:
            assert cli.main() == cli.EXIT_CONFIG_ERROR

        mock_session_class.assert_not_called()

    @pytest.mark.parametrize("error,exit_code", [
        (RemoteError("HTTP 500", status_code=500, retryable=True), cli.EXIT_REMOTE_ERROR),
        (RunFailed("run_1", "failed"), cli.EXIT_RUN_FAILED),
        (RunTimeout("run_1", "in_progress", 300), cli.EXIT_RUN_TIMEOUT),
        (PollCancelled("cancelled"), cli.EXIT_RUN_TIMEOUT),
        (FileNotFoundError("Document not found: a.txt"), cli.EXIT_CONFIG_ERROR),
    ])
    def test_error_exit_codes(self, session, error, exit_code):
        """Test each error type maps to its exit code."""
        session.ask.side_effect = error

        with patch.object(cli, "RAGSession", return_value=session):
            assert cli.main() == exit_code

    def test_run_exits_with_code(self):
        """Test run() passes main()'s code to sys.exit."""
        with patch.object(cli, "main", return_value=3):
            with pytest.raises(SystemExit) as exc_info:
                cli.run()

        assert exc_info.value.code == 3
