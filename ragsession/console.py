"""
Console output for the RAG session demo.

Step panels, tables and answer rendering for the demo, on a rich Console.
"""

from contextlib import contextmanager
from typing import Any, Dict, List

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .assistants import Answer, SearchResult
from .assistants.base import RUN_FAILURE_STATUSES, RunStatus


class SessionConsole:
    """Wrapper around rich.Console for the demo's step-by-step output."""

    STEP_COLORS = {
        1: "cyan",      # Chat completion
        2: "green",     # Vector store + documents
        3: "yellow",    # Assistant
        4: "magenta",   # Question
    }

    SUCCESS_STYLE = "green"
    FAILURE_STYLE = "red"

    MESSAGE_STYLES = {
        "info": "cyan",
        "success": "bold green",
        "warning": "yellow",
        "error": "bold red",
    }

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def step_header(self, step_num: int, title: str, description: str):
        """Display a prominent step header."""
        color = self.STEP_COLORS.get(step_num, "white")
        self.console.print()
        self.console.print(Panel(
            f"[bold {color}]Step {step_num}: {title}[/bold {color}]\n\n"
            f"[dim]{description}[/dim]",
            border_style=color,
            padding=(1, 2)
        ))
        self.console.print()

    def summary_table(self, title: str, rows: Dict[str, Any]):
        """Two-column table of resource attributes."""
        table = Table(title=title, header_style="bold")
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="green")
        for name, value in rows.items():
            table.add_row(name, str(value))
        self.console.print(table, "")

    def _say(self, kind: str, message: str):
        style = self.MESSAGE_STYLES[kind]
        self.console.print(message, style=style, markup=False)

    def info(self, message: str):
        self._say("info", message)

    def success(self, message: str):
        self._say("success", message)

    def warning(self, message: str):
        self._say("warning", message)

    def error(self, message: str):
        self._say("error", message)

    def key_value(self, label: str, value: Any):
        """Indented ``label: value`` line."""
        self.console.print(f"  [cyan]{escape(str(label))}:[/cyan] {escape(str(value))}")

    @contextmanager
    def spinner(self, activity: str):
        """Show a spinner while the block runs."""
        with self.console.status(f"[bold green]{escape(activity)}…"):
            yield

    def question(self, text: str):
        self.console.print(f"\n[bold yellow]Question:[/bold yellow] {escape(text)}\n")

    def run_status(self, status: str):
        """Print a run status transition."""
        if status == RunStatus.COMPLETED.value:
            style = self.SUCCESS_STYLE
        elif status in RUN_FAILURE_STATUSES:
            style = self.FAILURE_STYLE
        else:
            style = "dim"
        self.console.print(f"  [dim]run status:[/dim] [{style}]{escape(status)}[/{style}]")

    def display_answer(self, answer: Answer):
        """Display the answer with its citation footnotes."""
        self.console.print(
            Panel(
                Markdown(answer.text or "_No answer returned._"),
                title="[bold green]Assistant's Answer[/bold green]",
                border_style="green",
            )
        )

        if answer.citations:
            self.console.print("\n[bold]Citations:[/bold]")
            for citation in answer.citations:
                self.console.print(
                    f"  [{citation.index}] [cyan]{escape(citation.label)}[/cyan] "
                    f"[dim]({escape(citation.file_id)})[/dim]"
                )
        self.console.print()

    def display_sources(self, sources: List[SearchResult]):
        """Display the file-search results the run retrieved."""
        if not sources:
            return

        self.console.print("[bold]Retrieved Sources:[/bold]")
        for i, source in enumerate(sources, 1):
            name = escape(source.file_name or source.file_id)
            self.console.print(f"  {i}. [cyan]{name}[/cyan] (relevance: {source.score:.3f})")
        self.console.print()
