"""Rich console rendering of transcript entries and debate summaries."""

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from triad.models import PHASE_ANSWER, PHASE_NOTE, PHASE_RECAP, DebateResult, TranscriptEntry

console = Console(legacy_windows=False)

_ROLE_STYLES = {"A": "cyan", "B": "magenta", "Mediator": "yellow"}


def _entry_title(entry: TranscriptEntry) -> str:
    label = f"Agent {entry.role}" if entry.role in ("A", "B") else entry.role
    return f"Round {entry.round} · {label} · {entry.phase}"


def _citation_line(entry: TranscriptEntry) -> str | None:
    if not entry.citations:
        return None
    sources = ", ".join(f"{c.filename}#{c.chunk}" for c in entry.citations[:3])
    more = f" (+{len(entry.citations) - 3} more)" if len(entry.citations) > 3 else ""
    return escape(f"Citations: {len(entry.citations)} — {sources}{more}")


def print_entry(entry: TranscriptEntry) -> None:
    """Print one transcript entry as a panel."""
    style = _ROLE_STYLES.get(entry.role, "white")
    body = entry.text.strip() or "[dim](empty response)[/dim]"
    console.print(
        Panel(
            Markdown(body) if entry.text.strip() else body,
            title=f"[bold {style}]{_entry_title(entry)}[/bold {style}]",
            subtitle=_citation_line(entry),
            border_style=style,
        )
    )


def print_summary(result: DebateResult) -> None:
    """Print answers and moderator notes/recaps, skipping prompt-only entries."""
    console.print(Rule(f"[bold green]Debate Complete[/bold green] — {result.mode}"))
    console.print(Text(f"Topic: {result.topic}", style="bold"))
    console.print(Text(f"Total transcript entries: {len(result.transcript)}", style="dim"))
    for entry in result.transcript:
        if entry.phase in (PHASE_ANSWER, PHASE_NOTE, PHASE_RECAP):
            print_entry(entry)
