"""Click CLI — loads config, builds agent clients, runs a debate and prints it."""

import asyncio
import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, ConfigError, effective_rounds, load_config
from triad.debate import DebateOrchestrator
from triad.healthcheck import run_health_checks
from triad.models import DebateResult, TranscriptEntry
from triad.output import print_entry, print_summary
from triad.providers.base import AIProvider, ProviderError
from triad.providers.openai_compatible import build_providers

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _check_agents(providers: dict[str, AIProvider]) -> bool:
    """Ping every agent and print one line each. Returns True when all pass."""
    console.print("\n[bold]Checking agents...[/bold]")
    results = asyncio.run(run_health_checks(providers))
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {escape(short_err)}")
    return all(ok for ok, _ in results.values())


async def _run(
    topic: str,
    config: AppConfig,
    providers: dict[str, AIProvider],
    rounds: int,
    stream: bool,
) -> DebateResult:
    orchestrator = DebateOrchestrator(config, providers, mode="streaming" if stream else "batch")

    if stream:
        return await orchestrator.run(topic, num_rounds=rounds, on_entry=print_entry)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Running debate rounds...", total=None)

        def on_entry(entry: TranscriptEntry) -> None:
            progress.update(task, description=f"Round {entry.round}: {entry.role} ({entry.phase}) done")

        return await orchestrator.run(topic, num_rounds=rounds, on_entry=on_entry)


@click.command()
@click.argument("topic", nargs=-1)
@click.option("--rounds", default=None, type=click.IntRange(min=1), help="Number of debate rounds (default: from config)")
@click.option("--stream", is_flag=True, help="Staged, paced debate with entries printed as they arrive")
@click.option("--check", "check_only", is_flag=True, help="Ping all three agents and exit")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    topic: tuple[str, ...],
    rounds: int | None,
    stream: bool,
    check_only: bool,
    verbose: bool,
) -> None:
    """Triad Debate -- two knowledge agents argue, a mediator moderates.

    \b
    Examples:
      triad-debate "Is Raskolnikov redeemed?"
      triad-debate Is freedom a burden --rounds 2
      triad-debate "Is X true?" --stream
      triad-debate --check
    """
    load_dotenv()
    setup_logging(verbose)

    try:
        config = load_config()
        providers = build_providers(config)
    except (FileNotFoundError, ConfigError, ProviderError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    if check_only:
        sys.exit(0 if _check_agents(providers) else 1)

    topic_text = " ".join(topic).strip() or config.defaults.topic
    if not topic_text:
        console.print("[bold red]Error:[/bold red] Provide a TOPIC argument.")
        sys.exit(1)

    num_rounds = effective_rounds(config, rounds)
    mode_label = "streaming" if stream else "batch"
    console.print(f"\n[bold cyan]Triad Debate[/bold cyan] — {num_rounds} rounds \\[{mode_label}]")
    console.print(f"Topic: [italic]{escape(topic_text)}[/italic]\n")

    try:
        result = asyncio.run(_run(topic_text, config, providers, num_rounds, stream))
    except Exception as exc:
        logger.debug("Debate failed", exc_info=True)
        console.print(f"\n[bold red]Fatal error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    if stream:
        console.print(f"\n[dim]Debate complete: {len(result.transcript)} transcript entries[/dim]")
    else:
        print_summary(result)


if __name__ == "__main__":
    main()
