"""
CLI Main - Typer-based command-line interface.

Usage:
    docuflow transcribe path/to/script.pdf -o transcript.md
    docuflow transcribe path/to/script.pdf --key answers.pdf
    docuflow serve
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from docuflow.domains.transcription import DocumentPayload, PageStatus, PipelineState

app = typer.Typer(
    name="docuflow",
    help="DocuFlow - Page-by-page transcription and answer-script grading",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging before any command runs."""
    from docuflow.config import get_settings

    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def load_document(path: Path) -> DocumentPayload:
    """Read a file into a payload, guessing its media type from the name."""
    media_type, _ = mimetypes.guess_type(path.name)
    return DocumentPayload(
        data=path.read_bytes(),
        media_type=media_type or "application/pdf",
        name=path.name,
    )


@app.command()
def transcribe(
    file_path: Path = typer.Argument(..., help="PDF or image to transcribe"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write transcript to file"),
    key: Path | None = typer.Option(None, "--key", "-k", help="Answer key to grade against"),
    report: Path | None = typer.Option(None, "--report", "-r", help="Write report JSON to file"),
) -> None:
    """Transcribe a document page by page, optionally grading it."""
    for path in (file_path, key):
        if path is not None and not path.exists():
            console.print(f"[red]Error:[/red] File not found: {path}")
            raise typer.Exit(1)

    asyncio.run(_transcribe_async(file_path, output, key, report))


async def _transcribe_async(
    file_path: Path,
    output: Path | None,
    key: Path | None,
    report: Path | None,
) -> None:
    """Async transcription implementation."""
    from docuflow.domains.evaluation import EvaluationStatus
    from docuflow.domains.session import create_session

    session = create_session()
    document = load_document(file_path)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Loading document...", total=None)

        def on_state(state: PipelineState) -> None:
            if not state.total_pages:
                return
            finished = sum(1 for page in state.pages if page.status.is_terminal)
            progress.update(
                task,
                description=f"Page {state.current_page} of {state.total_pages}",
                total=state.total_pages,
                completed=finished,
            )

        unsubscribe = session.pipeline.subscribe(on_state)
        try:
            state = await session.transcribe(document)
        finally:
            unsubscribe()

    if state.error_message:
        console.print(f"[red]Error:[/red] {state.error_message}")
        raise typer.Exit(1)

    console.print(_page_table(state))

    transcript = state.combined_transcript
    if output:
        output.write_text(transcript, encoding="utf-8")
        console.print(f"\n[green]Saved transcript to:[/green] {output}")
    else:
        console.print(Panel(transcript or "[dim]No content[/dim]", title=file_path.name))

    if key is None:
        return

    with console.status("Evaluating against answer key..."):
        evaluation = await session.evaluate(load_document(key))

    if evaluation.status is not EvaluationStatus.SUCCEEDED or evaluation.report is None:
        console.print(f"[red]Evaluation failed:[/red] {evaluation.error_message}")
        raise typer.Exit(1)

    result = evaluation.report
    table = Table(title="Evaluation Report")
    table.add_column("Question", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Student Answer")
    table.add_column("Feedback")
    for item in result.items:
        style = "green" if item.score >= item.max_score else "yellow"
        table.add_row(
            item.question_number,
            f"[{style}]{item.score:g}/{item.max_score:g}[/{style}]",
            item.student_answer,
            item.feedback,
        )
    console.print(table)

    areas = "\n".join(f"  - {area}" for area in result.improvement_areas)
    console.print(
        Panel(
            f"[bold]Total:[/bold] {result.total_score:g}/{result.max_possible_score:g}"
            f" ({result.percentage:.0f}%)\n"
            f"[bold]Summary:[/bold] {result.summary}\n"
            f"[bold]Improvement areas:[/bold]\n{areas or '  (none)'}",
            title="Summary",
        )
    )

    if report:
        report.write_text(json.dumps(result.model_dump(by_alias=True), indent=2))
        console.print(f"\n[green]Saved report to:[/green] {report}")


def _page_table(state: PipelineState) -> Table:
    table = Table(title="Transcription Summary")
    table.add_column("Page", style="cyan", justify="right")
    table.add_column("Status")
    table.add_column("Characters", justify="right")
    for page in state.pages:
        table.add_row(
            str(page.page_number),
            _status_color(page.status),
            str(len(page.content)) if page.status is PageStatus.COMPLETED else "-",
        )
    return table


def _status_color(status: PageStatus) -> str:
    """Color-code a page status."""
    colors = {
        PageStatus.COMPLETED: "[green]completed[/green]",
        PageStatus.ERROR: "[red]error[/red]",
        PageStatus.PROCESSING: "[yellow]processing[/yellow]",
    }
    return colors.get(status, status.value)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from docuflow.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting DocuFlow API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "docuflow.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from docuflow import __version__

    console.print(f"DocuFlow v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
