"""subai translate command — translate a subtitle file."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from subai.core.config import load_config
from subai.core.events import ProgressEvent, ProgressStage
from subai.subtitles.converter import SUPPORTED_FORMATS
from subai.utils.console import console


def _make_progress() -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    )


def translate(
    subtitle_file: Annotated[
        Path,
        typer.Argument(help="Path to subtitle file (SRT, VTT, ASS, TXT)."),
    ],
    to: Annotated[
        Optional[str],
        typer.Option("--to", "-t", help="Target language code (run 'subai languages' to list)."),
    ] = None,
    source: Annotated[
        Optional[str],
        typer.Option("--from", "-s", help="Source language code."),
    ] = None,
    tier: Annotated[
        Optional[str],
        typer.Option("--tier", help="Service tier: fast or premium."),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option(help="LiteLLM model string for the chosen tier (e.g. openai/gpt-4o)."),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path."),
    ] = None,
    fmt: Annotated[
        Optional[str],
        typer.Option("--format", "-f", help="Output format: srt, vtt, ass, ssa, txt."),
    ] = None,
    bilingual: Annotated[
        bool,
        typer.Option("--bilingual", help="Write a VTT with original and translated text."),
    ] = False,
) -> None:
    """Translate a subtitle file with show context and re-timed cues."""
    from subai.core.languages import validate_language
    from subai.core.pipeline import EmptySubtitleError, translate_file

    for code in (source, to):
        if code is None:
            continue
        try:
            validate_language(code)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    if tier is not None and tier not in ("fast", "premium"):
        console.print(f"[red]Unknown tier:[/red] {tier} (choose 'fast' or 'premium')")
        raise typer.Exit(1)
    if fmt is not None and fmt not in SUPPORTED_FORMATS:
        console.print(f"[red]Unsupported format:[/red] {fmt}")
        raise typer.Exit(1)
    if not subtitle_file.is_file():
        console.print(f"[red]File not found:[/red] {subtitle_file}")
        raise typer.Exit(1)

    overrides: dict[str, object] = {}
    if tier is not None:
        overrides["default_tier"] = tier
    if model is not None:
        chosen = tier or load_config().default_tier
        overrides[f"llm.{chosen}_model"] = model
    config = load_config(**overrides)

    with _make_progress() as progress:
        task = progress.add_task("Initializing", total=100)

        def on_event(event: ProgressEvent) -> None:
            description = event.stage.value.replace("_", " ").capitalize()
            progress.update(task, completed=event.progress, description=description)
            if event.stage == ProgressStage.ERROR and event.details:
                progress.console.print(f"[yellow]{event.details}[/yellow]")

        try:
            result, out_path = translate_file(
                subtitle_file,
                output,
                config=config,
                source_lang=source,
                target_lang=to,
                fmt=fmt,
                bilingual=bilingual,
                on_event=on_event,
            )
        except EmptySubtitleError as e:
            console.print(f"[red]{e}:[/red] {subtitle_file}")
            raise typer.Exit(1)

    if result.degraded:
        console.print("[yellow]Provider unavailable, output uses the fallback translator.[/yellow]")
    if result.failed_batches:
        batches = ", ".join(str(i + 1) for i in result.failed_batches)
        console.print(f"[yellow]Batches kept in original language:[/yellow] {batches}")
    console.print(f"[green]Saved:[/green] {out_path}")
