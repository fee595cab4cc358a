"""subai info command — show what context a filename yields."""

from __future__ import annotations

from typing import Annotated

import typer

from subai.context.showinfo import describe_release, extract_show_info
from subai.utils.console import console


def info(
    file_name: Annotated[str, typer.Argument(help="Subtitle file name to inspect.")],
) -> None:
    """Extract title, season, episode and release details from a filename."""
    show = extract_show_info(file_name)
    console.print(f"[bold]Title:[/bold] {show.title}")
    if show.year is not None:
        console.print(f"[bold]Year:[/bold] {show.year}")
    if show.is_episode:
        console.print(f"[bold]Episode:[/bold] S{show.season:02d}E{show.episode:02d}")
    elif show.episode is not None:
        console.print(f"[bold]Episode:[/bold] {show.episode}")
    for key, value in describe_release(file_name).items():
        console.print(f"[dim]{key.title()}: {value}[/dim]")
