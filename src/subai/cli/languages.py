"""subai languages command — list reading-speed profiles."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from subai.core.languages import LANGUAGE_NAMES, LANGUAGE_PROFILES
from subai.utils.console import console


def languages(
    all_codes: Annotated[
        bool,
        typer.Option("--all", help="Also list codes without a reading-speed profile."),
    ] = False,
) -> None:
    """List target languages and their subtitle timing profiles."""
    codes = sorted(LANGUAGE_NAMES) if all_codes else sorted(LANGUAGE_PROFILES)
    table = Table(title=f"Languages ({len(codes)})")
    table.add_column("Code", style="bold cyan", width=5)
    table.add_column("Language", width=20)
    table.add_column("WPM", justify="right")
    table.add_column("Chars/s", justify="right")
    table.add_column("Timing", justify="right")

    for code in codes:
        profile = LANGUAGE_PROFILES.get(code)
        if profile is None:
            table.add_row(code, LANGUAGE_NAMES[code].title(), "-", "-", "-")
            continue
        table.add_row(
            code,
            profile.name.title(),
            str(profile.reading_speed),
            f"{profile.chars_per_second:.1f}",
            f"x{profile.timing_multiplier:.2f}",
        )

    console.print(table)
    console.print(
        "\n[dim]Languages without a profile are timed with the English profile.[/dim]"
    )
