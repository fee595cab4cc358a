"""subtitle-ai CLI entry point."""

from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

from subai import __version__
from subai.cli.info import info
from subai.cli.languages import languages
from subai.cli.translate import translate

app = typer.Typer(
    name="subai",
    help="subtitle-ai — Context-aware LLM subtitle translation.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"subai {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """subtitle-ai — Context-aware LLM subtitle translation."""
    # Load .env file for API keys (OPENAI_API_KEY, GEMINI_API_KEY, etc.)
    # Does not override existing env vars; shell exports take precedence
    load_dotenv(override=False)


app.command("translate")(translate)
app.command("info")(info)
app.command("languages")(languages)
