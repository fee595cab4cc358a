"""Shared Rich console used for all status output."""

from rich.console import Console

console = Console(stderr=True)
