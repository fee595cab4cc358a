"""Subtitle container I/O.

Container parsing stays deliberately thin: pysubs2 reads SRT, VTT, ASS/SSA
and friends into timed events, which become 1-based SubtitleCues.
"""

from __future__ import annotations

from pathlib import Path

import pysubs2

from subai.core.models import SubtitleCue

SUPPORTED_FORMATS = ("srt", "vtt", "ass", "ssa", "txt")


def load_subtitles(path: Path) -> list[SubtitleCue]:
    """Load a subtitle file into SubtitleCues.

    Supports SRT, VTT, ASS/SSA, and plain TXT (one line per cue, no timestamps).
    Comment events are skipped; cue indices are renumbered from 1.
    """
    path = Path(path)

    if path.suffix.lower() == ".txt":
        text = path.read_text(encoding="utf-8")
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return [SubtitleCue(index=i, start=0, end=0, text=line) for i, line in enumerate(lines, 1)]

    subs = pysubs2.load(str(path), encoding="utf-8")
    events = [event for event in subs.events if not event.is_comment]
    return [
        SubtitleCue(
            index=i,
            start=event.start,
            end=event.end,
            text=event.plaintext.strip(),
        )
        for i, event in enumerate(events, 1)
    ]


def save_subtitles(cues: list[SubtitleCue], path: Path, fmt: str = "srt") -> Path:
    """Save SubtitleCues to a subtitle file.

    Args:
        cues: Cues to write, in order.
        path: Output file path.
        fmt: Format — "srt", "vtt", "ass", "ssa", or "txt".

    Returns:
        The path the file was written to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "txt":
        text = "\n".join(cue.text for cue in cues if cue.text.strip())
        path.write_text(text, encoding="utf-8")
        return path

    subs = pysubs2.SSAFile()
    for cue in cues:
        event = pysubs2.SSAEvent(start=cue.start, end=cue.end)
        event.plaintext = cue.text
        subs.events.append(event)
    subs.save(str(path), format_=fmt)
    return path


def save_bilingual_vtt(cues: list[SubtitleCue], path: Path) -> Path:
    """Save translated cues together with their original text as one VTT.

    Original text at bottom (line:85%), translated text at top (line:5%).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["WEBVTT", ""]
    for i, cue in enumerate(cues, 1):
        start = format_vtt_time(cue.start)
        end = format_vtt_time(cue.end)

        lines.append(str(i * 2 - 1))
        lines.append(f"{start} --> {end} line:85%")
        lines.append(cue.original_text or "")
        lines.append("")

        lines.append(str(i * 2))
        lines.append(f"{start} --> {end} line:5%")
        lines.append(cue.text)
        lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def format_vtt_time(ms: int) -> str:
    """Format milliseconds as VTT timestamp (HH:MM:SS.mmm)."""
    h, rest = divmod(int(ms), 3_600_000)
    m, rest = divmod(rest, 60_000)
    s, millis = divmod(rest, 1000)
    return f"{h:02d}:{m:02d}:{s:02d}.{millis:03d}"
