"""Deterministic fallback translator.

Used when no provider is configured, or when the provider keeps failing. It
walks through the same progress stages as a real job, with short delays, and
returns one placeholder-translated cue per input cue. Output is tagged so a
degraded result is never mistaken for a real translation.
"""

from __future__ import annotations

import asyncio
import dataclasses

from subai.core.events import ProgressReporter, ProgressStage
from subai.core.models import ShowInfo, SubtitleCue
from subai.utils.console import console

MOCK_PHASES: list[tuple[ProgressStage, float, str, float]] = [
    (ProgressStage.ANALYZING, 10, "Analyzing filename {file_name!r}...", 0.8),
    (ProgressStage.RESEARCHING, 30, "Researching {title!r} for contextual information...", 2.0),
    (ProgressStage.ANALYZING_CONTENT, 50, "Analyzing subtitle content and themes...", 1.0),
    (ProgressStage.TRANSLATING, 80, "Translating with contextual awareness...", 1.5),
    (ProgressStage.FINALIZING, 95, "Finalizing translation and quality checks...", 0.5),
]

# Known phrases per target language
PHRASEBOOK: dict[str, dict[str, str]] = {
    "cs": {
        "Hello.": "Ahoj.",
        "Hi.": "Ahoj.",
        "Thank you.": "Děkuju.",
        "Yes.": "Ano.",
        "No.": "Ne.",
        "What?": "Cože?",
        "Who said nightmares don't come true?": "Kdo říkal, že se noční můry nestávají skutečností?",
        "I'm not sure I can.": "Nejsem si jistý, jestli to zvládnu.",
        "There is no \"we\" in family.": "V rodině není \"my\".",
        "[whispering softly]": "[šeptá tiše]",
        "[school bell rings]": "[školní zvonek zvoní]",
        "[screams]": "[křičí]",
        "[grunts]": "[vrčí]",
    },
}

# Words translated inside [sound effect] markers
SOUND_WORDS: dict[str, dict[str, str]] = {
    "cs": {
        "music": "hudba",
        "sound": "zvuk",
        "playing": "hraje",
        "chuckling": "chichotá se",
        "screams": "křičí",
        "grunts": "vrčí",
        "laughs": "směje se",
        "sighs": "povzdechne si",
    },
}


def mock_translate_text(text: str, target_lang: str, title: str) -> str:
    """Placeholder translation of a single cue text."""
    phrases = PHRASEBOOK.get(target_lang, {})
    if text in phrases:
        return phrases[text]

    stripped = text.strip()
    sound_words = SOUND_WORDS.get(target_lang)
    if sound_words and stripped.startswith("[") and stripped.endswith("]"):
        inner = stripped[1:-1]
        for english, translated in sound_words.items():
            if english in inner:
                return f"[{inner.replace(english, translated)}]"
        return stripped

    if stripped.startswith("♪") and stripped.endswith("♪"):
        return stripped

    if target_lang == "cs":
        return f"[CZ] {text}"
    return f"[{title}-{target_lang.upper()}] {text}"


class MockTranslator:
    """Always-succeeding translator with simulated progress."""

    def __init__(self, delay_scale: float = 1.0) -> None:
        self.delay_scale = delay_scale

    async def translate(
        self,
        cues: list[SubtitleCue],
        target_lang: str,
        show_info: ShowInfo,
        file_name: str | None = None,
        reporter: ProgressReporter | None = None,
    ) -> list[SubtitleCue]:
        console.print(
            f"[yellow]Using fallback translator[/yellow] [dim]({len(cues)} cues, "
            f"{show_info.title})[/dim]"
        )
        for stage, progress, message, delay in MOCK_PHASES:
            if reporter is not None:
                details = message.format(file_name=file_name or "unknown", title=show_info.title)
                reporter.emit(stage, progress, details, force=True)
            if self.delay_scale > 0:
                await asyncio.sleep(delay * self.delay_scale)

        return [
            dataclasses.replace(
                cue, text=mock_translate_text(cue.original_text or cue.text, target_lang, show_info.title)
            )
            for cue in cues
        ]
