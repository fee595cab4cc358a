"""Re-timing of translated cues for the target language's reading speed.

Only a cue's end time ever changes; start times are left alone so cues stay
anchored to the speech they belong to.
"""

from __future__ import annotations

import dataclasses

from subai.core.languages import get_language_profile
from subai.core.models import SubtitleCue

LANGUAGE_WEIGHT = 0.4
LENGTH_WEIGHT = 0.3
WORD_WEIGHT = 0.2
COMPACTNESS_WEIGHT = 0.1

MIN_RATIO = 0.5
MAX_RATIO = 2.5
STABILITY_THRESHOLD = 0.1  # Changes under 10% are not worth moving a cue

SCALED_DURATION_WEIGHT = 0.7
OPTIMAL_DURATION_WEIGHT = 0.3

MIN_DURATION_MS = 800
MAX_DURATION_MS = 8000
MIN_MS_PER_WORD = 300
MAX_MS_PER_WORD = 1200

FAST_PATH_LENGTH_RATIO = 1.3
FAST_PATH_MAX_EXTENSION_MS = 800


def word_count(text: str) -> int:
    """Whitespace-separated words; an empty text still counts as one."""
    return max(1, len(text.split()))


def timing_ratio(
    source_lang: str,
    target_lang: str,
    original_text: str,
    translated_text: str,
) -> float:
    """Weighted duration ratio between a translation and its source, clamped.

    Blends the languages' timing multipliers, the actual character and word
    ratios of the two texts, and the languages' compactness.
    """
    source = get_language_profile(source_lang)
    target = get_language_profile(target_lang)

    language_ratio = target.timing_multiplier / source.timing_multiplier
    length_ratio = len(translated_text) / len(original_text) if original_text else 1.0
    word_ratio = word_count(translated_text) / word_count(original_text)
    compactness_ratio = target.compactness / source.compactness

    ratio = (
        LANGUAGE_WEIGHT * language_ratio
        + LENGTH_WEIGHT * length_ratio
        + WORD_WEIGHT * word_ratio
        + COMPACTNESS_WEIGHT * compactness_ratio
    )
    return max(MIN_RATIO, min(MAX_RATIO, ratio))


def duration_bounds(text: str) -> tuple[int, int]:
    """Per-word floor and ceiling for a cue's on-screen duration, in ms."""
    words = word_count(text)
    return (
        max(MIN_DURATION_MS, words * MIN_MS_PER_WORD),
        min(MAX_DURATION_MS, words * MAX_MS_PER_WORD),
    )


def optimal_reading_duration(text: str, target_lang: str) -> float:
    """Time a reader of ``target_lang`` needs for ``text``, in ms."""
    profile = get_language_profile(target_lang)
    return len(text) / profile.chars_per_second * 1000


def adjust_timing(
    cue: SubtitleCue,
    original_text: str,
    source_lang: str,
    target_lang: str,
) -> SubtitleCue:
    """Recompute a translated cue's end time from the reading-speed model.

    Returns the cue unchanged when the clamped ratio is within 10% of 1.0.
    Otherwise the new duration blends the ratio-scaled original duration
    (70%) with the target language's optimal reading duration (30%), then
    is clamped to the per-word bounds.
    """
    ratio = timing_ratio(source_lang, target_lang, original_text, cue.text)
    if abs(ratio - 1.0) < STABILITY_THRESHOLD:
        return cue

    scaled = cue.duration * ratio
    optimal = optimal_reading_duration(cue.text, target_lang)
    duration = round(SCALED_DURATION_WEIGHT * scaled + OPTIMAL_DURATION_WEIGHT * optimal)

    low, high = duration_bounds(cue.text)
    duration = max(low, min(high, duration))
    return dataclasses.replace(cue, end=cue.start + duration)


def fast_timing_adjustment(cue: SubtitleCue, original_text: str) -> SubtitleCue:
    """Bounded extension for cues translated from already well-timed sources.

    Timing is untouched unless the translation is more than 30% longer than
    the source; then the end moves by half the excess, at most 800 ms.
    """
    if not original_text:
        return cue

    length_ratio = len(cue.text) / len(original_text)
    if length_ratio <= FAST_PATH_LENGTH_RATIO:
        return cue

    extension = min((length_ratio - 1) * cue.duration * 0.5, FAST_PATH_MAX_EXTENSION_MS)
    return dataclasses.replace(cue, end=cue.end + round(extension))


def adjust_cue_timing(
    cue: SubtitleCue,
    source_lang: str,
    target_lang: str,
    trust_source_timing: bool = False,
) -> SubtitleCue:
    """Re-time one translated cue against its ``original_text``.

    With ``trust_source_timing`` (premium jobs) and an English source, only
    the bounded fast-path extension applies; everything else goes through
    the full ratio model.
    """
    original_text = cue.original_text or ""
    if trust_source_timing and source_lang == "en":
        return fast_timing_adjustment(cue, original_text)
    return adjust_timing(cue, original_text, source_lang, target_lang)
