"""Subtitle content analysis.

Statistics only annotate progress output. The context preamble built here is
what the premium tier folds into every batch prompt.
"""

from __future__ import annotations

import re

from subai.core.models import ContentStats, ResearchData, SubtitleCue

DIALOGUE_MIN_LENGTH = 10  # Shorter cues are mostly sound effects and interjections

KNOWN_CULTURAL_TERMS = (
    "samurai", "shogun", "daimyo", "ronin", "katana", "sake", "sushi", "kimono",
    "geisha", "ninja", "bushido", "sensei", "dojo", "tatami", "futon",
    "kami", "yokai", "tengu", "kitsune", "tanuki", "kodama",
)  # fmt: skip

_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+\b")
# Capitalized words that are almost never names
_NON_NAMES = frozenset(
    "The This That What Where When Why How Who Yes Yeah Okay Well Please Thank Thanks "
    "Sorry Hey Come Look Wait Stop Let Don Can Are Was Were You Your And But Not Now "
    "Just Maybe There Here They She His Her Our We Oh No".split()
)


def analyze_content(cues: list[SubtitleCue]) -> ContentStats:
    """Count dialogue, short action/sound lines, questions and exclamations."""
    dialogue = sum(1 for cue in cues if len(cue.text) > DIALOGUE_MIN_LENGTH)
    return ContentStats(
        total_entries=len(cues),
        dialogue_lines=dialogue,
        action_sound_lines=len(cues) - dialogue,
        questions=sum(1 for cue in cues if "?" in cue.text),
        exclamations=sum(1 for cue in cues if "!" in cue.text),
    )


def extract_character_names(cues: list[SubtitleCue], limit: int = 10) -> list[str]:
    """Guess character names from capitalized words, in order of appearance."""
    names: dict[str, None] = {}
    for cue in cues:
        for word in _CAPITALIZED_RE.findall(cue.text):
            if 2 < len(word) < 15 and word not in _NON_NAMES:
                names.setdefault(word)
    return list(names)[:limit]


def find_cultural_terms(
    cues: list[SubtitleCue],
    research: ResearchData | None = None,
    limit: int = 8,
) -> list[str]:
    """Known culture-specific terms that occur in the subtitles."""
    all_text = " ".join(cue.text.lower() for cue in cues)
    terms: dict[str, None] = {}
    for term in KNOWN_CULTURAL_TERMS:
        if re.search(rf"\b{re.escape(term)}\b", all_text):
            terms.setdefault(term)
    if research is not None:
        for character in research.characters:
            if character.lower() in all_text:
                terms.setdefault(character)
    return list(terms)[:limit]


def translation_strategy(stats: ContentStats, cultural_terms: list[str]) -> dict[str, str]:
    return {
        "emotionalTone": "Conversational" if stats.questions > stats.exclamations else "Dynamic",
        "complexityLevel": (
            "Dialogue-heavy"
            if stats.dialogue_lines > stats.total_entries * 0.7
            else "Action-focused"
        ),
        "culturalAdaptation": "High priority" if len(cultural_terms) > 5 else "Standard",
    }


def content_report(cues: list[SubtitleCue], research: ResearchData | None = None) -> dict:
    """Progress payload for the content analysis stage."""
    stats = analyze_content(cues)
    cultural_terms = find_cultural_terms(cues, research)
    return {
        "subtitleStatistics": {
            "totalEntries": stats.total_entries,
            "dialogueLines": stats.dialogue_lines,
            "actionSoundLines": stats.action_sound_lines,
            "questions": stats.questions,
            "exclamations": stats.exclamations,
        },
        "charactersDetected": extract_character_names(cues),
        "culturalElementsFound": cultural_terms,
        "translationStrategy": translation_strategy(stats, cultural_terms),
    }


def content_hints(cues: list[SubtitleCue]) -> list[str]:
    all_text = " ".join(cue.text for cue in cues).lower()
    hints = []
    if "♪" in all_text or "♫" in all_text:
        hints.append("Contains musical elements and song lyrics")
    if "[" in all_text and "]" in all_text:
        hints.append("Contains sound effects, actions, and speaker names in brackets")
    if "serial killer" in all_text or "murder" in all_text:
        hints.append("Dark themes with violence and crime elements")
    if "psychic" in all_text or "supernatural" in all_text:
        hints.append("Supernatural and psychic themes")
    return hints


def build_context_preamble(research: ResearchData, cues: list[SubtitleCue]) -> str:
    """Render research data and content hints as a prompt preamble."""
    lines = ["SHOW RESEARCH:", f"Title: {research.title}"]
    if research.genre:
        lines.append(f"Genre: {', '.join(research.genre)}")
    if research.plot:
        lines.append(f"Plot & Themes: {research.plot}")
    if research.characters:
        lines.append(f"Main Characters: {', '.join(research.characters)}")
    if research.setting:
        lines.append(f"Setting: {research.setting}")
    if research.cultural_context:
        lines.append(f"Cultural Context: {research.cultural_context}")

    if research.translation_guidelines:
        lines.append("")
        lines.append("SHOW-SPECIFIC GUIDELINES:")
        lines.extend(f"- {g}" for g in research.translation_guidelines)

    hints = content_hints(cues)
    if hints:
        lines.append("")
        lines.append("CONTENT ANALYSIS:")
        lines.extend(f"- {h}" for h in hints)

    return "\n".join(lines)
