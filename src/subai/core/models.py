"""Shared data models for subtitle-ai."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SubtitleCue:
    """One timed caption.

    ``original_text`` is captured from ``text`` at construction and travels
    with the cue through translation so downstream code can diff against it.
    """

    index: int  # 1-based position, stable across translation
    start: int  # milliseconds
    end: int  # milliseconds
    text: str
    original_text: str | None = None

    def __post_init__(self) -> None:
        if self.original_text is None:
            self.original_text = self.text

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class ShowInfo:
    """Title and episode markers extracted from a subtitle filename."""

    title: str
    season: int | None = None
    episode: int | None = None
    year: int | None = None

    @property
    def is_episode(self) -> bool:
        return self.season is not None and self.episode is not None

    def query(self) -> str:
        """Human-readable lookup string, e.g. "Inception (2010)"."""
        return f"{self.title} ({self.year})" if self.year else self.title


@dataclass
class ResearchData:
    """LLM-derived descriptive metadata about a title."""

    title: str
    plot: str = ""
    setting: str = ""
    cultural_context: str = ""
    genre: list[str] = field(default_factory=list)
    characters: list[str] = field(default_factory=list)
    translation_guidelines: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "genre": self.genre,
            "plot": self.plot,
            "characters": self.characters,
            "setting": self.setting,
            "culturalContext": self.cultural_context,
            "translationGuidelines": self.translation_guidelines,
        }


@dataclass
class ContentStats:
    """Corpus statistics used to annotate progress output."""

    total_entries: int
    dialogue_lines: int
    action_sound_lines: int
    questions: int
    exclamations: int


@dataclass
class BatchResult:
    """Translated cues of one batch, tagged with the batch's partition position."""

    batch_index: int
    cues: list[SubtitleCue]
    failed: bool = False


@dataclass
class TranslationResult:
    """Output from the translation pipeline."""

    original: list[SubtitleCue]
    translated: list[SubtitleCue]
    source_language: str
    target_language: str
    tier: str
    degraded: bool = False
    cancelled: bool = False
    show_info: ShowInfo | None = None
    research: ResearchData | None = None
    stats: ContentStats | None = None
    failed_batches: list[int] = field(default_factory=list)
