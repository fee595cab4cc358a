"""Prompt templates and numbered-response parsing for subtitle translation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

LINE_BREAK_TOKEN = "<br>"

FORMAT_RULES = """\
FORMATTING RULES:
- Preserve bracketed speaker tags and sound-effect markers verbatim in position: \
[Speaker], [door slams], (whispers), ♪ music ♪
- Translate the FULL dialogue of every line, never a shortened or partial version
- Keep "{line_break}" markers where they appear; they are line breaks inside one subtitle
- Do NOT merge or split lines; return EXACTLY {count} numbered lines
- Format each line as "N. translated text", numbered exactly as the input
- Return ONLY the translated lines, no commentary or notes
"""

FAST_TRANSLATION_SYSTEM = """\
You are a professional subtitle translator. Translate subtitle lines from \
{source_lang} to {target_lang}, keeping them natural and concise for on-screen reading.

- Preserve the tone and register of the original
- Handle idioms and colloquialisms naturally in {target_lang}
- Keep proper names (characters, places) unless commonly translated

{format_rules}"""

PREMIUM_TRANSLATION_SYSTEM = """\
You are an expert subtitle translator specializing in {target_lang}. You create \
professional-quality translations that capture the essence of the original content.

{context}

TRANSLATION GUIDELINES:
- Translate from {source_lang} to {target_lang} with contextual accuracy
- Use the show/movie context above to inform your translation choices
- Maintain character voices, relationships, and the show's unique tone
- Keep proper names (characters, places) in the original language unless commonly translated
- Use natural, fluent {target_lang} appropriate for the show's target audience
- Keep lines readable at subtitle speed (max 42 characters per line when possible)
- Preserve cultural references when they make sense, adapt when necessary
- Keep the emotional impact and humor style of the original

{format_rules}"""

TRANSLATION_USER = """\
Translate these {count} subtitle lines from {source_lang} to {target_lang}. \
Return exactly {count} numbered lines, one per input line.

{numbered_segments}
"""

RETRANSLATE_SYSTEM = """\
You strictly translate the provided subtitle lines to {target_lang}. Do not leave \
any {source_lang} words unless they are proper names. Keep "{line_break}" markers. \
Return EXACTLY the same numbers with the format "N. translated text" and nothing else. \
Use idiomatic {target_lang}.
"""

RESEARCH_SYSTEM = """\
You are a media research assistant. Provide information about TV shows, movies, \
and anime for subtitle translation purposes.

RESEARCH AREAS:
1. Basic information (genre, target audience, tone)
2. Plot and themes
3. Main character names
4. Setting (time period, location, cultural context)
5. Translation guidelines (what to preserve vs. translate)

FORMAT YOUR RESPONSE AS VALID JSON:
{
  "title": "Official title",
  "genre": ["genre1", "genre2"],
  "plot": "Brief plot summary and main themes",
  "characters": ["Character1", "Character2"],
  "setting": "Time period, location, and cultural context",
  "culturalContext": "Important cultural elements and references",
  "translationGuidelines": ["guideline1", "guideline2"]
}

Be concise. If you don't know the title, provide generic guidelines.
"""

RESEARCH_USER = 'Research this show/movie for subtitle translation: "{query}"'


def encode_line_breaks(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\n", LINE_BREAK_TOKEN)


def decode_line_breaks(text: str) -> str:
    return re.sub(r"\s*<br\s*/?>\s*", "\n", text, flags=re.IGNORECASE).strip()


def format_numbered_segments(texts: list[str], start: int = 1) -> str:
    """Format a list of subtitle texts as numbered lines for LLM input."""
    return "\n".join(f"{i + start}. {encode_line_breaks(text)}" for i, text in enumerate(texts))


_NUMBERED_RE = re.compile(r"^\s*(?:\*\*)?(\d+)(?:\*\*)?\s*[.:)]\s*(.*)$")
_CODE_FENCE_RE = re.compile(r"^\s*```")
# "Here are the translations:", "Sure! Translation:"
_PREAMBLE_RE = re.compile(
    r"^\s*(?:sure|certainly|okay|ok|of course|here (?:is|are)|translations?)\b.*:\s*$",
    re.IGNORECASE,
)


@dataclass
class ResponseLine:
    """One non-empty response line; ``number`` is None when unnumbered."""

    number: int | None
    text: str


@dataclass
class NumberedResponse:
    """A response that contains usable lines."""

    lines: list[ResponseLine] = field(default_factory=list)


@dataclass
class MalformedResponse:
    """A response with no usable structure.

    ``lines`` holds the non-empty lines left after dropping code fences and
    preamble chatter, for positional recovery.
    """

    raw: str
    lines: list[str] = field(default_factory=list)


ParsedResponse = NumberedResponse | MalformedResponse


def parse_numbered_response(response: str, expected_count: int) -> ParsedResponse:
    """Parse an LLM response into numbered lines.

    Handles "1. Text", "1: Text" and "1) Text". Blank lines, code fences
    and leading chatter such as "Here are the translations:" are dropped.
    Other unnumbered lines are kept with ``number=None`` for positional
    alignment. A response is malformed when it is empty, or when none of
    its lines is numbered and the line count does not match
    ``expected_count`` either.
    """
    lines: list[ResponseLine] = []
    for raw_line in response.strip().splitlines():
        if not raw_line.strip() or _CODE_FENCE_RE.match(raw_line):
            continue
        match = _NUMBERED_RE.match(raw_line)
        if match:
            lines.append(ResponseLine(number=int(match.group(1)), text=match.group(2).strip()))
        elif lines or not _PREAMBLE_RE.match(raw_line):
            lines.append(ResponseLine(number=None, text=raw_line.strip()))

    if not lines or (
        all(line.number is None for line in lines) and len(lines) != expected_count
    ):
        return MalformedResponse(raw=response, lines=[line.text for line in lines])
    return NumberedResponse(lines=lines)


@dataclass
class Alignment:
    """Per-position texts for a batch plus the positions that need attention."""

    texts: list[str | None]
    repaired: list[int] = field(default_factory=list)  # placed by position, not number

    @property
    def missing(self) -> list[int]:
        return [i for i, text in enumerate(self.texts) if not text]


def align_response(parsed: ParsedResponse, expected_count: int, start: int = 1) -> Alignment:
    """Map parsed response lines onto batch positions.

    Numbered lines go to their number's slot; numbers are accepted either
    relative to the batch (1..n) or offset by ``start``. A line without a
    usable number falls back to its own position in the response, so one
    malformed number does not shift the rest of the batch. A malformed
    response is recovered positionally from its filtered lines.
    """
    texts: list[str | None] = [None] * expected_count
    alignment = Alignment(texts=texts)

    if isinstance(parsed, MalformedResponse):
        for k, line in enumerate(parsed.lines[:expected_count]):
            texts[k] = decode_line_breaks(line)
            alignment.repaired.append(k)
        return alignment

    numbers = [line.number for line in parsed.lines if line.number is not None]
    offset = 1
    if numbers and start != 1 and all(start <= n < start + expected_count for n in numbers):
        offset = start

    unplaced: list[int] = []
    for k, line in enumerate(parsed.lines):
        if line.number is not None:
            slot = line.number - offset
            if 0 <= slot < expected_count and texts[slot] is None:
                texts[slot] = decode_line_breaks(line.text)
                continue
        unplaced.append(k)

    # Positional fallback only fills slots no numbered line claimed
    for k in unplaced:
        if k < expected_count and texts[k] is None:
            texts[k] = decode_line_breaks(parsed.lines[k].text)
            alignment.repaired.append(k)

    return alignment
