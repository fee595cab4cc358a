"""Language names and reading-speed profiles.

Names are used in prompts and CLI validation. Profiles drive subtitle
re-timing: how long a viewer needs to read a given amount of text in each
language, relative to English.
"""

from __future__ import annotations

from dataclasses import dataclass

# fmt: off
LANGUAGE_NAMES: dict[str, str] = {
    "af": "afrikaans",   "am": "amharic",        "ar": "arabic",
    "az": "azerbaijani", "be": "belarusian",     "bg": "bulgarian",
    "bn": "bengali",     "bs": "bosnian",        "ca": "catalan",
    "cs": "czech",       "cy": "welsh",          "da": "danish",
    "de": "german",      "el": "greek",          "en": "english",
    "eo": "esperanto",   "es": "spanish",        "et": "estonian",
    "eu": "basque",      "fa": "persian",        "fi": "finnish",
    "fr": "french",      "ga": "irish",          "gl": "galician",
    "gu": "gujarati",    "ha": "hausa",          "haw": "hawaiian",
    "he": "hebrew",      "hi": "hindi",          "hr": "croatian",
    "hu": "hungarian",   "hy": "armenian",       "id": "indonesian",
    "ig": "igbo",        "is": "icelandic",      "it": "italian",
    "ja": "japanese",    "jv": "javanese",       "ka": "georgian",
    "kk": "kazakh",      "km": "khmer",          "kn": "kannada",
    "ko": "korean",      "ky": "kyrgyz",         "la": "latin",
    "lb": "luxembourgish", "lo": "lao",          "lt": "lithuanian",
    "lv": "latvian",     "mg": "malagasy",       "mi": "maori",
    "mk": "macedonian",  "ml": "malayalam",      "mn": "mongolian",
    "mr": "marathi",     "ms": "malay",          "mt": "maltese",
    "my": "myanmar",     "ne": "nepali",         "nl": "dutch",
    "no": "norwegian",   "pa": "punjabi",        "pl": "polish",
    "pt": "portuguese",  "ro": "romanian",       "ru": "russian",
    "si": "sinhala",     "sk": "slovak",         "sl": "slovenian",
    "sq": "albanian",    "sr": "serbian",        "su": "sundanese",
    "sv": "swedish",     "sw": "swahili",        "ta": "tamil",
    "te": "telugu",      "tg": "tajik",          "th": "thai",
    "tl": "filipino",    "tr": "turkish",        "uk": "ukrainian",
    "ur": "urdu",        "uz": "uzbek",          "vi": "vietnamese",
    "xh": "xhosa",       "yo": "yoruba",         "zh": "chinese",
    "zu": "zulu",
}
# fmt: on


@dataclass(frozen=True)
class LanguageProfile:
    """Static reading characteristics of a language."""

    code: str
    reading_speed: int  # words per minute
    avg_word_length: float  # characters
    syllables_per_word: float
    compactness: float  # words needed for the same idea, relative to English
    timing_multiplier: float  # 1.0 = English

    @property
    def name(self) -> str:
        return language_name(self.code).title()

    @property
    def chars_per_second(self) -> float:
        return self.avg_word_length * (self.reading_speed / 60)


# fmt: off
LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    p.code: p
    for p in (
        #               code  wpm  word   syl  compact  timing
        LanguageProfile("en", 200, 4.7, 1.3, 1.00, 1.00),
        LanguageProfile("cs", 180, 5.8, 1.8, 1.15, 1.25),
        LanguageProfile("de", 170, 6.2, 1.9, 1.20, 1.30),
        LanguageProfile("es", 220, 4.9, 1.6, 1.05, 0.95),
        LanguageProfile("fr", 190, 5.1, 1.5, 1.08, 1.10),
        LanguageProfile("it", 210, 4.8, 1.7, 1.03, 0.98),
        LanguageProfile("pt", 200, 5.0, 1.6, 1.06, 1.05),
        LanguageProfile("ru", 160, 6.1, 2.1, 1.25, 1.35),
        LanguageProfile("ja", 140, 3.2, 2.3, 0.80, 1.40),
        LanguageProfile("ko", 150, 3.5, 2.0, 0.85, 1.30),
        LanguageProfile("zh", 130, 2.1, 1.0, 0.60, 1.20),
        LanguageProfile("ar", 160, 5.5, 1.8, 1.20, 1.30),
        LanguageProfile("hi", 170, 5.2, 1.9, 1.15, 1.25),
        LanguageProfile("pl", 175, 5.6, 1.7, 1.12, 1.20),
        LanguageProfile("nl", 185, 5.4, 1.6, 1.10, 1.15),
        LanguageProfile("sv", 190, 5.2, 1.5, 1.05, 1.10),
        LanguageProfile("da", 195, 5.0, 1.4, 1.03, 1.08),
        LanguageProfile("no", 200, 4.9, 1.4, 1.02, 1.05),
        LanguageProfile("fi", 155, 6.8, 2.2, 1.30, 1.40),
        LanguageProfile("tr", 165, 5.7, 1.9, 1.18, 1.25),
    )
}
# fmt: on

DEFAULT_PROFILE = LANGUAGE_PROFILES["en"]


def get_language_profile(code: str) -> LanguageProfile:
    """Return the reading profile for a language, English if unknown."""
    return LANGUAGE_PROFILES.get(code.lower(), DEFAULT_PROFILE)


def is_valid_language(code: str) -> bool:
    return code in LANGUAGE_NAMES


def language_name(code: str) -> str:
    """Get the full language name for a code, or the code itself if unknown."""
    return LANGUAGE_NAMES.get(code, code)


def validate_language(code: str) -> str:
    """Validate a language code and return it, raising ValueError if invalid."""
    if code not in LANGUAGE_NAMES:
        raise ValueError(
            f"Unsupported language: '{code}'. "
            f"Run 'subai languages' to see the {len(LANGUAGE_PROFILES)} languages "
            "with reading profiles."
        )
    return code
