"""Per-target-language checks for lines the model left untranslated.

A validator takes ``(original, translated)`` and returns True when the
translated line looks like it is still in the source language. Flagged lines
get one compact re-translation request. Languages without a registered
validator are not checked.
"""

from __future__ import annotations

import re
from typing import Callable

UntranslatedValidator = Callable[[str, str], bool]

_ENGLISH_WORDS_RE = re.compile(
    r"\b(the|and|you|your|are|have|will|can|not|what|how|this|that|with|from|shall|very)\b",
    re.IGNORECASE,
)
_CUE_MARKUP_RE = re.compile(r"\[[^\]]*\]|\([^)]*\)|♪[^♪]*♪")
_LETTER_RE = re.compile(r"[^\W\d_]")


def _dialogue(text: str) -> str:
    """Text with speaker tags, sound effects and lyrics removed."""
    return _CUE_MARKUP_RE.sub(" ", text).strip()


def _english_word_count(text: str) -> int:
    return len(_ENGLISH_WORDS_RE.findall(text))


def unchanged_dialogue(original: str, translated: str) -> bool:
    """The model echoed a line that has real dialogue in it."""
    dialogue = _dialogue(original)
    return translated.strip() == original.strip() and len(_LETTER_RE.findall(dialogue)) > 3


def diacritics_validator(diacritics: str) -> UntranslatedValidator:
    """Build a validator for a language whose text normally carries diacritics.

    A line is suspect when it is an unchanged echo of the original, or when
    it has no diacritics at all while containing two or more common English
    function words.
    """
    diacritics_re = re.compile(f"[{diacritics}]")

    def validate(original: str, translated: str) -> bool:
        if unchanged_dialogue(original, translated):
            return True
        dialogue = _dialogue(translated)
        if not dialogue:
            return False
        return not diacritics_re.search(dialogue) and _english_word_count(dialogue) >= 2

    return validate


VALIDATORS: dict[str, UntranslatedValidator] = {
    "cs": diacritics_validator("áčďéěíňóřšťúůýžÁČĎÉĚÍŇÓŘŠŤÚŮÝŽ"),
    "sk": diacritics_validator("áäčďéíĺľňóôŕšťúýžÁÄČĎÉÍĹĽŇÓÔŔŠŤÚÝŽ"),
}


def register_validator(language: str, validator: UntranslatedValidator) -> None:
    VALIDATORS[language] = validator


def get_validator(language: str) -> UntranslatedValidator | None:
    return VALIDATORS.get(language)


def quality_issues(
    originals: list[str],
    translations: list[str],
    target_lang: str,
) -> list[str]:
    """Describe suspicious lines of a translated batch for logging."""
    validator = get_validator(target_lang)
    if validator is None:
        return []

    issues = []
    for i, (orig, trans) in enumerate(zip(originals, translations), 1):
        if validator(orig, trans):
            issues.append(f"line {i}: appears untranslated: {trans[:50]!r}")
        elif _english_word_count(_dialogue(trans)) >= 2:
            issues.append(f"line {i}: mixed languages: {trans[:50]!r}")
    return issues
