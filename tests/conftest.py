"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path

import pytest

from subai.context.research import ResearchStore
from subai.core.config import LLMConfig, SubAIConfig, TranslationConfig
from subai.core.models import SubtitleCue
from subai.llm.prompts import RESEARCH_SYSTEM

FIXTURES_DIR = Path(__file__).parent / "fixtures"

TEST_API_KEY = "sk-test-0123456789abcdefghijklmnop"

_NUMBERED_LINE_RE = re.compile(r"^(\d+)\. (.*)$")


def make_cues(count: int, duration: int = 2000, text: str = "Line {i} of the episode") -> list[SubtitleCue]:
    """Create cues with sequential, non-overlapping timestamps."""
    return [
        SubtitleCue(index=i, start=(i - 1) * 3000, end=(i - 1) * 3000 + duration, text=text.format(i=i))
        for i in range(1, count + 1)
    ]


def numbered_inputs(messages: list[dict[str, str]]) -> list[tuple[int, str]]:
    """The numbered subtitle lines of a translation request."""
    lines = []
    for line in messages[-1]["content"].splitlines():
        match = _NUMBERED_LINE_RE.match(line.strip())
        if match:
            lines.append((int(match.group(1)), match.group(2)))
    return lines


class FakeLLM:
    """Async stand-in for ``subai.llm.client.complete``.

    Echoes numbered lines back with ``prefix`` and answers research requests
    with ``research`` as JSON. ``fail_when`` decides per request whether to
    raise instead.
    """

    def __init__(self, prefix="[tr]", research=None, fail_when=None, delay=0.0):
        self.prefix = prefix
        self.research = research if research is not None else {"title": "Test Show"}
        self.fail_when = fail_when
        self.delay = delay
        self.calls: list[dict] = []

    @property
    def research_calls(self) -> list[dict]:
        return [c for c in self.calls if c["messages"][0]["content"] == RESEARCH_SYSTEM]

    @property
    def translation_calls(self) -> list[dict]:
        return [c for c in self.calls if c["messages"][0]["content"] != RESEARCH_SYSTEM]

    async def __call__(self, messages, config, model=None, **kwargs):
        self.calls.append({"messages": messages, "model": model, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if messages[0]["content"] == RESEARCH_SYSTEM:
            return json.dumps(self.research)
        if self.fail_when is not None and self.fail_when(messages):
            raise RuntimeError("provider unavailable")
        return "\n".join(f"{n}. {self.prefix} {text}" for n, text in numbered_inputs(messages))


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_srt(fixtures_dir: Path) -> Path:
    return fixtures_dir / "sample.srt"


@pytest.fixture
def config() -> SubAIConfig:
    """Config with a usable key and every delay switched off."""
    return SubAIConfig(
        llm=LLMConfig(api_key=TEST_API_KEY),
        translation=TranslationConfig(
            retry_base_delay=0.0,
            retry_max_delay=0.0,
            wave_delay=0.0,
            mock_phase_delay_scale=0.0,
            batch_timeout=5.0,
        ),
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def research_store() -> ResearchStore:
    return ResearchStore()
