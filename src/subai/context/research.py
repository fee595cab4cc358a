"""Show research: one low-effort LLM lookup per title, cached per process.

Research runs off the hot translation path, so it asks for a compact JSON
object with a low reasoning budget. Any failure degrades to empty research
data and the job continues in context-free mode.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import Awaitable, Callable

from subai.core.config import LLMConfig
from subai.core.models import ResearchData, ShowInfo
from subai.llm.client import complete
from subai.llm.prompts import RESEARCH_SYSTEM, RESEARCH_USER
from subai.utils.console import console

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

CompleteFn = Callable[..., Awaitable[str]]


def research_key(show_info: ShowInfo) -> str:
    """Cache key: the lower-cased title, plus the year when known."""
    return show_info.query().strip().lower()


class ResearchStore:
    """Process-wide research cache, injected into every ResearchEngine.

    Entries never expire. Lookups for the same key are serialized through a
    per-key lock, so concurrent jobs for one title trigger a single LLM call.
    Locks belong to the running event loop; cached entries outlive it.
    """

    def __init__(self) -> None:
        self._data: dict[str, ResearchData] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def get(self, key: str) -> ResearchData | None:
        return self._data.get(key)

    def put(self, key: str, data: ResearchData) -> None:
        self._data[key] = data

    def lock(self, key: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            # Each asyncio.run() gets a fresh event loop
            self._locks = {}
            self._loop = loop
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self._data.clear()
        self._locks.clear()


_default_store = ResearchStore()


def default_store() -> ResearchStore:
    return _default_store


def strip_code_fences(response: str) -> str:
    """Return the body of a ```json fenced block, or the trimmed response."""
    match = _FENCE_RE.search(response)
    if match:
        return match.group(1).strip()
    return response.strip()


def _str_list(value: object) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value if str(v).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _str(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_research_response(response: str, show_info: ShowInfo) -> ResearchData:
    """Parse the research JSON, filling missing fields with safe defaults.

    Raises:
        ValueError: If the response is not a JSON object.
    """
    parsed = json.loads(strip_code_fences(response))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

    return ResearchData(
        title=_str(parsed.get("title")) or show_info.title,
        plot=_str(parsed.get("plot")),
        setting=_str(parsed.get("setting")),
        cultural_context=_str(parsed.get("culturalContext")),
        genre=_str_list(parsed.get("genre")),
        characters=_str_list(parsed.get("characters")),
        translation_guidelines=_str_list(parsed.get("translationGuidelines")),
    )


class ResearchEngine:
    """Looks up descriptive metadata for a title through the LLM."""

    def __init__(
        self,
        config: LLMConfig,
        store: ResearchStore | None = None,
        complete_fn: CompleteFn = complete,
    ) -> None:
        self.config = config
        self.store = store if store is not None else default_store()
        self._complete = complete_fn

    async def research(self, show_info: ShowInfo) -> ResearchData:
        """Return research data for a show, from cache when possible.

        Never raises: network and parse failures yield default data, which
        is not cached so a later job can try again.
        """
        key = research_key(show_info)
        cached = self.store.get(key)
        if cached is not None:
            console.print(f"[dim]Using cached research for:[/dim] {show_info.query()}")
            return cached

        async with self.store.lock(key):
            cached = self.store.get(key)
            if cached is not None:
                return cached

            messages = [
                {"role": "system", "content": RESEARCH_SYSTEM},
                {"role": "user", "content": RESEARCH_USER.format(query=show_info.query())},
            ]
            try:
                response = await self._complete(
                    messages,
                    self.config,
                    model=self.config.research_model,
                    max_tokens=self.config.research_max_tokens,
                    reasoning_effort=self.config.research_reasoning_effort,
                )
            except Exception as e:
                console.print(f"[yellow]Research failed, continuing without context:[/yellow] {e}")
                return ResearchData(title=show_info.title)

            try:
                data = parse_research_response(response, show_info)
            except ValueError as e:
                # json.JSONDecodeError is a ValueError
                console.print(f"[yellow]Could not parse research response:[/yellow] {e}")
                return ResearchData(title=show_info.title)

            self.store.put(key, data)
            return data
