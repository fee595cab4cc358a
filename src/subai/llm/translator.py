"""Batch translation orchestrator.

Cues are partitioned into fixed-size batches, and batches are dispatched in
waves of at most ``concurrency`` concurrent LLM calls. Each wave is fully
awaited before the next one starts, which bounds in-flight requests and
gives the consecutive-failure circuit breaker a single place to look.

Every batch carries its partition position; final reassembly sorts by that
position, so output order is input order whatever order the calls finish in.
"""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from subai.core.config import LLMConfig, SubAIConfig, TranslationConfig
from subai.core.events import ProgressReporter, ProgressStage
from subai.core.jobs import TranslationJob
from subai.core.languages import language_name
from subai.core.models import BatchResult, SubtitleCue
from subai.llm.client import complete
from subai.llm.prompts import (
    FAST_TRANSLATION_SYSTEM,
    FORMAT_RULES,
    LINE_BREAK_TOKEN,
    PREMIUM_TRANSLATION_SYSTEM,
    RETRANSLATE_SYSTEM,
    TRANSLATION_USER,
    MalformedResponse,
    align_response,
    format_numbered_segments,
    parse_numbered_response,
)
from subai.llm.validators import get_validator, quality_issues
from subai.utils.console import console

CompleteFn = Callable[..., Awaitable[str]]

TOKENS_PER_LINE = 200


@dataclass(frozen=True)
class TranslationTier:
    """Model and prompt choices for one service tier.

    The orchestration itself is the same for every tier.
    """

    name: str
    model: str
    system_template: str
    include_research: bool
    batch_size: int
    max_concurrency: int
    trust_source_timing: bool


def build_tier(name: str, config: SubAIConfig) -> TranslationTier:
    """Build the "fast" or "premium" tier from configuration."""
    tc = config.translation
    if name == "fast":
        return TranslationTier(
            name="fast",
            model=config.llm.fast_model,
            system_template=FAST_TRANSLATION_SYSTEM,
            include_research=False,
            batch_size=tc.fast_batch_size,
            max_concurrency=tc.fast_max_concurrency,
            trust_source_timing=False,
        )
    if name == "premium":
        return TranslationTier(
            name="premium",
            model=config.llm.premium_model,
            system_template=PREMIUM_TRANSLATION_SYSTEM,
            include_research=True,
            batch_size=tc.premium_batch_size,
            max_concurrency=tc.premium_max_concurrency,
            trust_source_timing=True,
        )
    raise ValueError(f"Unknown translation tier: '{name}'. Choose 'fast' or 'premium'.")


def partition(cues: list[SubtitleCue], batch_size: int) -> list[list[SubtitleCue]]:
    """Split cues into contiguous batches of ``batch_size`` (the last may be shorter)."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [cues[i : i + batch_size] for i in range(0, len(cues), batch_size)]


def concurrency_for(batch_count: int, minimum: int, maximum: int) -> int:
    """Wave width: a third of the batch count, clamped to [minimum, maximum]."""
    return max(minimum, min(maximum, batch_count // 3))


@dataclass
class OrchestratorOutcome:
    """Reassembled cues plus what went wrong on the way."""

    cues: list[SubtitleCue]
    failed_batches: list[int] = field(default_factory=list)
    tripped: bool = False
    cancelled: bool = False
    provider_calls: int = 0


class BatchOrchestrator:
    """Translates cues through the LLM in barrier-synchronized waves."""

    def __init__(
        self,
        tier: TranslationTier,
        llm_config: LLMConfig,
        translation_config: TranslationConfig,
        complete_fn: CompleteFn = complete,
    ) -> None:
        self.tier = tier
        self.llm_config = llm_config
        self.config = translation_config
        self._complete = complete_fn
        self.provider_calls = 0

    async def translate(
        self,
        cues: list[SubtitleCue],
        source_lang: str,
        target_lang: str,
        context: str | None = None,
        reporter: ProgressReporter | None = None,
        job: TranslationJob | None = None,
        progress_base: float = 55.0,
        progress_span: float = 35.0,
    ) -> OrchestratorOutcome:
        """Translate ``cues`` and return them in input order.

        Never raises for provider problems: a failed batch keeps its original
        text, and after ``failure_threshold`` consecutive failed batches no
        further waves are dispatched and the outcome is marked ``tripped``.
        A cancelled job stops between waves and returns the cues untouched.

        Args:
            cues: Cues to translate, in order.
            source_lang: Source language code.
            target_lang: Target language code.
            context: Optional preamble folded into every batch prompt.
            reporter: Progress producer for this job.
            job: Job handle checked for cancellation between waves.
            progress_base: Overall progress when translation starts.
            progress_span: Share of overall progress covered by translation.
        """
        batches = partition(cues, self.tier.batch_size)
        total = len(batches)
        concurrency = concurrency_for(total, self.config.min_concurrency, self.tier.max_concurrency)
        console.print(
            f"[bold]Translating[/bold] {len(cues)} cues in {total} batches "
            f"[dim]({concurrency} parallel, {self.tier.name} tier)[/dim]"
        )

        results: list[BatchResult] = []
        failed: list[int] = []
        consecutive_failures = 0
        tripped = False

        for wave_start in range(0, total, concurrency):
            if job is not None and job.cancelled:
                return self._cancelled(cues)

            wave = batches[wave_start : wave_start + concurrency]
            wave_results = await asyncio.gather(
                *(
                    self._run_batch(wave_start + j, batch, source_lang, target_lang, context)
                    for j, batch in enumerate(wave)
                )
            )

            # Results that finish after a cancel are discarded
            if job is not None and job.cancelled:
                return self._cancelled(cues)

            for result in sorted(wave_results, key=lambda r: r.batch_index):
                if result.failed:
                    failed.append(result.batch_index)
                    consecutive_failures += 1
                    if consecutive_failures >= self.config.failure_threshold:
                        tripped = True
                else:
                    consecutive_failures = 0
            results.extend(wave_results)

            if reporter is not None:
                done = len(results)
                reporter.emit(
                    ProgressStage.TRANSLATING,
                    progress_base + done / total * progress_span,
                    f"Completed {done}/{total} batches ({concurrency} parallel)",
                )

            if tripped:
                console.print(
                    f"[red]{self.config.failure_threshold} consecutive batch failures, "
                    "stopping provider calls.[/red]"
                )
                break

            if wave_start + concurrency < total and self.config.wave_delay > 0:
                await asyncio.sleep(self.config.wave_delay)

        # Batches never dispatched after a trip keep their original text
        done_indices = {r.batch_index for r in results}
        for index, batch in enumerate(batches):
            if index not in done_indices:
                results.append(BatchResult(index, [dataclasses.replace(c) for c in batch], True))

        results.sort(key=lambda r: r.batch_index)
        translated = [cue for result in results for cue in result.cues]
        return OrchestratorOutcome(
            cues=translated,
            failed_batches=sorted(failed),
            tripped=tripped,
            provider_calls=self.provider_calls,
        )

    def _cancelled(self, cues: list[SubtitleCue]) -> OrchestratorOutcome:
        console.print("[yellow]Translation cancelled.[/yellow]")
        return OrchestratorOutcome(
            cues=[dataclasses.replace(c) for c in cues],
            cancelled=True,
            provider_calls=self.provider_calls,
        )

    async def _run_batch(
        self,
        batch_index: int,
        batch: list[SubtitleCue],
        source_lang: str,
        target_lang: str,
        context: str | None,
    ) -> BatchResult:
        """Translate one batch with retries; never raises."""
        last_error: Exception | None = None
        for attempt in range(1, self.config.max_retries + 1):
            try:
                cues = await asyncio.wait_for(
                    self._translate_batch(batch, source_lang, target_lang, context),
                    timeout=self.config.batch_timeout,
                )
                return BatchResult(batch_index=batch_index, cues=cues)
            except Exception as e:
                last_error = e
                console.print(
                    f"[yellow]Batch {batch_index + 1} attempt {attempt}/"
                    f"{self.config.max_retries} failed:[/yellow] {e!r}"
                )
                if attempt < self.config.max_retries:
                    delay = min(
                        self.config.retry_base_delay * 2 ** (attempt - 1),
                        self.config.retry_max_delay,
                    )
                    if delay > 0:
                        await asyncio.sleep(delay)

        console.print(
            f"[yellow]Batch {batch_index + 1} failed, keeping original text:[/yellow] {last_error}"
        )
        return BatchResult(
            batch_index=batch_index,
            cues=[dataclasses.replace(c) for c in batch],
            failed=True,
        )

    def _system_prompt(
        self, source_name: str, target_name: str, context: str | None, count: int
    ) -> str:
        format_rules = FORMAT_RULES.format(count=count, line_break=LINE_BREAK_TOKEN)
        return self.tier.system_template.format(
            source_lang=source_name,
            target_lang=target_name,
            context=context or "No additional show context available.",
            format_rules=format_rules,
        )

    async def _call(self, messages: list[dict[str, str]], count: int) -> str:
        self.provider_calls += 1
        return await self._complete(
            messages,
            self.llm_config,
            model=self.tier.model,
            max_tokens=min(self.llm_config.max_tokens, max(count, 1) * TOKENS_PER_LINE),
        )

    async def _translate_batch(
        self,
        batch: list[SubtitleCue],
        source_lang: str,
        target_lang: str,
        context: str | None,
    ) -> list[SubtitleCue]:
        source_name = language_name(source_lang).title()
        target_name = language_name(target_lang).title()
        originals = [cue.original_text or cue.text for cue in batch]

        messages = [
            {
                "role": "system",
                "content": self._system_prompt(source_name, target_name, context, len(batch)),
            },
            {
                "role": "user",
                "content": TRANSLATION_USER.format(
                    count=len(batch),
                    source_lang=source_name,
                    target_lang=target_name,
                    numbered_segments=format_numbered_segments(originals),
                ),
            },
        ]
        response = await self._call(messages, len(batch))

        parsed = parse_numbered_response(response, len(batch))
        if isinstance(parsed, MalformedResponse):
            console.print(
                f"[yellow]Malformed response for {len(batch)} lines, "
                "recovering by position.[/yellow]"
            )
        alignment = align_response(parsed, len(batch))
        if alignment.repaired:
            console.print(
                f"[dim]Aligned {len(alignment.repaired)} unnumbered line(s) by position.[/dim]"
            )

        texts = list(alignment.texts)
        validator = get_validator(target_lang)
        # Blank source lines have nothing to re-translate
        retry_positions = [
            i
            for i, text in enumerate(texts)
            if originals[i].strip()
            and (not text or (validator is not None and validator(originals[i], text)))
        ]

        if retry_positions:
            fixes = await self._retranslate(
                [originals[i] for i in retry_positions], source_name, target_name
            )
            for k, position in enumerate(retry_positions):
                if fixes[k]:
                    texts[position] = fixes[k]

        # A line still missing keeps its original text
        final = [text if text else original for text, original in zip(texts, originals)]

        issues = quality_issues(originals, final, target_lang)
        if issues:
            console.print(f"[dim]Quality issues: {'; '.join(issues[:3])}[/dim]")

        return [dataclasses.replace(cue, text=text) for cue, text in zip(batch, final)]

    async def _retranslate(
        self, texts: list[str], source_name: str, target_name: str
    ) -> list[str | None]:
        """Second pass for missing or suspect lines; failures keep the first pass."""
        console.print(f"[dim]Re-translating {len(texts)} missing/untranslated line(s)...[/dim]")
        messages = [
            {
                "role": "system",
                "content": RETRANSLATE_SYSTEM.format(
                    source_lang=source_name,
                    target_lang=target_name,
                    line_break=LINE_BREAK_TOKEN,
                ),
            },
            {
                "role": "user",
                "content": "Translate the following lines:\n\n" + format_numbered_segments(texts),
            },
        ]
        try:
            response = await self._call(messages, len(texts))
        except Exception as e:
            console.print(f"[yellow]Re-translation failed, keeping first pass:[/yellow] {e}")
            return [None] * len(texts)

        alignment = align_response(parse_numbered_response(response, len(texts)), len(texts))
        return alignment.texts
