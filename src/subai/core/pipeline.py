"""Pipeline orchestrator: show info, research, content analysis, translate, re-time."""

from __future__ import annotations

import asyncio
import dataclasses
import json
from pathlib import Path

from subai.context.analyzer import analyze_content, build_context_preamble, content_report
from subai.context.research import ResearchEngine, ResearchStore
from subai.context.showinfo import describe_release, extract_show_info
from subai.core.config import SubAIConfig, load_config
from subai.core.events import EventCallback, ProgressReporter, ProgressStage
from subai.core.jobs import JobStatus, TranslationJob
from subai.core.languages import language_name, validate_language
from subai.core.models import ResearchData, ShowInfo, SubtitleCue, TranslationResult
from subai.llm.client import complete, has_provider
from subai.llm.mock import MockTranslator
from subai.llm.translator import BatchOrchestrator, CompleteFn, TranslationTier, build_tier
from subai.subtitles.converter import load_subtitles, save_bilingual_vtt, save_subtitles
from subai.subtitles.timing import adjust_cue_timing
from subai.utils.console import console


class EmptySubtitleError(ValueError):
    """Raised when there is nothing to translate."""


# (start, done) progress of the pre-translation stages, per tier shape
_PREMIUM_PROGRESS = {"analyzing": (10, 15), "researching": (20, 40), "content": (45, 50)}
_FAST_PROGRESS = {"analyzing": (5, 10), "content": (15, 20)}
_FINALIZING_PROGRESS = 95


async def translate_cues(
    cues: list[SubtitleCue],
    source_lang: str | None = None,
    target_lang: str | None = None,
    config: SubAIConfig | None = None,
    *,
    file_name: str | None = None,
    tier: str | None = None,
    on_event: EventCallback | None = None,
    job: TranslationJob | None = None,
    research_store: ResearchStore | None = None,
    complete_fn: CompleteFn = complete,
) -> TranslationResult:
    """Translate subtitle cues with show context and re-time them.

    Always returns one output cue per input cue. Provider trouble degrades
    to the fallback translator (``degraded=True``) rather than raising.

    Args:
        cues: Parsed cues, in order.
        source_lang: Source language code (default from config).
        target_lang: Target language code (default from config).
        config: Application config (loaded from disk when omitted).
        file_name: Original file name, used only to derive show context.
        tier: "fast" or "premium" (default from config).
        on_event: Progress consumer.
        job: Job handle for cooperative cancellation.
        research_store: Research cache shared between jobs.
        complete_fn: LLM completion function.

    Returns:
        TranslationResult with original and translated cues.

    Raises:
        EmptySubtitleError: If ``cues`` is empty.
        ValueError: On an unknown language code or tier.
    """
    if not cues:
        raise EmptySubtitleError("No subtitle cues to translate")

    if config is None:
        config = load_config()
    source_lang = validate_language(source_lang or config.source_language)
    target_lang = validate_language(target_lang or config.target_language)
    tier_config = build_tier(tier or config.default_tier, config)

    if job is None:
        job = TranslationJob()
    job.start()

    reporter = ProgressReporter(on_event, min_interval=config.translation.progress_interval)
    reporter.emit(
        ProgressStage.INITIALIZING,
        0,
        f"Starting {tier_config.name} translation to {language_name(target_lang).title()}...",
    )

    show_info = extract_show_info(file_name)
    result = TranslationResult(
        original=cues,
        translated=[],
        source_language=source_lang,
        target_language=target_lang,
        tier=tier_config.name,
        show_info=show_info,
    )

    try:
        if not has_provider(config.llm, tier_config.model):
            console.print(f"[yellow]No API key configured for {tier_config.model}.[/yellow]")
            return await _fallback(result, config, reporter, job, file_name)

        await _translate_with_provider(
            result, tier_config, config, reporter, job, file_name, research_store, complete_fn
        )
    except Exception as e:
        reporter.emit(ProgressStage.ERROR, reporter.last_progress, f"Translation failed: {e}")
        job.finish(JobStatus.FAILED)
        raise

    if result.cancelled:
        reporter.emit(ProgressStage.ERROR, reporter.last_progress, "Translation cancelled")
        return result
    if result.degraded:
        return await _fallback(result, config, reporter, job, file_name)

    reporter.emit(ProgressStage.FINALIZING, _FINALIZING_PROGRESS, "Adjusting subtitle timing...")
    result.translated = [
        adjust_cue_timing(cue, source_lang, target_lang, tier_config.trust_source_timing)
        for cue in result.translated
    ]
    reporter.emit(
        ProgressStage.COMPLETED,
        100,
        f"Translated {len(result.translated)} subtitles with {tier_config.name} tier",
    )
    job.finish(JobStatus.COMPLETED)
    console.print(f"[green]Translation complete:[/green] {len(result.translated)} cues")
    return result


async def _translate_with_provider(
    result: TranslationResult,
    tier_config: TranslationTier,
    config: SubAIConfig,
    reporter: ProgressReporter,
    job: TranslationJob,
    file_name: str | None,
    research_store: ResearchStore | None,
    complete_fn: CompleteFn,
) -> None:
    cues = result.original
    show_info = result.show_info or ShowInfo(title="Unknown")
    schedule = _PREMIUM_PROGRESS if tier_config.include_research else _FAST_PROGRESS

    start, done = schedule["analyzing"]
    reporter.emit(ProgressStage.ANALYZING, start, f"Analyzing filename {file_name or 'unknown'!r}...")
    analysis = {
        "title": show_info.title,
        "season": show_info.season,
        "episode": show_info.episode,
        "year": show_info.year,
        **describe_release(file_name),
    }
    reporter.emit(ProgressStage.ANALYZING, done, json.dumps(analysis), force=True)

    if job.cancelled:
        result.cancelled = True
        result.translated = [dataclasses.replace(c) for c in cues]
        job.finish(JobStatus.CANCELLED)
        return

    research: ResearchData | None = None
    if tier_config.include_research:
        start, done = schedule["researching"]
        reporter.emit(
            ProgressStage.RESEARCHING,
            start,
            f"Researching {show_info.query()!r} for contextual information...",
        )
        engine = ResearchEngine(config.llm, store=research_store, complete_fn=complete_fn)
        research = await engine.research(show_info)
        result.research = research
        reporter.emit(
            ProgressStage.RESEARCHING, done, json.dumps(research.to_dict()), force=True
        )

    start, done = schedule["content"]
    reporter.emit(ProgressStage.ANALYZING_CONTENT, start, "Analyzing subtitle content and themes...")
    result.stats = analyze_content(cues)
    reporter.emit(
        ProgressStage.ANALYZING_CONTENT, done, json.dumps(content_report(cues, research)), force=True
    )

    context = build_context_preamble(research, cues) if research is not None else None
    orchestrator = BatchOrchestrator(tier_config, config.llm, config.translation, complete_fn=complete_fn)
    timeout = config.translation.file_timeout(len(cues))
    reporter.emit(ProgressStage.TRANSLATING, done, f"Translating {len(cues)} subtitles...")
    try:
        outcome = await asyncio.wait_for(
            orchestrator.translate(
                cues,
                result.source_language,
                result.target_language,
                context=context,
                reporter=reporter,
                job=job,
                progress_base=done,
                progress_span=_FINALIZING_PROGRESS - 5 - done,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        console.print(f"[red]Translation exceeded {timeout:.0f}s, using fallback.[/red]")
        result.degraded = True
        return

    if outcome.cancelled:
        result.cancelled = True
        result.translated = outcome.cues
        job.finish(JobStatus.CANCELLED)
    elif outcome.tripped:
        # Fallback output replaces every batch
        result.degraded = True
    else:
        result.failed_batches = outcome.failed_batches
        result.translated = outcome.cues


async def _fallback(
    result: TranslationResult,
    config: SubAIConfig,
    reporter: ProgressReporter,
    job: TranslationJob,
    file_name: str | None,
) -> TranslationResult:
    """Finish the job with the mock translator; never fails."""
    mock = MockTranslator(delay_scale=config.translation.mock_phase_delay_scale)
    result.translated = await mock.translate(
        result.original,
        result.target_language,
        result.show_info or ShowInfo(title="Unknown"),
        file_name=file_name,
        reporter=reporter,
    )
    result.degraded = True
    reporter.emit(
        ProgressStage.COMPLETED,
        100,
        f"Translated {len(result.translated)} subtitles with fallback translator",
    )
    job.finish(JobStatus.COMPLETED)
    return result


def translate_file(
    input_path: Path,
    output_path: Path | None = None,
    config: SubAIConfig | None = None,
    source_lang: str | None = None,
    target_lang: str | None = None,
    tier: str | None = None,
    fmt: str | None = None,
    bilingual: bool = False,
    on_event: EventCallback | None = None,
    research_store: ResearchStore | None = None,
) -> tuple[TranslationResult, Path]:
    """Load a subtitle file, translate it, and save the result.

    The output defaults to ``<stem>.<target>.<ext>`` next to the input.

    Returns:
        The translation result and the path that was written.
    """
    input_path = Path(input_path)
    if not input_path.is_file():
        raise FileNotFoundError(f"File not found: {input_path}")

    if config is None:
        config = load_config()
    target = target_lang or config.target_language
    fmt = fmt or input_path.suffix.lstrip(".").lower() or "srt"

    cues = load_subtitles(input_path)
    result = asyncio.run(
        translate_cues(
            cues,
            source_lang,
            target,
            config,
            file_name=input_path.name,
            tier=tier,
            on_event=on_event,
            research_store=research_store,
        )
    )

    if bilingual:
        output_path = output_path or input_path.with_name(f"{input_path.stem}.{target}.bilingual.vtt")
        save_bilingual_vtt(result.translated, output_path)
    else:
        output_path = output_path or input_path.with_name(f"{input_path.stem}.{target}.{fmt}")
        save_subtitles(result.translated, output_path, fmt=fmt)
    return result, Path(output_path)
