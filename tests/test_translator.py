"""Tests for the batch translation orchestrator with a fake LLM."""

import asyncio
import dataclasses
from unittest.mock import patch

import pytest
from conftest import FakeLLM, make_cues, numbered_inputs

from subai.core.config import SubAIConfig
from subai.core.events import ProgressReporter, ProgressStage
from subai.core.jobs import TranslationJob
from subai.llm.translator import (
    BatchOrchestrator,
    build_tier,
    concurrency_for,
    partition,
)


def _orchestrator(config: SubAIConfig, llm, tier: str = "premium") -> BatchOrchestrator:
    return BatchOrchestrator(
        build_tier(tier, config), config.llm, config.translation, complete_fn=llm
    )


def _translate(orchestrator, cues, target="de", **kwargs):
    return asyncio.run(orchestrator.translate(cues, "en", target, **kwargs))


def _first_line(messages) -> str:
    return numbered_inputs(messages)[0][1]


class TestPartition:
    def test_67_cues_in_batches_of_25(self):
        batches = partition(make_cues(67), 25)
        assert [len(b) for b in batches] == [25, 25, 17]

    def test_exact_multiple(self):
        assert [len(b) for b in partition(make_cues(60), 30)] == [30, 30]

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            partition(make_cues(3), 0)

    @pytest.mark.parametrize(
        "batches,expected",
        [(1, 3), (3, 3), (9, 3), (12, 4), (15, 5), (18, 6), (40, 6)],
    )
    def test_concurrency_clamped(self, batches, expected):
        assert concurrency_for(batches, 3, 6) == expected

    def test_premium_ceiling(self):
        assert concurrency_for(40, 3, 5) == 5


class TestTiers:
    def test_fast_tier(self, config):
        tier = build_tier("fast", config)
        assert tier.model == config.llm.fast_model
        assert tier.batch_size == 30
        assert not tier.include_research
        assert not tier.trust_source_timing

    def test_premium_tier(self, config):
        tier = build_tier("premium", config)
        assert tier.model == config.llm.premium_model
        assert tier.batch_size == 25
        assert tier.include_research
        assert tier.trust_source_timing

    def test_unknown_tier(self, config):
        with pytest.raises(ValueError, match="Unknown translation tier"):
            build_tier("deluxe", config)


class TestOrchestrator:
    def test_translates_every_cue(self, config, fake_llm):
        cues = make_cues(10)
        outcome = _translate(_orchestrator(config, fake_llm), cues)

        assert len(outcome.cues) == 10
        assert all(c.text.startswith("[tr] ") for c in outcome.cues)
        assert [c.original_text for c in outcome.cues] == [c.text for c in cues]
        assert outcome.failed_batches == []
        assert not outcome.tripped

    def test_does_not_mutate_input(self, config, fake_llm):
        cues = make_cues(5)
        _translate(_orchestrator(config, fake_llm), cues)
        assert cues[0].text == "Line 1 of the episode"

    def test_order_preserved_when_batches_finish_out_of_order(self, config):
        config.translation.premium_batch_size = 2

        async def slow_first(messages, cfg, model=None, **kwargs):
            # Earlier batches answer later
            first = int(_first_line(messages).split()[1])
            await asyncio.sleep(0.05 / first)
            return "\n".join(f"{n}. [tr] {t}" for n, t in numbered_inputs(messages))

        cues = make_cues(12)
        outcome = _translate(_orchestrator(config, slow_first), cues)

        assert [c.index for c in outcome.cues] == [c.index for c in cues]
        assert [c.text for c in outcome.cues] == [f"[tr] {c.text}" for c in cues]

    def test_67_cues_with_middle_batch_failing(self, config):
        llm = FakeLLM(fail_when=lambda m: _first_line(m) == "Line 26 of the episode")
        cues = make_cues(67)
        outcome = _translate(_orchestrator(config, llm), cues)

        assert len(outcome.cues) == 67
        assert [c.index for c in outcome.cues] == list(range(1, 68))
        assert outcome.failed_batches == [1]
        assert not outcome.tripped
        for cue in outcome.cues[25:50]:
            assert cue.text == cue.original_text
        assert all(c.text.startswith("[tr] ") for c in outcome.cues[:25] + outcome.cues[50:])

    def test_single_wave_for_three_batches(self, config, fake_llm):
        _translate(_orchestrator(config, fake_llm), make_cues(67))
        assert len(fake_llm.calls) == 3

    def test_retries_before_counting_failure(self, config):
        attempts = {"n": 0}

        def flaky(messages):
            attempts["n"] += 1
            return attempts["n"] < 3

        llm = FakeLLM(fail_when=flaky)
        outcome = _translate(_orchestrator(config, llm), make_cues(4))

        assert outcome.failed_batches == []
        assert len(llm.calls) == 3
        assert outcome.cues[0].text == "[tr] Line 1 of the episode"

    def test_all_batches_fail_keeps_length(self, config):
        config.translation.max_retries = 1
        llm = FakeLLM(fail_when=lambda m: True)
        cues = make_cues(40)
        outcome = _translate(_orchestrator(config, llm), cues)

        assert len(outcome.cues) == 40
        assert [c.text for c in outcome.cues] == [c.text for c in cues]

    def test_circuit_breaker_stops_provider_calls(self, config):
        config.translation.max_retries = 1
        config.translation.premium_batch_size = 2
        llm = FakeLLM(fail_when=lambda m: True)
        # 10 batches, 3 per wave: the second wave brings the streak to 6
        outcome = _translate(_orchestrator(config, llm), make_cues(20))

        assert outcome.tripped
        assert outcome.provider_calls == 6
        assert len(llm.calls) == 6
        assert len(outcome.cues) == 20

    def test_breaker_message_names_threshold(self, config):
        config.translation.max_retries = 1
        config.translation.premium_batch_size = 2
        llm = FakeLLM(fail_when=lambda m: True)
        with patch("subai.llm.translator.console") as mock_console:
            _translate(_orchestrator(config, llm), make_cues(20))

        printed = [str(c.args[0]) for c in mock_console.print.call_args_list if c.args]
        assert any("5 consecutive batch failures" in line for line in printed)

    def test_isolated_failures_do_not_trip(self, config):
        config.translation.max_retries = 1
        config.translation.premium_batch_size = 1
        # Every other batch fails, so the streak never exceeds one
        llm = FakeLLM(fail_when=lambda m: int(_first_line(m).split()[1]) % 2 == 0)
        outcome = _translate(_orchestrator(config, llm), make_cues(12))

        assert not outcome.tripped
        assert outcome.failed_batches == [1, 3, 5, 7, 9, 11]
        assert len(llm.calls) == 12

    def test_batch_timeout_counts_as_failure(self, config):
        config.translation.max_retries = 1
        config.translation.batch_timeout = 0.01
        llm = FakeLLM(delay=0.5)
        outcome = _translate(_orchestrator(config, llm), make_cues(3))

        assert outcome.failed_batches == [0]
        assert outcome.cues[0].text == "Line 1 of the episode"

    def test_missing_line_keeps_original(self, config):
        async def drops_second(messages, cfg, model=None, **kwargs):
            lines = numbered_inputs(messages)
            return "\n".join(f"{n}. [tr] {t}" for n, t in lines if t != "Line 2 of the episode")

        outcome = _translate(_orchestrator(config, drops_second), make_cues(3))
        assert outcome.cues[0].text == "[tr] Line 1 of the episode"
        assert outcome.cues[1].text == "Line 2 of the episode"
        assert outcome.cues[2].text == "[tr] Line 3 of the episode"

    def test_unnumbered_line_aligned_by_position(self, config):
        async def bad_numbering(messages, cfg, model=None, **kwargs):
            return "1. Eins\nZwei ohne Nummer\n3. Drei"

        outcome = _translate(_orchestrator(config, bad_numbering), make_cues(3))
        assert [c.text for c in outcome.cues] == ["Eins", "Zwei ohne Nummer", "Drei"]

    def test_fenced_unnumbered_reply_keeps_positions(self, config):
        calls = []

        async def fenced_then_numbered(messages, cfg, model=None, **kwargs):
            calls.append(messages)
            if len(calls) == 1:
                return "```\nEins\nZwei\n```"
            return "1. Drei"

        outcome = _translate(_orchestrator(config, fenced_then_numbered), make_cues(3))

        assert len(calls) == 2
        assert numbered_inputs(calls[1]) == [(1, "Line 3 of the episode")]
        assert [c.text for c in outcome.cues] == ["Eins", "Zwei", "Drei"]

    def test_preamble_before_reply_is_ignored(self, config):
        async def chatty(messages, cfg, model=None, **kwargs):
            return "Here are the translations:\n\nEins\nZwei"

        outcome = _translate(_orchestrator(config, chatty), make_cues(2))
        assert [c.text for c in outcome.cues] == ["Eins", "Zwei"]

    def test_blank_cue_not_retranslated(self, config, fake_llm):
        cues = make_cues(3)
        cues[1] = dataclasses.replace(cues[1], text="", original_text=None)
        outcome = _translate(_orchestrator(config, fake_llm), cues)

        assert len(fake_llm.calls) == 1
        assert outcome.cues[1].text == ""
        assert outcome.cues[2].text == "[tr] Line 3 of the episode"

    def test_multiline_cue_round_trips_line_breaks(self, config):
        seen = []

        async def echo(messages, cfg, model=None, **kwargs):
            seen.append(messages[-1]["content"])
            return "\n".join(f"{n}. {t}" for n, t in numbered_inputs(messages))

        cues = make_cues(1, text="First line\nSecond line")
        outcome = _translate(_orchestrator(config, echo), cues)

        assert "1. First line<br>Second line" in seen[0]
        assert outcome.cues[0].text == "First line\nSecond line"

    def test_context_in_premium_prompt(self, config, fake_llm):
        _translate(
            _orchestrator(config, fake_llm), make_cues(2), context="SHOW RESEARCH:\nTitle: Wednesday"
        )
        system = fake_llm.calls[0]["messages"][0]["content"]
        assert "Title: Wednesday" in system
        assert "EXACTLY 2 numbered lines" in system

    def test_untranslated_lines_retried_once(self, config):
        calls = []

        async def lazy_then_good(messages, cfg, model=None, **kwargs):
            calls.append(messages)
            lines = numbered_inputs(messages)
            if len(calls) == 1:
                # Echo the English back
                return "\n".join(f"{n}. {t}" for n, t in lines)
            return "\n".join(f"{n}. Přeložený řádek {n}" for n, _ in lines)

        outcome = _translate(_orchestrator(config, lazy_then_good), make_cues(2), target="cs")

        assert len(calls) == 2
        assert "strictly translate" in calls[1][0]["content"]
        assert [c.text for c in outcome.cues] == ["Přeložený řádek 1", "Přeložený řádek 2"]

    def test_failed_retranslation_keeps_first_pass(self, config):
        calls = []

        async def echo_then_fail(messages, cfg, model=None, **kwargs):
            calls.append(messages)
            if len(calls) > 1:
                raise RuntimeError("rate limited")
            return "\n".join(f"{n}. {t}" for n, t in numbered_inputs(messages))

        outcome = _translate(_orchestrator(config, echo_then_fail), make_cues(2), target="cs")
        assert outcome.failed_batches == []
        assert outcome.cues[0].text == "Line 1 of the episode"

    def test_progress_per_wave(self, config, fake_llm):
        config.translation.premium_batch_size = 1
        reporter = ProgressReporter(min_interval=0.0)
        _translate(
            _orchestrator(config, fake_llm),
            make_cues(6),
            reporter=reporter,
            progress_base=50,
            progress_span=40,
        )
        values = [e.progress for e in reporter.history if e.stage == ProgressStage.TRANSLATING]
        assert values == [70.0, 90.0]


class TestCancellation:
    def test_cancelled_before_start(self, config, fake_llm):
        job = TranslationJob()
        job.cancel()
        cues = make_cues(5)
        outcome = _translate(_orchestrator(config, fake_llm), cues, job=job)

        assert outcome.cancelled
        assert fake_llm.calls == []
        assert [c.text for c in outcome.cues] == [c.text for c in cues]

    def test_cancel_during_wave_discards_results(self, config):
        config.translation.premium_batch_size = 1
        job = TranslationJob()
        job.start()
        calls = []

        async def cancels(messages, cfg, model=None, **kwargs):
            calls.append(messages)
            job.cancel()
            return "\n".join(f"{n}. [tr] {t}" for n, t in numbered_inputs(messages))

        outcome = _translate(_orchestrator(config, cancels), make_cues(9), job=job)

        assert outcome.cancelled
        # Only the first wave was dispatched
        assert len(calls) == 3
        assert all(not c.text.startswith("[tr]") for c in outcome.cues)
        assert len(outcome.cues) == 9
