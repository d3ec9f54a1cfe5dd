"""
Tests for change detection and catalog assembly.

Tests cover:
- Content hashing: stable under alias / provider reordering
- Classification: new, changed, unchanged, missing
- Step dispatch: unchanged models never reach new-and-changed steps,
  batch steps run after every per-model step, output-structure steps
  run every run
- Assembly: sorted by id, deprecated models kept
- Failure: any step error aborts with EnrichmentError, input hash map untouched

Run with: pytest tests/test_processor.py -v

No API keys required: steps are local recording functions.
"""

from datetime import datetime, timezone

import pytest

from conftest import make_model, make_offering, make_processed

from model_catalog.errors import EnrichmentError
from model_catalog.models import CatalogStructure, ProcessedModel
from model_catalog.reconciliation.processor import (
    CatalogProcessor,
    ChangeStatus,
    ProcessingSteps,
    content_hash,
)


# =============================================================================
# Fixtures
# =============================================================================


FIXED_NOW = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)


class StepRecorder:
    """Collects the order in which steps were called."""

    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def model_step(self, label: str):
        async def step(source, previous, model, context):
            self.calls.append((label, model.id))
            return model.model_copy(update={'name': f"{model.name}+{label}"})

        step.__name__ = label
        return step

    def batch_step(self, label: str):
        async def step(models, context):
            self.calls.append((label, ','.join(m.id for m in models)))
            return models

        step.__name__ = label
        return step

    def no_change_step(self, label: str):
        async def step(source, previous, context):
            self.calls.append((label, previous.id))
            return previous.model_copy(update={'name': f"{previous.name}+{label}"})

        step.__name__ = label
        return step

    def output_step(self, label: str):
        async def step(structure, context):
            self.calls.append((label, str(len(structure.models))))
            return structure

        step.__name__ = label
        return step


@pytest.fixture
def recorder() -> StepRecorder:
    return StepRecorder()


def _processor(steps: ProcessingSteps, step_context) -> CatalogProcessor:
    return CatalogProcessor(steps, step_context, clock=lambda: FIXED_NOW)


async def _first_run(processor: CatalogProcessor, sources):
    return await processor.process(sources, CatalogStructure(), {})


# =============================================================================
# Content hashing
# =============================================================================


class TestContentHash:
    """Test canonical serialization hashing."""

    def test_hash_is_stable_across_orderings(self):
        first = make_model(
            "gpt-4o",
            aliases=["openai/gpt-4o", "gpt4o"],
            providers=[make_offering("openai"), make_offering("azure")],
        )
        second = make_model(
            "gpt-4o",
            aliases=["gpt4o", "openai/gpt-4o"],
            providers=[make_offering("azure"), make_offering("openai")],
        )

        assert content_hash(first) == content_hash(second)

    def test_hash_changes_with_content(self):
        assert content_hash(make_model("gpt-4o")) != content_hash(
            make_model("gpt-4o", providers=[make_offering("openai", input_price="1.50")])
        )

    def test_hash_is_sha256_hex(self):
        digest = content_hash(make_model("gpt-4o"))

        assert len(digest) == 64
        int(digest, 16)


# =============================================================================
# Classification
# =============================================================================


class TestClassification:
    """Test new / changed / unchanged / missing classification."""

    @pytest.mark.asyncio
    async def test_new_model(self, recorder, step_context):
        steps = ProcessingSteps(new_and_changed=[recorder.model_step("describe")])
        source = make_model("gpt-4o")

        result = await _first_run(_processor(steps, step_context), [source])

        assert result.classifications == {"gpt-4o": ChangeStatus.NEW}
        assert result.hashes == {"gpt-4o": content_hash(source)}
        model = result.catalog.models[0]
        assert model.last_imported_at == FIXED_NOW
        assert model.deprecated is False
        assert model.name == "GPT-4O+describe"

    @pytest.mark.asyncio
    async def test_unchanged_model_skips_enrichment(self, recorder, step_context):
        steps = ProcessingSteps(new_and_changed=[recorder.model_step("describe")])
        processor = _processor(steps, step_context)
        source = make_model("gpt-4o")

        first = await _first_run(processor, [source])
        recorder.calls.clear()
        second = await processor.process([source], first.catalog, first.hashes)

        assert recorder.calls == []
        assert second.classifications == {"gpt-4o": ChangeStatus.UNCHANGED}
        assert second.catalog.models == first.catalog.models
        assert second.hashes == first.hashes

    @pytest.mark.asyncio
    async def test_changed_model_sees_previous_record(self, step_context):
        seen: list[ProcessedModel | None] = []

        async def remember_previous(source, previous, model, context):
            seen.append(previous)
            return model

        processor = _processor(ProcessingSteps(new_and_changed=[remember_previous]), step_context)
        first = await _first_run(processor, [make_model("gpt-4o")])

        changed = make_model("gpt-4o", description="Now with a description")
        second = await processor.process([changed], first.catalog, first.hashes)

        assert second.classifications == {"gpt-4o": ChangeStatus.CHANGED}
        assert seen[0] is None
        assert seen[1].id == "gpt-4o"
        assert second.hashes["gpt-4o"] == content_hash(changed)

    @pytest.mark.asyncio
    async def test_known_id_without_hash_is_changed(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)
        catalog = CatalogStructure(models=[make_processed("gpt-4o")])

        result = await processor.process([make_model("gpt-4o")], catalog, {})

        assert result.classifications == {"gpt-4o": ChangeStatus.CHANGED}

    @pytest.mark.asyncio
    async def test_missing_model_is_deprecated_and_kept(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)
        catalog = CatalogStructure(models=[make_processed("old-model"), make_processed("gpt-4o")])
        hashes = {"old-model": "abc", "gpt-4o": "def"}

        result = await processor.process([make_model("gpt-4o")], catalog, hashes)

        assert result.classifications["old-model"] == ChangeStatus.MISSING
        old = next(m for m in result.catalog.models if m.id == "old-model")
        assert old.deprecated is True
        assert result.hashes["old-model"] == "abc"
        assert result.deprecated_ids == ["old-model"]

    @pytest.mark.asyncio
    async def test_returning_model_is_no_longer_deprecated(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)
        source = make_model("gpt-4o")
        first = await _first_run(processor, [source])

        gone = await processor.process([], first.catalog, first.hashes)
        back = await processor.process([source], gone.catalog, gone.hashes)

        assert gone.catalog.models[0].deprecated is True
        assert back.classifications == {"gpt-4o": ChangeStatus.UNCHANGED}
        assert back.catalog.models[0].deprecated is False


# =============================================================================
# Step dispatch
# =============================================================================


class TestStepDispatch:
    """Test which steps run when, and in which order."""

    @pytest.mark.asyncio
    async def test_model_steps_chain_in_order(self, recorder, step_context):
        steps = ProcessingSteps(
            new_and_changed=[recorder.model_step("first"), recorder.model_step("second")],
        )

        result = await _first_run(_processor(steps, step_context), [make_model("m")])

        assert result.catalog.models[0].name == "M+first+second"

    @pytest.mark.asyncio
    async def test_batch_steps_run_after_all_model_steps(self, recorder, step_context):
        steps = ProcessingSteps(
            new_and_changed=[recorder.model_step("describe")],
            batch=[recorder.batch_step("translate")],
        )

        await _first_run(_processor(steps, step_context), [make_model("a"), make_model("b")])

        assert recorder.calls == [
            ("describe", "a"),
            ("describe", "b"),
            ("translate", "a,b"),
        ]

    @pytest.mark.asyncio
    async def test_batch_steps_only_see_new_and_changed(self, recorder, step_context):
        steps = ProcessingSteps(batch=[recorder.batch_step("translate")])
        processor = _processor(steps, step_context)
        first = await _first_run(processor, [make_model("a")])
        recorder.calls.clear()

        await processor.process([make_model("a"), make_model("b")], first.catalog, first.hashes)

        assert recorder.calls == [("translate", "b")]

    @pytest.mark.asyncio
    async def test_no_change_steps_run_for_unchanged_only(self, recorder, step_context):
        steps = ProcessingSteps(
            new_and_changed=[recorder.model_step("describe")],
            no_change=[recorder.no_change_step("reprice")],
        )
        processor = _processor(steps, step_context)
        first = await _first_run(processor, [make_model("a")])
        recorder.calls.clear()

        second = await processor.process([make_model("a"), make_model("b")], first.catalog, first.hashes)

        assert recorder.calls == [("reprice", "a"), ("describe", "b")]
        by_id = {m.id: m for m in second.catalog.models}
        assert by_id["a"].name == "A+describe+reprice"

    @pytest.mark.asyncio
    async def test_output_steps_run_every_time(self, recorder, step_context):
        steps = ProcessingSteps(output_structure=[recorder.output_step("directory")])
        processor = _processor(steps, step_context)
        first = await _first_run(processor, [make_model("a")])

        await processor.process([make_model("a")], first.catalog, first.hashes)

        assert recorder.calls == [("directory", "1"), ("directory", "1")]


# =============================================================================
# Assembly and failure
# =============================================================================


class TestAssembly:
    """Test the assembled catalog."""

    @pytest.mark.asyncio
    async def test_sorted_by_id(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)
        catalog = CatalogStructure(models=[make_processed("m-old")])

        result = await processor.process(
            [make_model("zeta"), make_model("alpha"), make_model("mid")],
            catalog,
            {},
        )

        assert [m.id for m in result.catalog.models] == ["alpha", "m-old", "mid", "zeta"]

    @pytest.mark.asyncio
    async def test_provider_directory_preserved(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)
        catalog = CatalogStructure.model_validate({"models": [], "providers": [{"id": "openai", "name": "OpenAI"}]})

        result = await processor.process([make_model("a")], catalog, {})

        assert [p.id for p in result.catalog.providers] == ["openai"]

    @pytest.mark.asyncio
    async def test_result_summary(self, step_context):
        processor = _processor(ProcessingSteps(), step_context)

        result = await _first_run(processor, [make_model("a"), make_model("b")])

        assert result.to_dict() == {
            'total_models': 2,
            'total_providers': 0,
            'new': 2,
            'changed': 0,
            'unchanged': 0,
            'deprecated': 0,
        }


class TestFailure:
    """Test all-or-nothing failure semantics."""

    @pytest.mark.asyncio
    async def test_model_step_failure_names_model_and_step(self, step_context):
        async def broken_step(source, previous, model, context):
            raise RuntimeError("boom")

        processor = _processor(ProcessingSteps(new_and_changed=[broken_step]), step_context)
        hashes = {"other": "123"}

        with pytest.raises(EnrichmentError) as exc_info:
            await processor.process([make_model("gpt-4o")], CatalogStructure(), hashes)

        assert exc_info.value.context == {'step': 'broken_step', 'model_id': 'gpt-4o'}
        assert "gpt-4o" in str(exc_info.value)
        assert hashes == {"other": "123"}

    @pytest.mark.asyncio
    async def test_batch_step_failure(self, step_context):
        async def broken_batch(models, context):
            raise ValueError("bad batch")

        processor = _processor(ProcessingSteps(batch=[broken_batch]), step_context)

        with pytest.raises(EnrichmentError) as exc_info:
            await processor.process([make_model("a")], CatalogStructure(), {})

        assert exc_info.value.context['step'] == 'broken_batch'
        assert exc_info.value.context['model_id'] is None
