"""Tests for inline ghost-text suggestions."""
from __future__ import annotations

import asyncio

import pytest

from deepflow.core.document import Document
from deepflow.editor.buffer import EditorBuffer
from deepflow.editor.debounce import DebounceController
from deepflow.editor.ghost import GHOST_KEY, GhostPhase, GhostTextEngine, unique_candidates


def _engine(
    content: str, assistant, ai_config, on_change=None
) -> tuple[GhostTextEngine, EditorBuffer, DebounceController]:
    buffer = EditorBuffer(Document.new(content=content))
    controller = DebounceController()
    engine = GhostTextEngine(buffer, controller, assistant, ai_config, on_change=on_change)
    return engine, buffer, controller


@pytest.mark.asyncio
async def test_candidates_are_deduplicated_in_order(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["world","world"," there"]']
    engine, _, controller = _engine("Hello", assistant, ai_config)

    engine.handle_edit()
    assert engine.phase is GhostPhase.PENDING
    await controller.drain()

    assert engine.phase is GhostPhase.READY
    assert engine.candidates == ("world", " there")
    assert engine.active_index == 0
    assert engine.active_suggestion == "world"


@pytest.mark.asyncio
async def test_short_text_does_not_trigger(assistant, fake_provider, ai_config) -> None:
    engine, _, controller = _engine("Hi", assistant, ai_config)

    engine.handle_edit()
    await controller.drain()

    assert not controller.is_pending(GHOST_KEY)
    assert engine.phase is GhostPhase.IDLE
    assert fake_provider.calls == []


@pytest.mark.asyncio
async def test_caret_away_from_end_does_not_trigger(assistant, fake_provider, ai_config) -> None:
    engine, buffer, controller = _engine("", assistant, ai_config)
    buffer.set_content("Hello world", caret=3)

    engine.handle_edit()
    await controller.drain()

    assert fake_provider.calls == []
    assert engine.candidates == ()


@pytest.mark.asyncio
async def test_moving_caret_cancels_pending_request(assistant, fake_provider, ai_config) -> None:
    engine, buffer, controller = _engine("Hello", assistant, ai_config)

    engine.handle_edit()
    buffer.move_caret(2)
    engine.handle_caret_moved()
    await controller.drain()

    assert fake_provider.calls == []
    assert engine.phase is GhostPhase.IDLE


@pytest.mark.asyncio
async def test_moving_caret_clears_candidates(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["world"]']
    engine, buffer, controller = _engine("Hello", assistant, ai_config)
    engine.handle_edit()
    await controller.drain()
    assert engine.candidates == ("world",)

    buffer.move_caret(len(buffer.content))
    engine.handle_caret_moved()
    assert engine.candidates == ("world",)

    buffer.move_caret(1)
    engine.handle_caret_moved()
    assert engine.candidates == ()
    assert engine.phase is GhostPhase.IDLE


@pytest.mark.asyncio
async def test_edit_during_request_discards_old_answer(assistant, fake_provider, ai_config) -> None:
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_reply() -> str:
        started.set()
        await release.wait()
        return '["stale"]'

    fake_provider.replies = [slow_reply, '["fresh"]']
    engine, buffer, controller = _engine("Hello", assistant, ai_config)

    engine.handle_edit()
    await started.wait()
    assert engine.phase is GhostPhase.LOADING

    buffer.set_content("Hello w")
    engine.handle_edit()
    assert engine.candidates == ()
    release.set()
    await controller.drain()

    assert engine.candidates == ("fresh",)
    assert engine.candidate_set is not None
    assert engine.candidate_set.origin_content == "Hello w"
    assert controller.stats.discarded == 1


@pytest.mark.asyncio
async def test_cycling_wraps_around(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["a","b","c"]']
    engine, _, controller = _engine("Hello", assistant, ai_config)
    engine.handle_edit()
    await controller.drain()

    engine.next()
    assert engine.active_index == 1
    engine.next()
    engine.next()
    assert engine.active_index == 0
    engine.previous()
    assert engine.active_suggestion == "c"


@pytest.mark.asyncio
async def test_cycling_single_candidate_is_noop(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["only"]']
    engine, _, controller = _engine("Hello", assistant, ai_config)
    engine.handle_edit()
    await controller.drain()

    engine.next()
    engine.previous()

    assert engine.active_index == 0


@pytest.mark.asyncio
async def test_accept_inserts_and_chains_one_request(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["world"," there"]', '["!"]']
    engine, buffer, controller = _engine("Hello", assistant, ai_config)
    engine.handle_edit()
    await controller.drain()
    engine.next()

    scheduled = controller.stats.scheduled
    inserted = engine.accept()

    assert inserted == " there"
    assert buffer.content == "Hello there"
    assert buffer.caret == len("Hello there")
    assert engine.candidates == ()
    assert controller.stats.scheduled == scheduled + 1
    assert controller.is_pending(GHOST_KEY)

    await controller.drain()

    assert len(fake_provider.calls) == 2
    assert fake_provider.user_prompts()[1].endswith("Hello there")
    assert engine.candidates == ("!",)


@pytest.mark.asyncio
async def test_accept_rejected_after_document_change(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = ['["world"]']
    engine, buffer, controller = _engine("Hello", assistant, ai_config)
    engine.handle_edit()
    await controller.drain()

    buffer.set_content("Hello!")

    assert engine.accept() is None
    assert buffer.content == "Hello!"
    assert engine.candidates == ()
    assert not controller.is_pending(GHOST_KEY)


@pytest.mark.asyncio
async def test_accept_without_candidates_returns_none(assistant, ai_config) -> None:
    engine, buffer, _ = _engine("Hello", assistant, ai_config)

    assert engine.accept() is None
    assert buffer.content == "Hello"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["[]", '["", "   "]', '{"suggestions": []}'])
async def test_empty_answer_returns_to_idle(assistant, fake_provider, ai_config, reply) -> None:
    fake_provider.replies = [reply]
    engine, _, controller = _engine("Hello", assistant, ai_config)

    engine.handle_edit()
    await controller.drain()

    assert engine.phase is GhostPhase.IDLE
    assert engine.candidates == ()


@pytest.mark.asyncio
async def test_provider_failure_shows_nothing(assistant, fake_provider, ai_config) -> None:
    fake_provider.replies = [RuntimeError("network down")]
    engine, _, controller = _engine("Hello", assistant, ai_config)

    engine.handle_edit()
    await controller.drain()

    assert engine.phase is GhostPhase.IDLE
    assert controller.stats.failed == 1


@pytest.mark.asyncio
async def test_dismiss_cancels_request(assistant, fake_provider, ai_config) -> None:
    changes: list[GhostPhase] = []
    engine, _, controller = _engine(
        "Hello", assistant, ai_config, on_change=lambda: changes.append(engine.phase)
    )

    engine.handle_edit()
    engine.dismiss()
    await controller.drain()

    assert fake_provider.calls == []
    assert changes == [GhostPhase.PENDING, GhostPhase.IDLE]


def test_unique_candidates_drops_blank_entries() -> None:
    assert unique_candidates(["a", "", "  ", "a", "b", " a"]) == ("a", "b", " a")
