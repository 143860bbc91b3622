"""Tests for stoa.core.reveal — typing reveal state machine and animation."""

import asyncio

import pytest
from unittest.mock import AsyncMock

from stoa.core.reveal import IncrementalTextRevealer, RevealState, TypingAnimation


# ---------------------------------------------------------------------------
# IncrementalTextRevealer
# ---------------------------------------------------------------------------


class TestRevealer:
    def test_starts_idle(self):
        revealer = IncrementalTextRevealer()
        assert revealer.state is RevealState.IDLE
        assert revealer.buffer == ""
        assert revealer.tick() is False

    def test_reveals_one_character_per_tick(self):
        revealer = IncrementalTextRevealer("Hello")
        assert revealer.state is RevealState.REVEALING
        for _ in range(5):
            assert revealer.tick() is True
        assert revealer.buffer == "Hello"
        assert revealer.cursor == 5
        assert revealer.state is RevealState.COMPLETE
        assert revealer.tick() is False

    def test_growing_text_continues_from_cursor(self):
        revealer = IncrementalTextRevealer("Hel")
        for _ in range(3):
            revealer.tick()
        assert revealer.update("Hello world") is False
        assert revealer.cursor == 3
        assert revealer.buffer == "Hel"
        revealer.tick()
        assert revealer.buffer == "Hell"

    def test_growth_mid_reveal_keeps_cursor(self):
        revealer = IncrementalTextRevealer("Hello")
        revealer.tick()
        revealer.tick()
        assert revealer.update("Hello there") is False
        assert revealer.buffer == "He"
        assert revealer.target == "Hello there"

    def test_shorter_text_resets(self):
        revealer = IncrementalTextRevealer("Hello")
        for _ in range(5):
            revealer.tick()
        assert revealer.update("Hi") is True
        assert revealer.buffer == ""
        assert revealer.cursor == 0
        revealer.tick()
        revealer.tick()
        assert revealer.buffer == "Hi"
        assert revealer.state is RevealState.COMPLETE

    def test_different_prefix_resets(self):
        revealer = IncrementalTextRevealer("Hello")
        revealer.tick()
        revealer.tick()
        assert revealer.update("Jello world") is True
        assert revealer.cursor == 0

    def test_user_message_shown_immediately(self):
        revealer = IncrementalTextRevealer("Hi coach", is_user=True)
        assert revealer.state is RevealState.COMPLETE
        assert revealer.buffer == "Hi coach"

    def test_finish_jumps_to_end(self):
        revealer = IncrementalTextRevealer("Hello")
        revealer.finish()
        assert revealer.buffer == "Hello"
        assert revealer.state is RevealState.COMPLETE


# ---------------------------------------------------------------------------
# TypingAnimation
# ---------------------------------------------------------------------------


class TestTypingAnimation:
    @pytest.mark.asyncio
    async def test_reveals_full_text(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0)
        animation.update("Hi")
        await animation.wait()
        rendered = [c.args[0] for c in render.await_args_list]
        assert rendered == ["H", "Hi"]
        assert animation.revealer.state is RevealState.COMPLETE

    @pytest.mark.asyncio
    async def test_throttle_still_renders_final_text(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0, render_interval=60)
        animation.update("abc")
        await animation.wait()
        rendered = [c.args[0] for c in render.await_args_list]
        assert rendered == ["a", "abc"]

    @pytest.mark.asyncio
    async def test_streamed_growth_continues(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0)
        animation.update("Hel")
        animation.update("Hello")
        await animation.wait()
        assert render.await_args_list[-1].args[0] == "Hello"

    @pytest.mark.asyncio
    async def test_restarts_after_completion(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0)
        animation.update("Hi")
        await animation.wait()
        animation.update("Hi there")
        await animation.wait()
        assert render.await_args_list[-1].args[0] == "Hi there"

    @pytest.mark.asyncio
    async def test_close_stops_renders(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0.01)
        animation.update("A long reply that takes a while to reveal")
        await asyncio.sleep(0.03)
        animation.close()
        count = render.await_count
        await asyncio.sleep(0.05)
        assert render.await_count == count
        assert animation.closed
        assert not animation.running
        assert animation.revealer.buffer != animation.revealer.target

    @pytest.mark.asyncio
    async def test_update_after_close_is_ignored(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0)
        animation.close()
        animation.update("Hello")
        await asyncio.sleep(0.01)
        render.assert_not_awaited()
        assert not animation.running

    @pytest.mark.asyncio
    async def test_render_failure_does_not_stop_reveal(self):
        calls = []

        async def flaky_render(text):
            calls.append(text)
            if len(calls) == 1:
                raise RuntimeError("edit failed")

        animation = TypingAnimation(flaky_render, tick_interval=0)
        animation.update("abc")
        await animation.wait()
        assert calls[-1] == "abc"

    @pytest.mark.asyncio
    async def test_wait_returns_when_closed(self):
        render = AsyncMock()
        animation = TypingAnimation(render, tick_interval=0.05)
        animation.update("Hello")
        asyncio.get_running_loop().call_later(0.02, animation.close)
        await asyncio.wait_for(animation.wait(), timeout=1)
        assert animation.closed

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        render = AsyncMock()
        async with TypingAnimation(render, tick_interval=0.05) as animation:
            animation.update("Hello")
        assert animation.closed
        assert not animation.running

    @pytest.mark.asyncio
    async def test_on_surface_renders_into_surface(self):
        class RecordingSurface:
            def __init__(self):
                self.frames = []

            async def render(self, text):
                self.frames.append(text)

        surface = RecordingSurface()
        animation = TypingAnimation.on_surface(surface, tick_interval=0)
        animation.update("Hey")
        await animation.wait()

        assert surface.frames[-1] == "Hey"
        assert animation.revealer.state is RevealState.COMPLETE
