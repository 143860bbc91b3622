"""Typing reveal for AI chat messages.

Two layers:

* IncrementalTextRevealer — a pure state machine holding the full target
  text, the displayed prefix and the reveal cursor. No timers, no I/O.
* TypingAnimation — drives one revealer from an asyncio task, one
  character per tick, and pushes the displayed prefix to a render callable.
  It belongs to a single message view and must be closed when that view
  goes away; after close() nothing is rendered again.

Target text may grow while revealing (streamed tokens). Growth that extends
what is already shown continues from the current cursor; anything else
(shorter text, or a different prefix) is a correction and restarts the
reveal from scratch.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable

if TYPE_CHECKING:
    from stoa.ports.surface_port import MessageSurface

logger = logging.getLogger(__name__)

RenderFn = Callable[[str], Awaitable[None]]


class RevealState(Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    COMPLETE = "complete"


class IncrementalTextRevealer:
    """Character-by-character reveal state for one message."""

    def __init__(self, text: str = "", is_user: bool = False) -> None:
        self.is_user = is_user
        self._target = ""
        self._buffer = ""
        self._cursor = 0
        if text:
            self.update(text)

    @property
    def target(self) -> str:
        return self._target

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def state(self) -> RevealState:
        if not self._target:
            return RevealState.IDLE
        if self._cursor < len(self._target):
            return RevealState.REVEALING
        return RevealState.COMPLETE

    def update(self, text: str) -> bool:
        """Set a new target text. Returns True if the display was reset.

        Locally authored messages are never animated: they are shown in
        full immediately.
        """
        if self.is_user:
            self._target = text
            self._buffer = text
            self._cursor = len(text)
            return False

        reset = len(text) < len(self._buffer) or not text.startswith(self._buffer)
        if reset:
            self._buffer = ""
            self._cursor = 0
        self._target = text
        return reset

    def tick(self) -> bool:
        """Reveal one more character. Returns False when nothing is left."""
        if self._cursor >= len(self._target):
            return False
        self._buffer += self._target[self._cursor]
        self._cursor += 1
        return True

    def finish(self) -> None:
        """Jump straight to the fully revealed target."""
        self._buffer = self._target
        self._cursor = len(self._target)


class TypingAnimation:
    """Cancellable timer that reveals one message into a render callable.

    Args:
        render: Coroutine function called with the displayed prefix.
        revealer: State machine to drive (a fresh AI-authored one if None).
        tick_interval: Seconds between two revealed characters.
        render_interval: Minimum seconds between two render calls. The
            fully revealed text is always rendered regardless.
    """

    def __init__(
        self,
        render: RenderFn,
        revealer: IncrementalTextRevealer | None = None,
        tick_interval: float = 0.02,
        render_interval: float = 0.0,
    ) -> None:
        self._render = render
        self._revealer = revealer or IncrementalTextRevealer()
        self._tick_interval = tick_interval
        self._render_interval = render_interval
        self._task: asyncio.Task | None = None
        self._closed = False
        self._last_render_at: float | None = None
        self._last_rendered: str | None = None

    @classmethod
    def on_surface(cls, surface: MessageSurface, **kwargs: float) -> TypingAnimation:
        """Animation that draws into one MessageSurface."""
        return cls(surface.render, **kwargs)

    @property
    def revealer(self) -> IncrementalTextRevealer:
        return self._revealer

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def update(self, text: str) -> None:
        """Feed the latest full text (e.g. the stream so far)."""
        if self._closed:
            return
        if self._revealer.update(text):
            logger.debug("Reveal reset: new text does not extend the displayed prefix")
        self._ensure_running()

    def _ensure_running(self) -> None:
        if self.running:
            return
        if self._revealer.state is not RevealState.REVEALING:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._closed and self._revealer.tick():
            now = loop.time()
            done = self._revealer.state is RevealState.COMPLETE
            if (
                done
                or self._last_render_at is None
                or now - self._last_render_at >= self._render_interval
            ):
                self._last_render_at = now
                await self._safe_render(self._revealer.buffer)
            if self._revealer.state is RevealState.REVEALING:
                await asyncio.sleep(self._tick_interval)

    async def _safe_render(self, text: str) -> None:
        if self._closed or text == self._last_rendered:
            return
        try:
            await self._render(text)
            self._last_rendered = text
        except Exception as exc:
            logger.warning("Typing render failed: %s", exc)

    async def wait(self) -> None:
        """Wait until the current target is fully revealed or the animation closes."""
        while not self._closed and self.running:
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if not self._closed:
                    raise
                return

    def close(self) -> None:
        """Disarm the timer. Safe to call more than once."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def aclose(self) -> None:
        self.close()
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> TypingAnimation:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
