"""Debounce and cancellation of suggestion requests.

Every request kind is identified by a key such as ``"ghost"`` or
``"polish"``. Scheduling under a key replaces any timer that has not fired
yet and advances the key's generation, which turns every older in-flight
request into a stale one. A result is delivered only if its generation is
still the newest and the editor state it was produced for is unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from deepflow.ai.errors import DFAiError, DFAiStaleResult

__all__ = [
    "ControllerStats",
    "DebounceController",
    "RequestToken",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestToken:
    """Identifies one scheduled request and the state it was made for."""

    key: str
    generation: int
    snapshot: Any


@dataclass
class ControllerStats:
    """Counters describing what happened to scheduled requests."""

    scheduled: int = 0
    issued: int = 0
    applied: int = 0
    discarded: int = 0
    failed: int = 0


class DebounceController:
    """Coalesce bursts of triggers into single, validated requests."""

    def __init__(self) -> None:
        self._generations: dict[str, int] = {}
        self._pending: dict[str, asyncio.Task] = {}
        self._inflight: dict[asyncio.Task, str] = {}
        self.stats = ControllerStats()

    def schedule(
        self,
        key: str,
        delay_ms: float,
        producer: Callable[[], Awaitable[Any]],
        *,
        snapshot: Any,
        current: Callable[[], Any],
        on_result: Callable[[Any], None],
        fallback: Callable[[], Any] = list,
        on_start: Optional[Callable[[], None]] = None,
        on_discard: Optional[Callable[[RequestToken], None]] = None,
    ) -> RequestToken:
        """Arm a timer for ``key`` and return the token of the new request.

        Once ``delay_ms`` has elapsed without another trigger, ``producer`` is
        awaited and its result passed to ``on_result``. The snapshot is
        compared against ``current()`` before the request is issued and again
        before the result is delivered. A failing producer delivers
        ``fallback()`` instead. A request dropped as stale is passed to
        ``on_discard``.
        """

        self._cancel_timer(key)
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        token = RequestToken(key=key, generation=generation, snapshot=snapshot)

        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._run(token, delay_ms, producer, current, on_result, fallback, on_start, on_discard),
            name=f"deepflow-{key}-{generation}",
        )
        self._pending[key] = task
        task.add_done_callback(self._forget)
        self.stats.scheduled += 1
        logger.debug("Scheduled '%s' request #%d in %s ms", key, generation, delay_ms)
        return token

    def cancel(self, key: str) -> None:
        """Drop the pending timer for ``key`` and invalidate in-flight results."""

        self._cancel_timer(key)
        self._generations[key] = self._generations.get(key, 0) + 1

    def is_pending(self, key: str) -> bool:
        """Return ``True`` while a timer for ``key`` has not fired yet."""

        return key in self._pending

    def in_flight(self, key: str) -> int:
        """Return the number of issued requests for ``key`` still running."""

        return sum(1 for task_key in self._inflight.values() if task_key == key)

    def generation(self, key: str) -> int:
        return self._generations.get(key, 0)

    def is_current(self, token: RequestToken, current: Callable[[], Any]) -> bool:
        return self._generations.get(token.key) == token.generation and current() == token.snapshot

    async def drain(self) -> None:
        """Wait until no timers or requests are outstanding.

        Results delivered while draining may schedule follow-up requests;
        those are awaited as well.
        """

        while self._pending or self._inflight:
            tasks = [*self._pending.values(), *self._inflight]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel every timer and request and wait for them to unwind."""

        tasks = [*self._pending.values(), *self._inflight]
        for key in list(self._pending):
            self.cancel(key)
        for key in set(self._inflight.values()):
            self._generations[key] = self._generations.get(key, 0) + 1
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _cancel_timer(self, key: str) -> None:
        task = self._pending.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Cancelled pending '%s' request", key)

    def _forget(self, task: asyncio.Task) -> None:
        self._inflight.pop(task, None)
        for key, pending in list(self._pending.items()):
            if pending is task:
                del self._pending[key]

    def _ensure_current(self, token: RequestToken, current: Callable[[], Any]) -> None:
        latest = self._generations.get(token.key, 0)
        if latest != token.generation:
            raise DFAiStaleResult(
                f"'{token.key}' request #{token.generation} superseded by #{latest}"
            )
        if current() != token.snapshot:
            raise DFAiStaleResult(
                f"'{token.key}' request #{token.generation} no longer matches the editor state"
            )

    async def _run(
        self,
        token: RequestToken,
        delay_ms: float,
        producer: Callable[[], Awaitable[Any]],
        current: Callable[[], Any],
        on_result: Callable[[Any], None],
        fallback: Callable[[], Any],
        on_start: Optional[Callable[[], None]],
        on_discard: Optional[Callable[[RequestToken], None]],
    ) -> None:
        await asyncio.sleep(max(0.0, float(delay_ms)) / 1000.0)

        task = asyncio.current_task()
        if self._pending.get(token.key) is task:
            del self._pending[token.key]
        if task is not None:
            self._inflight[task] = token.key

        try:
            self._ensure_current(token, current)
        except DFAiStaleResult as exc:
            self.stats.discarded += 1
            logger.debug("Not issuing request: %s", exc)
            self._discarded(token, on_discard)
            return

        if on_start is not None:
            on_start()
        self.stats.issued += 1
        try:
            result = await producer()
        except DFAiError as exc:
            self.stats.failed += 1
            logger.info("'%s' request #%d produced no suggestion: %s", token.key, token.generation, exc)
            result = fallback()
        except Exception:
            self.stats.failed += 1
            logger.exception("'%s' request #%d failed unexpectedly", token.key, token.generation)
            result = fallback()

        try:
            self._ensure_current(token, current)
        except DFAiStaleResult as exc:
            self.stats.discarded += 1
            logger.debug("Discarding result: %s", exc)
            self._discarded(token, on_discard)
            return

        self.stats.applied += 1
        try:
            on_result(result)
        except Exception:
            logger.exception("Failed to deliver '%s' result", token.key)

    @staticmethod
    def _discarded(token: RequestToken, on_discard: Optional[Callable[[RequestToken], None]]) -> None:
        if on_discard is None:
            return
        try:
            on_discard(token)
        except Exception:
            logger.exception("Failed to report discarded '%s' request", token.key)
