import asyncio
import logging
import time
from typing import Awaitable, Callable, Coroutine, Optional, Set

from adaptive_learning.models.assessment import SessionStatus
from adaptive_learning.services.assessment.session import AssessmentSession
from adaptive_learning.services.storage.session_store import SessionStore

logger = logging.getLogger(__name__)

ASSESSMENT_NAMESPACE = "assessment"


class PeriodicTask:
    """Runs an async callback every ``interval`` seconds until cancelled."""

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        name: Optional[str] = None,
    ):
        self.interval = interval
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "periodic")
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run(), name=self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.callback()
            except Exception as e:
                # One failed run must not stop the schedule
                logger.error(f"Error in periodic task {self.name}: {str(e)}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def __aenter__(self) -> "PeriodicTask":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()


class SessionRunner:
    """Owns an assessment session together with its clock and autosave timers.

    Every task the runner starts is cancelled by ``close()``.
    """

    def __init__(
        self,
        session: AssessmentSession,
        store: SessionStore,
        autosave_interval: float = 30,
        saved_display_seconds: float = 1,
        tick_interval: float = 1,
    ):
        self.session = session
        self.store = store
        self.saved_display_seconds = saved_display_seconds
        self.clock = PeriodicTask(tick_interval, self._tick, name="session-clock")
        self.autosave = PeriodicTask(
            autosave_interval, self._autosave, name="session-autosave"
        )
        self._pending: Set[asyncio.Task] = set()
        self.last_activity = time.monotonic()

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_activity

    def start(self) -> None:
        self.clock.start()
        self.autosave.start()

    async def _tick(self) -> None:
        self.session.tick()

    async def _autosave(self) -> None:
        if self.session.should_autosave():
            # Fire and forget; the schedule does not wait for the save
            self._spawn(self._background_save())

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def save(self) -> None:
        """Write the session snapshot to the store."""
        self.session.mark_saving()
        try:
            await self.store.put(
                ASSESSMENT_NAMESPACE,
                self.session.session_id,
                self.session.snapshot().model_dump(mode="json"),
            )
        except Exception:
            if self.session.status == SessionStatus.SAVING:
                self.session.status = SessionStatus.ACTIVE
            raise

        self.session.mark_saved()
        logger.info(f"Saved session {self.session.session_id}")
        self._spawn(self._resume_after_save())

    async def _background_save(self) -> None:
        try:
            await self.save()
        except Exception as e:
            logger.error(
                f"Error autosaving session {self.session.session_id}: {str(e)}"
            )

    async def _resume_after_save(self) -> None:
        await asyncio.sleep(self.saved_display_seconds)
        self.session.resume_after_save()

    async def close(self) -> None:
        await self.clock.stop()
        await self.autosave.stop()
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()
