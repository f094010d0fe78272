"""
Live planner state for one UI session.

The session applies reducer transitions and mirrors every resulting state to
storage in the background. Nothing is saved until the initial load has
finished, so the empty start-up state can never overwrite stored data.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Set

from memory.planner_storage import load_state, save_state
from schema.planner_models import PlannerState

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[PlannerState]]
Saver = Callable[[PlannerState], Awaitable[bool]]


class PlannerSession:
    def __init__(self, loader: Loader = load_state, saver: Saver = save_state):
        self.state = PlannerState()
        self.hydrated = False
        self._loader = loader
        self._saver = saver
        self._pending: Set[asyncio.Task] = set()

    async def hydrate(self) -> PlannerState:
        """Load stored state once; later calls return the live state untouched."""
        if self.hydrated:
            return self.state
        self.state = await self._loader()
        self.hydrated = True
        return self.state

    def apply(self, transition: Callable[..., PlannerState], *args) -> PlannerState:
        """
        Replace the state with ``transition(state, *args)`` and schedule a save.

        Args:
            transition: A pure function from ``memory.task_store``
            *args: Extra arguments for the transition

        Returns:
            PlannerState: The new state
        """
        self.state = transition(self.state, *args)
        self._schedule_save(self.state)
        return self.state

    def _schedule_save(self, state: PlannerState) -> None:
        if not self.hydrated:
            logger.debug("Skipping save before initial load")
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (plain sync caller): save inline.
            asyncio.run(self._save(state))
            return
        task = loop.create_task(self._save(state))
        self._pending.add(task)
        task.add_done_callback(self._save_finished)

    def _save_finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Background save was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Auto-save failed: {error}")

    async def _save(self, state: PlannerState) -> bool:
        saved = await self._saver(state)
        if not saved:
            logger.warning("Auto-save did not reach any storage")
        return saved

    @property
    def pending_saves(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Wait for background saves that are still running."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def save_now(self) -> bool:
        """Save the current state and wait for it, e.g. before quitting."""
        await self.flush()
        if not self.hydrated:
            return False
        return await self._save(self.state)
