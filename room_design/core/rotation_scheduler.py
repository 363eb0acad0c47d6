"""
Background worker that periodically rotates the current theme.
"""

import asyncio
import logging
from typing import Optional

from room_design.config.settings import settings
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.models.dtos import Theme

logger = logging.getLogger(__name__)


class ThemeRotationScheduler:
    """
    Calls ``ThemeLifecycle.rotate`` every ``interval_seconds``.

    A failed tick is logged and the loop carries on with the next one.
    """

    def __init__(self, lifecycle: ThemeLifecycle, interval_seconds: Optional[float] = None):
        self.lifecycle = lifecycle
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.THEME_ROTATION_INTERVAL_SECONDS
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Optional[Theme]:
        logger.info("Theme rotation job started")
        return await self.lifecycle.rotate()

    async def _worker(self) -> None:
        logger.info(f"Theme rotation worker started. Run interval: {self.interval_seconds}s")
        try:
            while True:
                try:
                    await self.run_once()
                except Exception as e:
                    logger.error(f"Theme rotation job failed: {e}", exc_info=True)
                await asyncio.sleep(self.interval_seconds)
        except asyncio.CancelledError:
            logger.info("Theme rotation worker cancelled. Shutting down.")
            raise

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self._worker())
        logger.info("Theme rotation background task created")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("Theme rotation background task cancelled successfully")
        self._task = None
