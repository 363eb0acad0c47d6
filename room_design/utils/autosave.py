"""
Debounced auto-save.

Repeated ``schedule`` calls within the quiet period collapse into a single
save of the most recently scheduled design. This sits outside the core's
consistency contract: it only decides *when* ``save`` is called.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from room_design.config.settings import settings
from room_design.models.dtos import Design

logger = logging.getLogger(__name__)

SaveCallback = Callable[[Design], Awaitable[object]]


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutoSaveScheduler:
    def __init__(self, save: SaveCallback, debounce_seconds: Optional[float] = None):
        self._save = save
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else settings.AUTOSAVE_DEBOUNCE_SECONDS
        )
        self._pending: Optional[Design] = None
        self._timer: Optional[asyncio.Task] = None
        self.status = SaveStatus.IDLE
        self.last_error: Optional[Exception] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def schedule(self, design: Design) -> None:
        """Restart the quiet period with ``design`` as the value to save."""
        self._pending = design
        self._cancel_timer()
        self._timer = asyncio.create_task(self._fire_later())

    def cancel(self) -> None:
        """Drop the pending save, if any."""
        self._cancel_timer()
        self._pending = None

    async def flush(self) -> bool:
        """Save the pending design now. Returns False when nothing was pending."""
        self._cancel_timer()
        return await self._save_pending()

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._timer = None
        await self._save_pending()

    async def _save_pending(self) -> bool:
        design, self._pending = self._pending, None
        if design is None:
            return False
        self.status = SaveStatus.SAVING
        try:
            await self._save(design)
        except Exception as e:
            self.status = SaveStatus.ERROR
            self.last_error = e
            logger.error(f"Auto-save of design {design.id} failed: {e}")
            return False
        self.status = SaveStatus.SAVED
        self.last_error = None
        logger.debug(f"Auto-saved design {design.id}")
        return True
