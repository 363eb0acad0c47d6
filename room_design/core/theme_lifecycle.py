"""
Theme lifecycle: Inactive -> Active -> Expired -> Archived.

The active theme is named by a single pointer record (``theme:current``)
that is always read and written through an explicit ``CurrentThemeRef``.
Archival is permanent: ids are only ever added to ``theme:archived``, and
theme records are never deleted.
"""

import logging
import re
from typing import List, Optional

from pydantic import ValidationError

from room_design.config.settings import settings
from room_design.core.exceptions import StoreFailureError
from room_design.core.theme_notifier import ThemeNotifier
from room_design.models.dtos import Theme, ThemeStatus
from room_design.storage import keys
from room_design.storage.base_store import KeyValueStore
from room_design.utils.time_utils import MS_PER_HOUR, Clock, now_ms

logger = logging.getLogger(__name__)

# Fixed cycle of themes; rotation wraps from the last back to the first.
THEME_ROTATION = [
    ("School", "Design a classroom or study space"),
    ("Office", "Create a professional workspace"),
    ("Bedroom", "Design a cozy sleeping area"),
    ("Kitchen", "Build a functional cooking space"),
    ("Living Room", "Create a comfortable gathering space"),
    ("Library", "Design a quiet reading room"),
]

DEFAULT_THEME_ID = "theme_school_001"


class CurrentThemeRef:
    """The single record naming the active theme."""

    def __init__(self, store: KeyValueStore, key: str = keys.CURRENT_THEME_KEY):
        self.store = store
        self.key = key

    async def read(self) -> Optional[str]:
        return await self.store.get(self.key)

    async def point_to(self, theme_id: str) -> None:
        await self.store.set(self.key, theme_id)


class ThemeLifecycle:
    """Reads, activates, archives and rotates themes."""

    def __init__(
        self,
        store: KeyValueStore,
        current_ref: Optional[CurrentThemeRef] = None,
        notifier: Optional[ThemeNotifier] = None,
        theme_duration_hours: Optional[int] = None,
        clock: Clock = now_ms,
    ):
        """
        Args:
            store: Key-value store holding theme records.
            current_ref: Pointer to the active theme; built over ``store`` when None.
            notifier: Announces activations; failures never affect rotation.
            theme_duration_hours: Lifetime of generated themes.
            clock: Epoch-millisecond clock.
        """
        self.store = store
        self.current_ref = current_ref or CurrentThemeRef(store)
        self.notifier = notifier
        hours = theme_duration_hours if theme_duration_hours is not None else settings.THEME_DURATION_HOURS
        self.theme_duration_ms = hours * MS_PER_HOUR
        self._clock = clock

    async def get_theme_by_id(self, theme_id: str) -> Optional[Theme]:
        raw = await self.store.get(keys.theme_key(theme_id))
        if raw is None:
            return None
        try:
            return Theme.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Stored theme {theme_id} is unreadable: {e}")
            raise StoreFailureError(f"Stored theme {theme_id} is corrupt") from e

    async def save_theme(self, theme: Theme) -> None:
        await self.store.set(keys.theme_key(theme.id), theme.to_json())

    async def get_current_theme(self) -> Optional[Theme]:
        theme_id = await self.current_ref.read()
        if theme_id is None:
            return None
        theme = await self.get_theme_by_id(theme_id)
        if theme is None:
            logger.warning(f"Current theme pointer names missing theme {theme_id}")
        return theme

    async def archive_theme(self, theme_id: str) -> None:
        await self.store.add_to_set(keys.ARCHIVED_THEMES_KEY, [theme_id])
        logger.info(f"Archived designs for theme: {theme_id}")

    async def activate_next(self, new_theme: Theme) -> Theme:
        """
        Deactivate and archive the current theme, then make ``new_theme`` current.

        With no current theme the new one is activated directly. Returns the
        activated theme.
        """
        current = await self.get_current_theme()
        if current is not None and current.id != new_theme.id:
            current.active = False
            await self.save_theme(current)
            logger.info(f"Deactivated theme: {current.id}")
            await self.archive_theme(current.id)

        activated = new_theme.model_copy(update={"active": True})
        await self.save_theme(activated)
        await self.current_ref.point_to(activated.id)
        logger.info(f"Activated new theme: {activated.id} ({activated.name})")

        if self.notifier is not None:
            try:
                await self.notifier.notify_theme_change(activated, current)
            except Exception as e:
                logger.warning(f"Failed to send theme change notification: {e}")
        return activated

    async def initialize_default_theme(self) -> Theme:
        now = self._clock()
        name, description = THEME_ROTATION[0]
        school = Theme(
            id=DEFAULT_THEME_ID,
            name=name,
            description=description,
            start_time=now,
            end_time=now + self.theme_duration_ms,
        )
        theme = await self.activate_next(school)
        logger.info(f'Default "{name}" theme initialized')
        return theme

    def generate_next_theme(self, current: Theme) -> Theme:
        """Successor of ``current`` in the rotation; unknown names restart the cycle."""
        names = [name for name, _ in THEME_ROTATION]
        index = names.index(current.name) if current.name in names else -1
        name, description = THEME_ROTATION[(index + 1) % len(THEME_ROTATION)]
        now = self._clock()
        slug = re.sub(r"\s+", "_", name.lower())
        return Theme(
            id=f"theme_{slug}_{now}",
            name=name,
            description=description,
            start_time=now,
            end_time=now + self.theme_duration_ms,
            active=False,
        )

    async def rotate(self, force: bool = False) -> Optional[Theme]:
        """
        One scheduler tick.

        Initializes the default theme when none is current, does nothing while
        the current theme is still running (unless ``force``), and otherwise
        activates its successor. Returns the newly activated theme, or None.
        """
        current = await self.get_current_theme()
        if current is None:
            logger.info("No current theme found, initializing default theme")
            return await self.initialize_default_theme()

        if not force and self._clock() < current.end_time:
            logger.debug(f"Current theme {current.name} is still active")
            return None

        next_theme = await self.activate_next(self.generate_next_theme(current))
        logger.info(f"Theme rotation complete: {current.name} -> {next_theme.name}")
        return next_theme

    def get_time_remaining(self, theme: Theme) -> int:
        return max(0, theme.end_time - self._clock())

    async def list_archived_theme_ids(self) -> List[str]:
        return sorted(await self.store.members(keys.ARCHIVED_THEMES_KEY))

    async def get_theme_status(self, theme: Theme) -> ThemeStatus:
        if theme.id in await self.store.members(keys.ARCHIVED_THEMES_KEY):
            return ThemeStatus.ARCHIVED
        if self._clock() >= theme.end_time:
            return ThemeStatus.EXPIRED
        return ThemeStatus.ACTIVE if theme.active else ThemeStatus.INACTIVE

    async def is_accepting_votes(self, theme: Theme) -> bool:
        return await self.get_theme_status(theme) is ThemeStatus.ACTIVE
