"""
Design mutation engine.

Transforms a design's asset list and background while enforcing the canvas
bounds and layering rules. Assets are addressed by their index in the
design's asset list; indices shift down after a removal, so callers must
re-read them after ``remove_asset``.
"""

import logging
import uuid
from typing import Callable, Optional, Union

from room_design.config.settings import settings
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import (
    DesignLockedError,
    InvalidColorError,
    InvalidDirectionError,
    InvalidIndexError,
)
from room_design.models.dtos import (
    DEFAULT_BACKGROUND_COLOR,
    Design,
    LayerDirection,
    PlacedAsset,
    is_valid_hex_color,
)
from room_design.utils.time_utils import Clock, now_ms

logger = logging.getLogger(__name__)


def clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


class DesignMutationEngine:
    """Repository-backed editing operations on a single design."""

    def __init__(
        self,
        repository: DesignRepository,
        canvas_width: Optional[int] = None,
        canvas_height: Optional[int] = None,
        clock: Clock = now_ms,
    ):
        self.repository = repository
        self.canvas_width = canvas_width if canvas_width is not None else settings.CANVAS_WIDTH
        self.canvas_height = canvas_height if canvas_height is not None else settings.CANVAS_HEIGHT
        self._clock = clock

    def clamp_position(self, x: int, y: int) -> tuple[int, int]:
        """Correct a position into ``[0, width] x [0, height]``."""
        return clamp(int(x), self.canvas_width), clamp(int(y), self.canvas_height)

    def normalize(self, design: Design) -> Design:
        """Clamp every asset of an externally supplied design into the canvas."""
        for asset in design.assets:
            asset.x, asset.y = self.clamp_position(asset.x, asset.y)
        return design

    def _touch(self, design: Design) -> None:
        design.updated_at = max(self._clock(), design.updated_at)

    @staticmethod
    def _ensure_editable(design: Design) -> None:
        if design.submitted:
            raise DesignLockedError(f"Design {design.id} has been submitted and can no longer be edited")

    @staticmethod
    def _check_index(design: Design, index: int) -> PlacedAsset:
        if index < 0 or index >= len(design.assets):
            raise InvalidIndexError(f"Invalid asset index: {index}")
        return design.assets[index]

    async def _mutate(self, design_id: str, change: Callable[[Design], None]) -> Design:
        def mutator(design: Design) -> None:
            self._ensure_editable(design)
            change(design)
            self._touch(design)
        return await self.repository.update(design_id, mutator)

    async def create_design(self, user_id: str, theme_id: str, username: str = "user") -> Design:
        now = self._clock()
        design = Design(
            id=f"design_{user_id}_{theme_id}_{now}_{uuid.uuid4().hex[:8]}",
            user_id=user_id,
            username=username,
            theme_id=theme_id,
            background_color=DEFAULT_BACKGROUND_COLOR,
            assets=[],
            created_at=now,
            updated_at=now,
            submitted=False,
            vote_count=0,
        )
        return await self.repository.create(design)

    async def get_design(self, design_id: str) -> Design:
        return await self.repository.get(design_id)

    async def save_design(self, design: Design) -> Design:
        """
        Upsert a client-edited design.

        Asset positions are clamped into the canvas. For a design that already
        exists only its assets and background are taken from ``design``; the
        owner, theme, creation time and submission state stay as stored.
        """
        incoming = self.normalize(design.model_copy(deep=True))

        def change(stored: Design) -> None:
            stored.assets = incoming.assets
            stored.background_color = incoming.background_color

        if await self.repository.load(incoming.id) is not None:
            return await self._mutate(incoming.id, change)

        incoming.submitted = False
        incoming.vote_count = 0
        incoming.updated_at = max(self._clock(), incoming.updated_at)
        return await self.repository.create(incoming)

    async def place_asset(self, design_id: str, asset_id: str, x: int, y: int) -> Design:
        cx, cy = self.clamp_position(x, y)

        def change(design: Design) -> None:
            design.assets.append(
                PlacedAsset(asset_id=asset_id, x=cx, y=cy, rotation=0, z_index=design.next_z_index())
            )

        design = await self._mutate(design_id, change)
        logger.debug(f"Placed {asset_id} on {design_id} at ({cx}, {cy})")
        return design

    async def move_asset(self, design_id: str, index: int, x: int, y: int) -> Design:
        cx, cy = self.clamp_position(x, y)

        def change(design: Design) -> None:
            asset = self._check_index(design, index)
            asset.x, asset.y = cx, cy

        return await self._mutate(design_id, change)

    async def rotate_asset(self, design_id: str, index: int) -> Design:
        def change(design: Design) -> None:
            asset = self._check_index(design, index)
            asset.rotation = (asset.rotation + 90) % 360

        return await self._mutate(design_id, change)

    async def remove_asset(self, design_id: str, index: int) -> Design:
        def change(design: Design) -> None:
            self._check_index(design, index)
            del design.assets[index]

        return await self._mutate(design_id, change)

    async def adjust_z_index(
        self, design_id: str, index: int, direction: Union[LayerDirection, str]
    ) -> Design:
        try:
            layer = LayerDirection(direction)
        except ValueError:
            raise InvalidDirectionError(f"Invalid layer direction: {direction!r}; expected 'up' or 'down'")

        def change(design: Design) -> None:
            asset = self._check_index(design, index)
            if layer is LayerDirection.UP:
                asset.z_index += 1
            else:
                asset.z_index = max(0, asset.z_index - 1)

        return await self._mutate(design_id, change)

    async def update_background_color(self, design_id: str, color: str) -> Design:
        if not is_valid_hex_color(color):
            raise InvalidColorError(f"Invalid hex color: {color}")

        def change(design: Design) -> None:
            design.background_color = color

        return await self._mutate(design_id, change)
