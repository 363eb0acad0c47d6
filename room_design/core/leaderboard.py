"""
Leaderboard view over a theme's submitted designs.

Designs are ordered by vote count (highest first), then by earlier
``createdAt``, then by design id, and ranked densely 1..n. Every entry is
built from the design as loaded during the same read, so ``username`` and
``voteCount`` always mirror the design.
"""

import logging
from typing import List, Optional

from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import InvalidInputError
from room_design.models.dtos import Design, LeaderboardEntry
from room_design.storage import keys

logger = logging.getLogger(__name__)


def ranking_key(design: Design):
    return (-design.vote_count, design.created_at, design.id)


class LeaderboardView:
    def __init__(self, repository: DesignRepository):
        self.repository = repository
        self.store = repository.store

    async def _ranked_designs(self, theme_id: str) -> List[Design]:
        design_ids = await self.store.range_descending(keys.leaderboard_key(theme_id), 0, -1)
        designs: List[Design] = []
        for design_id in design_ids:
            design = await self.repository.load(design_id)
            if design is not None and design.submitted and design.theme_id == theme_id:
                designs.append(design)
        designs.sort(key=ranking_key)
        return designs

    async def get_top_designs(self, theme_id: str, n: int = 10) -> List[Design]:
        if n < 0:
            raise InvalidInputError(f"Invalid leaderboard size: {n}")
        designs = (await self._ranked_designs(theme_id))[:n]
        logger.info(f"Retrieved {len(designs)} top designs for theme {theme_id}")
        return designs

    async def get_leaderboard_by_theme(self, theme_id: str, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        designs = await self._ranked_designs(theme_id)
        if limit is not None:
            designs = designs[:max(0, limit)]
        entries = [
            LeaderboardEntry(rank=position, design=design, username=design.username, vote_count=design.vote_count)
            for position, design in enumerate(designs, start=1)
        ]
        logger.info(f"Retrieved {len(entries)} leaderboard entries for theme {theme_id}")
        return entries

    async def get_user_rank(self, user_id: str, theme_id: str) -> Optional[int]:
        """1-based rank of the user's submitted design for the theme, or None."""
        designs = await self._ranked_designs(theme_id)
        for position, design in enumerate(designs, start=1):
            if design.user_id == user_id:
                logger.debug(f"User {user_id} rank in theme {theme_id}: {position}")
                return position
        logger.debug(f"No submitted design found for user {user_id} in theme {theme_id}")
        return None
