"""
Submission manager.

Marks designs submitted, enforces one submission per user per theme and
keeps the per-theme submission index used by the gallery and leaderboard.
"""

import logging
from typing import List, Optional

from room_design.config.settings import settings
from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import (
    ConcurrentModificationError,
    DuplicateSubmissionError,
    ForbiddenError,
    InvalidInputError,
    StoreFailureError,
)
from room_design.models.dtos import Design
from room_design.storage import keys
from room_design.utils.time_utils import Clock, now_ms

logger = logging.getLogger(__name__)


class SubmissionManager:
    """Handles design submission and submission queries."""

    def __init__(
        self,
        repository: DesignRepository,
        auth_service: Optional[AuthService] = None,
        post_id: Optional[str] = None,
        clock: Clock = now_ms,
    ):
        """
        Args:
            repository: Design repository sharing the submission store.
            auth_service: When given, submissions require the caller to own the design.
            post_id: Namespace of the submissions index; the theme id when None.
            clock: Epoch-millisecond clock.
        """
        self.repository = repository
        self.store = repository.store
        self.auth_service = auth_service
        self.post_id = post_id if post_id is not None else settings.POST_ID
        self._clock = clock

    def _submissions_key(self, theme_id: str) -> str:
        return keys.submissions_key(theme_id, self.post_id)

    async def submit_design(self, design: Design) -> str:
        """
        Mark ``design`` submitted and index it for its theme.

        A design already in the store is flipped in place through the
        repository's optimistic update, so edits saved since the caller read
        ``design`` are kept. A design not yet stored is saved as given.
        Re-submitting the same design is a no-op that returns its id.

        Raises:
            UnauthorizedError: If an auth service is configured and nobody is signed in.
            ForbiddenError: If the caller does not own the design.
            DuplicateSubmissionError: If the owner already submitted another
                design for this theme.
        """
        username = None
        if self.auth_service is not None:
            user = await self.auth_service.require_auth()
            if design.user_id != user.id:
                raise ForbiddenError("Cannot submit a design that does not belong to you")
            username = user.username

        marker_key = keys.user_submission_key(design.user_id, design.theme_id)
        if not await self.store.set_if_absent(marker_key, design.id):
            existing_id = await self.store.get(marker_key)
            if existing_id == design.id:
                logger.info(f"Design {design.id} was already submitted; nothing to do")
                return design.id
            logger.warning(
                f"User {design.user_id} tried to submit {design.id} but already submitted "
                f"{existing_id} for theme {design.theme_id}"
            )
            raise DuplicateSubmissionError("You have already submitted a design for this theme.")

        submitted_at = self._clock()

        def mark_submitted(stored: Design) -> None:
            stored.submitted = True
            stored.updated_at = max(submitted_at, stored.updated_at)
            if username is not None:
                stored.username = username

        try:
            if await self.repository.load(design.id) is None:
                fresh = design.model_copy(deep=True)
                mark_submitted(fresh)
                saved = await self.repository.save(fresh)
            else:
                saved = await self.repository.update(design.id, mark_submitted)
            await self.store.add_scored(
                self._submissions_key(design.theme_id), keys.design_key(design.id), submitted_at
            )
            await self.store.add_scored(keys.leaderboard_key(design.theme_id), design.id, saved.vote_count)
        except (StoreFailureError, ConcurrentModificationError):
            await self.store.delete(marker_key)
            raise

        logger.info(f"Design {design.id} submitted successfully by user {design.user_id}")
        return design.id

    async def has_user_submitted(self, user_id: str, theme_id: str) -> bool:
        return await self.store.get(keys.user_submission_key(user_id, theme_id)) is not None

    async def get_submitted_designs(
        self, theme_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[Design]:
        """
        Submitted designs for a theme, newest submission first.

        Pages are slices of one stable ordering, so sequential offsets never
        return the same design twice.
        """
        if limit is None:
            limit = settings.DEFAULT_PAGE_SIZE
        if limit < 1 or offset < 0:
            raise InvalidInputError(f"Invalid pagination: limit={limit}, offset={offset}")

        design_keys = await self.store.range_descending(
            self._submissions_key(theme_id), offset, offset + limit - 1
        )
        designs: List[Design] = []
        for design_key in design_keys:
            design = await self.repository.load(keys.design_id_from_key(design_key))
            if design is not None and design.submitted and design.theme_id == theme_id:
                designs.append(design)
        logger.debug(f"Retrieved {len(designs)} submitted designs for theme {theme_id}")
        return designs

    async def get_user_designs(self, user_id: str) -> List[Design]:
        """Designs owned by ``user_id`` across all themes, and nobody else's."""
        return await self.repository.list_by_user(user_id)

    async def get_design_by_id(self, design_id: str) -> Optional[Design]:
        return await self.repository.load(design_id)
