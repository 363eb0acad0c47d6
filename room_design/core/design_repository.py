"""
Design persistence over the key-value store.

A design lives as one JSON blob at ``design:{id}`` and is indexed per owner
in ``user:{userId}:designs``. Its vote count is kept apart from the blob in
the atomic counter ``design:{id}:votes`` so whole-blob writes never lose a
concurrent vote; every load overlays the counter onto ``voteCount``.
"""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from room_design.config.settings import settings
from room_design.core.exceptions import ConcurrentModificationError, ConflictError, NotFoundError, StoreFailureError
from room_design.models.dtos import Design
from room_design.storage import keys
from room_design.storage.base_store import KeyValueStore

logger = logging.getLogger(__name__)

DesignMutator = Callable[[Design], None]


class DesignRepository:
    """CRUD and indexing of Design records."""

    def __init__(self, store: KeyValueStore, max_retries: Optional[int] = None):
        """
        Args:
            store: Key-value store holding the records.
            max_retries: Optimistic-concurrency attempts for ``update``.
                         Defaults to ``settings.MUTATION_MAX_RETRIES``.
        """
        self.store = store
        self.max_retries = max_retries if max_retries is not None else settings.MUTATION_MAX_RETRIES

    @staticmethod
    def _parse(design_id: str, raw: str) -> Design:
        try:
            return Design.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Stored design {design_id} is unreadable: {e}")
            raise StoreFailureError(f"Stored design {design_id} is corrupt") from e

    async def _with_vote_count(self, design: Design) -> Design:
        design.vote_count = await self.store.get_counter(keys.design_votes_key(design.id))
        return design

    async def create(self, design: Design) -> Design:
        """Persist a new design; fails if the id is taken."""
        created = await self.store.set_if_absent(keys.design_key(design.id), design.to_json())
        if not created:
            raise ConflictError(f"Design {design.id} already exists")
        await self.store.add_to_set(keys.user_designs_key(design.user_id), [design.id])
        logger.info(f"Design {design.id} created for user {design.user_id}")
        return design

    async def save(self, design: Design) -> Design:
        """Write the whole design blob and index it under its owner."""
        await self.store.set(keys.design_key(design.id), design.to_json())
        await self.store.add_to_set(keys.user_designs_key(design.user_id), [design.id])
        logger.info(f"Design {design.id} saved successfully")
        return await self._with_vote_count(design)

    async def load(self, design_id: str) -> Optional[Design]:
        raw = await self.store.get(keys.design_key(design_id))
        if raw is None:
            logger.debug(f"Design {design_id} not found")
            return None
        return await self._with_vote_count(self._parse(design_id, raw))

    async def get(self, design_id: str) -> Design:
        """Like ``load`` but raises ``NotFoundError`` for unknown ids."""
        design = await self.load(design_id)
        if design is None:
            raise NotFoundError(f"Design not found: {design_id}")
        return design

    async def list_by_user(self, user_id: str) -> List[Design]:
        """All designs owned by ``user_id``, oldest first."""
        design_ids = await self.store.members(keys.user_designs_key(user_id))
        designs: List[Design] = []
        for design_id in design_ids:
            design = await self.load(design_id)
            # The owner index is advisory; ownership is decided by the record.
            if design is not None and design.user_id == user_id:
                designs.append(design)
        designs.sort(key=lambda d: (d.created_at, d.id))
        logger.debug(f"Loaded {len(designs)} designs for user {user_id}")
        return designs

    async def delete(self, design_id: str) -> bool:
        design = await self.load(design_id)
        if design is None:
            return False
        await self.store.delete(keys.design_key(design_id))
        await self.store.delete(keys.design_votes_key(design_id))
        await self.store.remove_from_set(keys.user_designs_key(design.user_id), [design_id])
        logger.info(f"Design {design_id} deleted successfully")
        return True

    async def update(self, design_id: str, mutator: DesignMutator) -> Design:
        """
        Apply ``mutator`` to the stored design with optimistic concurrency.

        The blob is re-read and the mutator re-applied whenever another writer
        got in between the read and the conditional write. Exceptions raised
        by the mutator propagate and nothing is written.

        Raises:
            NotFoundError: If the design does not exist.
            ConcurrentModificationError: If every attempt lost the race.
        """
        key = keys.design_key(design_id)
        for attempt in range(1, self.max_retries + 1):
            raw = await self.store.get(key)
            if raw is None:
                raise NotFoundError(f"Design not found: {design_id}")
            design = self._parse(design_id, raw)
            mutator(design)
            if await self.store.compare_and_set(key, raw, design.to_json()):
                return await self._with_vote_count(design)
            logger.warning(f"Concurrent update on design {design_id}, retrying ({attempt}/{self.max_retries})")
        raise ConcurrentModificationError(
            f"Design {design_id} is being edited elsewhere; please retry."
        )

    async def apply_vote_delta(self, design: Design, delta: int) -> int:
        """
        Atomically add ``delta`` to the design's vote count.

        Submitted designs also move on their theme's leaderboard by the same
        delta. Returns the new count. If the leaderboard cannot be moved the
        counter is moved back before the failure propagates.
        """
        counter_key = keys.design_votes_key(design.id)
        new_count = await self.store.increment(counter_key, delta)
        if design.submitted:
            try:
                await self.store.increment_score(keys.leaderboard_key(design.theme_id), design.id, delta)
            except StoreFailureError:
                logger.error(f"Leaderboard update failed for {design.id}; reverting vote counter by {-delta:+d}")
                await self.store.increment(counter_key, -delta)
                raise
        logger.info(f"Vote count updated for {design.id}: {delta:+d} (now {new_count})")
        return new_count
