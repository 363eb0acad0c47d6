"""
Voting engine.

Each (voter, design) pair moves through NoVote -> Voted(type) ->
Voted(other type) -> NoVote. The vote record lives at
``votes:{designId}:{userId}``; the count it contributes is applied to the
design's atomic counter (and its leaderboard score) by delta, never by
rewriting the design blob.

The record is written first and the delta applied second. When the delta
fails the record write is undone, so the count always equals the sum of the
recorded votes.
"""

import logging
from typing import Awaitable, Optional, Tuple, Union

from pydantic import ValidationError

from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import (
    ConcurrentModificationError,
    DuplicateVoteError,
    InvalidInputError,
    NoVoteError,
    SelfVoteError,
    StoreFailureError,
    UnauthorizedError,
)
from room_design.models.dtos import Vote, VoteType
from room_design.storage import keys
from room_design.utils.time_utils import Clock, now_ms

logger = logging.getLogger(__name__)


def parse_vote_type(value: Union[VoteType, str]) -> VoteType:
    try:
        return VoteType(value)
    except ValueError:
        raise InvalidInputError(f"Invalid vote type: {value!r}; expected 'upvote' or 'downvote'")


class VotingEngine:
    """Casts, changes and removes votes on designs."""

    def __init__(self, repository: DesignRepository, auth_service: AuthService, clock: Clock = now_ms):
        self.repository = repository
        self.store = repository.store
        self.auth_service = auth_service
        self._clock = clock

    async def _require_voter(self, voter_id: str, action: str) -> None:
        user = await self.auth_service.require_auth()
        if user.id != voter_id:
            logger.warning(f"User {user.id} attempted to {action} on behalf of {voter_id}")
            raise UnauthorizedError(f"Cannot {action} for another user")

    async def _read_vote(self, voter_id: str, design_id: str) -> Tuple[Optional[str], Optional[Vote]]:
        raw = await self.store.get(keys.vote_key(design_id, voter_id))
        if raw is None:
            return None, None
        try:
            return raw, Vote.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Stored vote of {voter_id} on {design_id} is unreadable: {e}")
            raise StoreFailureError(f"Stored vote on design {design_id} is corrupt") from e

    @staticmethod
    async def _undo(description: str, undo: Awaitable) -> None:
        """Run a compensating store write after a failed vote delta."""
        try:
            await undo
            logger.warning(f"Rolled back {description} after the vote count update failed")
        except StoreFailureError as e:
            logger.error(f"Could not roll back {description}: {e}", exc_info=True)

    async def cast_vote(self, voter_id: str, design_id: str, vote_type: VoteType) -> int:
        """
        Record a first vote and return the design's new vote count.

        Raises:
            UnauthorizedError: If nobody is signed in or the caller is not ``voter_id``.
            InvalidInputError: If ``vote_type`` is not a known vote type.
            NotFoundError: If the design does not exist.
            SelfVoteError: If the voter owns the design.
            DuplicateVoteError: If the voter already voted; use ``change_vote``.
        """
        await self._require_voter(voter_id, "cast vote")
        vote_type = parse_vote_type(vote_type)
        design = await self.repository.get(design_id)
        if design.user_id == voter_id:
            logger.warning(f"User {voter_id} attempted to vote on own design {design_id}")
            raise SelfVoteError()

        key = keys.vote_key(design_id, voter_id)
        vote = Vote(user_id=voter_id, design_id=design_id, vote_type=vote_type, timestamp=self._clock())
        if not await self.store.set_if_absent(key, vote.to_json()):
            logger.warning(f"User {voter_id} already voted on {design_id}")
            raise DuplicateVoteError(
                "User has already voted on this design. Use changeVote to modify the vote."
            )

        try:
            new_count = await self.repository.apply_vote_delta(design, vote_type.delta)
        except StoreFailureError:
            await self._undo(f"vote of {voter_id} on {design_id}", self.store.delete(key))
            raise
        logger.info(f"Vote cast: {voter_id} {vote_type.value} on {design_id}")
        return new_count

    async def change_vote(self, voter_id: str, design_id: str, new_type: VoteType) -> int:
        """
        Switch an existing vote to ``new_type``; a no-op when the type is unchanged.

        Raises:
            InvalidInputError: If ``new_type`` is not a known vote type.
            NoVoteError: If the voter has no vote on the design.
            ConcurrentModificationError: If the vote changed while being replaced.
        """
        await self._require_voter(voter_id, "change vote")
        new_type = parse_vote_type(new_type)
        raw, existing = await self._read_vote(voter_id, design_id)
        if existing is None:
            raise NoVoteError("No existing vote found. Use castVote to create a new vote.")

        design = await self.repository.get(design_id)
        if existing.vote_type is new_type:
            return design.vote_count

        key = keys.vote_key(design_id, voter_id)
        updated = Vote(user_id=voter_id, design_id=design_id, vote_type=new_type, timestamp=self._clock()).to_json()
        if not await self.store.compare_and_set(key, raw, updated):
            raise ConcurrentModificationError("Your vote changed while it was being updated; please retry.")

        try:
            new_count = await self.repository.apply_vote_delta(design, 2 * new_type.delta)
        except StoreFailureError:
            await self._undo(f"vote change of {voter_id} on {design_id}", self.store.compare_and_set(key, updated, raw))
            raise
        logger.info(f"Vote changed: {voter_id} changed to {new_type.value} on {design_id}")
        return new_count

    async def remove_vote(self, voter_id: str, design_id: str) -> int:
        """
        Delete the voter's vote and undo its contribution.

        Raises:
            NoVoteError: If there is no vote to remove.
        """
        await self._require_voter(voter_id, "remove vote")
        raw, existing = await self._read_vote(voter_id, design_id)
        if existing is None:
            raise NoVoteError("No vote found to remove")

        design = await self.repository.get(design_id)
        key = keys.vote_key(design_id, voter_id)
        # Only the caller whose delete removed the record undoes its delta.
        if not await self.store.delete(key):
            raise NoVoteError("No vote found to remove")

        try:
            new_count = await self.repository.apply_vote_delta(design, -existing.vote_type.delta)
        except StoreFailureError:
            await self._undo(f"vote removal of {voter_id} on {design_id}", self.store.set_if_absent(key, raw))
            raise
        logger.info(f"Vote removed: {voter_id} removed {existing.vote_type.value} from {design_id}")
        return new_count

    async def get_user_vote(self, voter_id: str, design_id: str) -> Optional[Vote]:
        _, vote = await self._read_vote(voter_id, design_id)
        return vote
