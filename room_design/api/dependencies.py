"""
FastAPI dependencies wiring each request to the shared store and the core components.

The host platform forwards the signed-in user in the ``X-User-Id`` and
``X-Username`` headers; requests without them are anonymous.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from room_design.config.settings import settings
from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import ForbiddenError
from room_design.core.leaderboard import LeaderboardView
from room_design.core.mutation_engine import DesignMutationEngine
from room_design.core.submission_manager import SubmissionManager
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import AuthenticatedUser, Design
from room_design.storage.base_store import KeyValueStore
from room_design.utils.time_utils import Clock, now_ms

logger = logging.getLogger(__name__)


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_clock() -> Clock:
    return now_ms


async def get_identity(
    x_user_id: Optional[str] = Header(None),
    x_username: Optional[str] = Header(None),
) -> Optional[AuthenticatedUser]:
    if not x_user_id or not x_username:
        return None
    return AuthenticatedUser(id=x_user_id, username=x_username)


async def get_auth_service(user: Optional[AuthenticatedUser] = Depends(get_identity)) -> AuthService:
    return AuthService.for_user(user)


async def require_user(auth_service: AuthService = Depends(get_auth_service)) -> AuthenticatedUser:
    return await auth_service.require_auth()


def get_repository(store: KeyValueStore = Depends(get_store)) -> DesignRepository:
    return DesignRepository(store)


def get_mutation_engine(
    repository: DesignRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> DesignMutationEngine:
    return DesignMutationEngine(repository, clock=clock)


def get_submission_manager(
    repository: DesignRepository = Depends(get_repository),
    auth_service: AuthService = Depends(get_auth_service),
    clock: Clock = Depends(get_clock),
) -> SubmissionManager:
    return SubmissionManager(repository, auth_service=auth_service, clock=clock)


def get_voting_engine(
    repository: DesignRepository = Depends(get_repository),
    auth_service: AuthService = Depends(get_auth_service),
    clock: Clock = Depends(get_clock),
) -> VotingEngine:
    return VotingEngine(repository, auth_service, clock=clock)


def get_theme_lifecycle(
    request: Request,
    store: KeyValueStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> ThemeLifecycle:
    notifier = getattr(request.app.state, "notifier", None)
    return ThemeLifecycle(store, notifier=notifier, theme_duration_hours=settings.THEME_DURATION_HOURS, clock=clock)


def get_leaderboard(repository: DesignRepository = Depends(get_repository)) -> LeaderboardView:
    return LeaderboardView(repository)


async def get_owned_design(
    design_id: str,
    user: AuthenticatedUser = Depends(require_user),
    repository: DesignRepository = Depends(get_repository),
) -> Design:
    """The design named in the path, provided the caller owns it."""
    design = await repository.get(design_id)
    if design.user_id != user.id:
        logger.warning(f"User {user.id} attempted to modify design {design_id} owned by {design.user_id}")
        raise ForbiddenError("You can only modify your own designs.")
    return design
