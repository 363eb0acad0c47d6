"""
Game API endpoints used by the room design client.

Covers session bootstrap, saving and submitting designs, the gallery,
voting, the leaderboard and the asset catalog.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from room_design.api.dependencies import (
    get_auth_service,
    get_leaderboard,
    get_mutation_engine,
    get_repository,
    get_submission_manager,
    get_theme_lifecycle,
    get_voting_engine,
    require_user,
)
from room_design.config.settings import settings
from room_design.core import asset_catalog
from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import ForbiddenError, NotFoundError
from room_design.core.leaderboard import LeaderboardView
from room_design.core.mutation_engine import DesignMutationEngine
from room_design.core.submission_manager import SubmissionManager
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import (
    Asset,
    AssetCategory,
    AuthenticatedUser,
    CreateDesignRequest,
    Design,
    GalleryResponse,
    InitResponse,
    LeaderboardResponse,
    SaveDesignRequest,
    SubmitDesignRequest,
    SubmitDesignResponse,
    VoteRequest,
    VoteResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def resolve_theme_id(theme_id: Optional[str], lifecycle: ThemeLifecycle) -> str:
    """The requested theme id, or the current theme's id when none was given."""
    if theme_id:
        return theme_id
    theme = await lifecycle.get_current_theme()
    if theme is None:
        raise NotFoundError("No active theme")
    return theme.id


@router.get("/init", response_model=InitResponse)
async def init(
    auth_service: AuthService = Depends(get_auth_service),
    lifecycle: ThemeLifecycle = Depends(get_theme_lifecycle),
    submissions: SubmissionManager = Depends(get_submission_manager),
) -> InitResponse:
    """
    Bootstrap the client: the current theme and who is playing.

    Works without authentication; anonymous callers get ``username`` "anonymous".
    A default theme is created when none exists yet.
    """
    theme = await lifecycle.get_current_theme()
    if theme is None:
        theme = await lifecycle.initialize_default_theme()

    user = await auth_service.get_current_user()
    has_submitted = False
    if user is not None:
        has_submitted = await submissions.has_user_submitted(user.id, theme.id)

    return InitResponse(
        theme=theme,
        time_remaining=lifecycle.get_time_remaining(theme),
        user_id=user.id if user else None,
        username=user.username if user else "anonymous",
        authenticated=user is not None,
        has_submitted=has_submitted,
    )


@router.post("/design/create", response_model=Design, status_code=201)
async def create_design(
    request: CreateDesignRequest,
    user: AuthenticatedUser = Depends(require_user),
    lifecycle: ThemeLifecycle = Depends(get_theme_lifecycle),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    theme_id = await resolve_theme_id(request.theme_id, lifecycle)
    return await engine.create_design(user.id, theme_id, user.username)


@router.post("/design/save", response_model=Design)
async def save_design(
    request: SaveDesignRequest,
    user: AuthenticatedUser = Depends(require_user),
    repository: DesignRepository = Depends(get_repository),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    """Upsert a design blob owned by the caller."""
    design = request.design
    stored = await repository.load(design.id)
    owner_id = stored.user_id if stored is not None else design.user_id
    if owner_id != user.id:
        raise ForbiddenError("You can only save your own designs.")
    if stored is None:
        design = design.model_copy(update={"username": user.username})
    return await engine.save_design(design)


@router.post("/design/submit", response_model=SubmitDesignResponse)
async def submit_design(
    request: SubmitDesignRequest,
    _: AuthenticatedUser = Depends(require_user),
    repository: DesignRepository = Depends(get_repository),
    submissions: SubmissionManager = Depends(get_submission_manager),
) -> SubmitDesignResponse:
    design = await repository.get(request.design_id)
    design_id = await submissions.submit_design(design)
    return SubmitDesignResponse(design_id=design_id)


@router.get("/gallery", response_model=GalleryResponse)
async def gallery(
    theme_id: Optional[str] = Query(None, alias="themeId"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    lifecycle: ThemeLifecycle = Depends(get_theme_lifecycle),
    submissions: SubmissionManager = Depends(get_submission_manager),
) -> GalleryResponse:
    resolved = await resolve_theme_id(theme_id, lifecycle)
    designs = await submissions.get_submitted_designs(resolved, limit=limit, offset=offset)
    return GalleryResponse(theme_id=resolved, designs=designs, limit=limit, offset=offset)


@router.post("/design/vote", response_model=VoteResponse)
async def vote(
    request: VoteRequest,
    user: AuthenticatedUser = Depends(require_user),
    repository: DesignRepository = Depends(get_repository),
    lifecycle: ThemeLifecycle = Depends(get_theme_lifecycle),
    voting: VotingEngine = Depends(get_voting_engine),
) -> VoteResponse:
    """
    Toggle the caller's vote on a submitted design.

    No vote yet casts one; the same type again removes it; the other type
    switches it; a null ``voteType`` removes any existing vote.
    """
    design = await repository.get(request.design_id)
    if not design.submitted:
        raise ForbiddenError("Only submitted designs can be voted on.")
    theme = await lifecycle.get_theme_by_id(design.theme_id)
    if theme is None or not await lifecycle.is_accepting_votes(theme):
        raise ForbiddenError("Voting has closed for this theme.")

    existing = await voting.get_user_vote(user.id, design.id)
    requested = request.vote_type
    if existing is None:
        if requested is None:
            return VoteResponse(design_id=design.id, vote_count=design.vote_count)
        vote_count = await voting.cast_vote(user.id, design.id, requested)
        user_vote = requested
    elif requested is None or requested is existing.vote_type:
        vote_count = await voting.remove_vote(user.id, design.id)
        user_vote = None
    else:
        vote_count = await voting.change_vote(user.id, design.id, requested)
        user_vote = requested

    return VoteResponse(design_id=design.id, vote_count=vote_count, user_vote=user_vote)


@router.get("/my-designs", response_model=List[Design])
async def my_designs(
    user: AuthenticatedUser = Depends(require_user),
    submissions: SubmissionManager = Depends(get_submission_manager),
) -> List[Design]:
    return await submissions.get_user_designs(user.id)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    theme_id: Optional[str] = Query(None, alias="themeId"),
    limit: Optional[int] = Query(None, ge=1, le=settings.MAX_PAGE_SIZE),
    auth_service: AuthService = Depends(get_auth_service),
    lifecycle: ThemeLifecycle = Depends(get_theme_lifecycle),
    view: LeaderboardView = Depends(get_leaderboard),
) -> LeaderboardResponse:
    resolved = await resolve_theme_id(theme_id, lifecycle)
    entries = await view.get_leaderboard_by_theme(resolved, limit=limit)
    user = await auth_service.get_current_user()
    user_rank = await view.get_user_rank(user.id, resolved) if user else None
    return LeaderboardResponse(theme_id=resolved, entries=entries, user_rank=user_rank)


@router.get("/assets", response_model=List[Asset])
async def assets(
    category: Optional[AssetCategory] = Query(None),
    q: Optional[str] = Query(None, max_length=100),
) -> List[Asset]:
    return asset_catalog.list_assets(category=category, query=q, base_url=settings.ASSET_BASE_URL)
