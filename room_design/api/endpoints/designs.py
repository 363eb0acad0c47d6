"""
Design editing endpoints.

Assets are addressed by their index in the design's asset list. Indices
shift after a removal, so clients should use the asset list returned by each
call for the next one.
"""

import logging

from fastapi import APIRouter, Depends

from room_design.api.dependencies import (
    get_auth_service,
    get_mutation_engine,
    get_owned_design,
    get_repository,
    get_voting_engine,
    require_user,
)
from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import DesignLockedError, ForbiddenError
from room_design.core.mutation_engine import DesignMutationEngine
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import (
    AuthenticatedUser,
    BackgroundColorRequest,
    Design,
    LayerRequest,
    MoveAssetRequest,
    PlaceAssetRequest,
    VoteResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/{design_id}", response_model=Design)
async def get_design(
    design_id: str,
    auth_service: AuthService = Depends(get_auth_service),
    repository: DesignRepository = Depends(get_repository),
) -> Design:
    """Submitted designs are public; drafts are visible to their owner only."""
    design = await repository.get(design_id)
    if not design.submitted and not await auth_service.is_owner(design.user_id):
        raise ForbiddenError("This design has not been submitted yet.")
    return design


@router.delete("/{design_id}")
async def delete_design(
    design: Design = Depends(get_owned_design),
    repository: DesignRepository = Depends(get_repository),
) -> dict:
    if design.submitted:
        raise DesignLockedError("Submitted designs cannot be deleted.")
    await repository.delete(design.id)
    return {"status": "deleted", "designId": design.id}


@router.get("/{design_id}/vote", response_model=VoteResponse)
async def get_my_vote(
    design_id: str,
    user: AuthenticatedUser = Depends(require_user),
    repository: DesignRepository = Depends(get_repository),
    voting: VotingEngine = Depends(get_voting_engine),
) -> VoteResponse:
    design = await repository.get(design_id)
    vote = await voting.get_user_vote(user.id, design_id)
    return VoteResponse(
        design_id=design_id,
        vote_count=design.vote_count,
        user_vote=vote.vote_type if vote else None,
    )


@router.post("/{design_id}/assets", response_model=Design)
async def place_asset(
    request: PlaceAssetRequest,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.place_asset(design.id, request.asset_id, request.x, request.y)


@router.patch("/{design_id}/assets/{index}", response_model=Design)
async def move_asset(
    index: int,
    request: MoveAssetRequest,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.move_asset(design.id, index, request.x, request.y)


@router.post("/{design_id}/assets/{index}/rotate", response_model=Design)
async def rotate_asset(
    index: int,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.rotate_asset(design.id, index)


@router.post("/{design_id}/assets/{index}/layer", response_model=Design)
async def adjust_layer(
    index: int,
    request: LayerRequest,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.adjust_z_index(design.id, index, request.direction)


@router.delete("/{design_id}/assets/{index}", response_model=Design)
async def remove_asset(
    index: int,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.remove_asset(design.id, index)


@router.put("/{design_id}/background", response_model=Design)
async def update_background(
    request: BackgroundColorRequest,
    design: Design = Depends(get_owned_design),
    engine: DesignMutationEngine = Depends(get_mutation_engine),
) -> Design:
    return await engine.update_background_color(design.id, request.color)
