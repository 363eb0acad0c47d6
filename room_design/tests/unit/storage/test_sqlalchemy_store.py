import pytest
from sqlalchemy.exc import OperationalError

from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.exceptions import StoreFailureError
from room_design.core.mutation_engine import DesignMutationEngine
from room_design.core.submission_manager import SubmissionManager
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import AuthenticatedUser, VoteType
from room_design.storage import create_store, keys
from room_design.storage.memory_store import InMemoryKeyValueStore


@pytest.mark.asyncio
async def test_backend_errors_become_store_failures(sql_store, mocker):
    failing_session = mocker.MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("db gone")))
    mocker.patch.object(sql_store, "_session_factory", failing_session)

    with pytest.raises(StoreFailureError) as exc_info:
        await sql_store.get("design:x")
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_design_editing_over_sql_store(sql_store):
    engine = DesignMutationEngine(DesignRepository(sql_store), canvas_width=800, canvas_height=600,
                                  clock=lambda: 1_000)
    design = await engine.create_design("t2_alice", "theme_school_001", "alice")

    await engine.place_asset(design.id, "desk", -50, 700)
    await engine.place_asset(design.id, "lamp", 100, 100)
    updated = await engine.adjust_z_index(design.id, 0, "up")

    assert [(a.x, a.y, a.z_index) for a in updated.assets] == [(0, 600, 1), (100, 100, 1)]
    assert (await engine.get_design(design.id)) == updated


def test_create_store_selects_backend():
    assert isinstance(create_store("memory"), InMemoryKeyValueStore)
    with pytest.raises(ValueError):
        create_store("redis")


@pytest.mark.asyncio
async def test_vote_accounting_over_sql_store(sql_store):
    repository = DesignRepository(sql_store)
    engine = DesignMutationEngine(repository, clock=lambda: 1_000)
    design = await engine.create_design("t2_alice", "theme_school_001", "alice")
    await SubmissionManager(repository, clock=lambda: 2_000).submit_design(design)

    voters = [AuthenticatedUser(id=f"t2_v{i}", username=f"v{i}") for i in range(3)]
    for voter in voters:
        await VotingEngine(repository, AuthService.for_user(voter)).cast_vote(voter.id, design.id, VoteType.UPVOTE)
    switcher = VotingEngine(repository, AuthService.for_user(voters[0]))
    assert await switcher.change_vote(voters[0].id, design.id, VoteType.DOWNVOTE) == 1
    withdrawer = VotingEngine(repository, AuthService.for_user(voters[1]))
    assert await withdrawer.remove_vote(voters[1].id, design.id) == 0

    assert (await repository.get(design.id)).vote_count == 0
    assert await sql_store.score(keys.leaderboard_key("theme_school_001"), design.id) == 0
    assert await sql_store.members(keys.user_designs_key("t2_alice")) == {design.id}
