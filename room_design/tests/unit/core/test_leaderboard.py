import pytest

from room_design.core.auth import AuthService
from room_design.core.exceptions import InvalidInputError
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import AuthenticatedUser, VoteType
from room_design.tests.conftest import THEME_ID


async def submit_for(engine, submissions, clock, user_id):
    clock.advance(1)
    design = await engine.create_design(user_id, THEME_ID, user_id.removeprefix("t2_"))
    await submissions.submit_design(design)
    return design


async def give_votes(repository, design_id, upvotes=0, downvotes=0, prefix="voter"):
    for i in range(upvotes + downvotes):
        voter = AuthenticatedUser(id=f"t2_{prefix}{design_id}{i}", username=f"{prefix}{i}")
        vote_type = VoteType.UPVOTE if i < upvotes else VoteType.DOWNVOTE
        await VotingEngine(repository, AuthService.for_user(voter)).cast_vote(voter.id, design_id, vote_type)


@pytest.mark.asyncio
async def test_empty_leaderboard(leaderboard):
    assert await leaderboard.get_leaderboard_by_theme(THEME_ID) == []
    assert await leaderboard.get_top_designs(THEME_ID, 5) == []


@pytest.mark.asyncio
async def test_ranks_are_dense_and_sorted(leaderboard, engine, submissions, repository, clock):
    low = await submit_for(engine, submissions, clock, "t2_low")
    high = await submit_for(engine, submissions, clock, "t2_high")
    mid = await submit_for(engine, submissions, clock, "t2_mid")
    await give_votes(repository, high.id, upvotes=3)
    await give_votes(repository, mid.id, upvotes=2, downvotes=1)
    await give_votes(repository, low.id, downvotes=2)

    entries = await leaderboard.get_leaderboard_by_theme(THEME_ID)

    assert [e.rank for e in entries] == [1, 2, 3]
    assert [e.design.id for e in entries] == [high.id, mid.id, low.id]
    assert [e.vote_count for e in entries] == [3, 1, -2]


@pytest.mark.asyncio
async def test_ties_favor_earlier_designs(leaderboard, engine, submissions, repository, clock):
    first = await submit_for(engine, submissions, clock, "t2_first")
    second = await submit_for(engine, submissions, clock, "t2_second")
    third = await submit_for(engine, submissions, clock, "t2_third")
    await give_votes(repository, third.id, upvotes=1)
    await give_votes(repository, first.id, upvotes=1)

    entries = await leaderboard.get_leaderboard_by_theme(THEME_ID)

    assert [e.design.id for e in entries] == [first.id, third.id, second.id]
    assert [e.rank for e in entries] == [1, 2, 3]


@pytest.mark.asyncio
async def test_entries_mirror_design_fields(leaderboard, engine, submissions, repository, clock):
    design = await submit_for(engine, submissions, clock, "t2_alice")
    await give_votes(repository, design.id, upvotes=2)

    [entry] = await leaderboard.get_leaderboard_by_theme(THEME_ID)

    assert entry.username == entry.design.username == "alice"
    assert entry.vote_count == entry.design.vote_count == 2


@pytest.mark.asyncio
async def test_drafts_and_other_themes_are_excluded(leaderboard, engine, submissions, clock):
    await engine.create_design("t2_draft", THEME_ID, "draft")
    other = await engine.create_design("t2_other", "theme_office_1", "other")
    await submissions.submit_design(other)
    mine = await submit_for(engine, submissions, clock, "t2_mine")

    entries = await leaderboard.get_leaderboard_by_theme(THEME_ID)

    assert [e.design.id for e in entries] == [mine.id]


@pytest.mark.asyncio
async def test_top_designs_limits_results(leaderboard, engine, submissions, repository, clock):
    designs = [await submit_for(engine, submissions, clock, f"t2_u{i}") for i in range(4)]
    await give_votes(repository, designs[2].id, upvotes=5)

    top = await leaderboard.get_top_designs(THEME_ID, 2)

    assert [d.id for d in top] == [designs[2].id, designs[0].id]
    assert await leaderboard.get_top_designs(THEME_ID, 0) == []
    with pytest.raises(InvalidInputError):
        await leaderboard.get_top_designs(THEME_ID, -1)


@pytest.mark.asyncio
async def test_user_rank(leaderboard, engine, submissions, repository, clock):
    a = await submit_for(engine, submissions, clock, "t2_a")
    await submit_for(engine, submissions, clock, "t2_b")
    await give_votes(repository, a.id, downvotes=1)

    assert await leaderboard.get_user_rank("t2_b", THEME_ID) == 1
    assert await leaderboard.get_user_rank("t2_a", THEME_ID) == 2
    assert await leaderboard.get_user_rank("t2_nobody", THEME_ID) is None
