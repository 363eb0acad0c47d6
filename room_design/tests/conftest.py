"""Shared fixtures: an in-memory store, the core components and a controllable clock."""

import pytest
import pytest_asyncio

from room_design.core.auth import AuthService
from room_design.core.design_repository import DesignRepository
from room_design.core.leaderboard import LeaderboardView
from room_design.core.mutation_engine import DesignMutationEngine
from room_design.core.submission_manager import SubmissionManager
from room_design.core.theme_lifecycle import ThemeLifecycle
from room_design.core.voting_engine import VotingEngine
from room_design.models.dtos import AuthenticatedUser
from room_design.storage.memory_store import InMemoryKeyValueStore

START_MS = 1_700_000_000_000
THEME_ID = "theme_school_001"


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(store) -> DesignRepository:
    return DesignRepository(store, max_retries=3)


@pytest.fixture
def engine(repository, clock) -> DesignMutationEngine:
    return DesignMutationEngine(repository, canvas_width=800, canvas_height=600, clock=clock)


@pytest.fixture
def alice() -> AuthenticatedUser:
    return AuthenticatedUser(id="t2_alice", username="alice")


@pytest.fixture
def bob() -> AuthenticatedUser:
    return AuthenticatedUser(id="t2_bob", username="bob")


@pytest.fixture
def carol() -> AuthenticatedUser:
    return AuthenticatedUser(id="t2_carol", username="carol")


@pytest.fixture
def submissions(repository, clock) -> SubmissionManager:
    return SubmissionManager(repository, clock=clock)


@pytest.fixture
def lifecycle(store, clock) -> ThemeLifecycle:
    return ThemeLifecycle(store, theme_duration_hours=24, clock=clock)


@pytest.fixture
def leaderboard(repository) -> LeaderboardView:
    return LeaderboardView(repository)


@pytest.fixture
def voting_for(repository, clock):
    """Build a VotingEngine whose signed-in caller is the given user (None: anonymous)."""
    def build(user):
        return VotingEngine(repository, AuthService.for_user(user), clock=clock)
    return build


@pytest_asyncio.fixture
async def alice_design(engine, alice):
    return await engine.create_design(alice.id, THEME_ID, alice.username)


@pytest_asyncio.fixture
async def submitted_design(engine, submissions, alice):
    design = await engine.create_design(alice.id, THEME_ID, alice.username)
    await submissions.submit_design(design)
    return await engine.get_design(design.id)
