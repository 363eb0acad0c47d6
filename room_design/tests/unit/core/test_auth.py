import pytest

from room_design.core.auth import AuthService
from room_design.core.exceptions import UnauthorizedError
from room_design.models.dtos import AuthenticatedUser


@pytest.mark.asyncio
async def test_signed_in_user(alice):
    auth = AuthService.for_user(alice)

    assert await auth.get_current_user() == alice
    assert await auth.is_authenticated()
    assert await auth.require_auth() == alice
    assert await auth.is_owner(alice.id)
    assert not await auth.is_owner("t2_someone_else")


@pytest.mark.asyncio
async def test_anonymous_caller():
    auth = AuthService()

    assert await auth.get_current_user() is None
    assert not await auth.is_authenticated()
    assert not await auth.is_owner("t2_alice")
    with pytest.raises(UnauthorizedError) as exc_info:
        await auth.require_auth()
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_user_without_username_counts_as_anonymous():
    auth = AuthService.for_user(AuthenticatedUser(id="t2_ghost", username=""))
    assert not await auth.is_authenticated()


@pytest.mark.asyncio
async def test_lookup_failure_is_treated_as_anonymous(mocker):
    lookup = mocker.AsyncMock(side_effect=ConnectionError("identity service down"))
    auth = AuthService(lookup)

    assert await auth.get_current_user() is None
    lookup.assert_awaited_once()
