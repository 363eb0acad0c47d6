import httpx
import pytest
import pytest_asyncio

from room_design.api.dependencies import get_clock
from room_design.api.main import create_app
from room_design.storage.memory_store import InMemoryKeyValueStore
from room_design.tests.conftest import THEME_ID, FakeClock
from room_design.utils.time_utils import MS_PER_DAY

ALICE = {"X-User-Id": "t2_alice", "X-Username": "alice"}
BOB = {"X-User-Id": "t2_bob", "X-Username": "bob"}
CAROL = {"X-User-Id": "t2_carol", "X-Username": "carol"}


@pytest.fixture
def api_clock():
    return FakeClock()


@pytest_asyncio.fixture
async def client(api_clock):
    app = create_app()
    app.state.store = InMemoryKeyValueStore()
    app.dependency_overrides[get_clock] = lambda: api_clock
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def theme(client):
    response = await client.get("/api/init")
    assert response.status_code == 200
    return response.json()["theme"]


async def create_design(client, headers=ALICE):
    response = await client.post("/api/design/create", json={}, headers=headers)
    assert response.status_code == 201
    return response.json()


async def submitted_design(client, headers=ALICE):
    design = await create_design(client, headers)
    response = await client.post("/api/design/submit", json={"designId": design["id"]}, headers=headers)
    assert response.status_code == 200
    return design


async def vote(client, design_id, vote_type, headers=BOB):
    return await client.post(
        "/api/design/vote", json={"designId": design_id, "voteType": vote_type}, headers=headers
    )


@pytest.mark.asyncio
async def test_init_bootstraps_default_theme_for_anonymous(client):
    response = await client.get("/api/init")

    body = response.json()
    assert response.status_code == 200
    assert body["theme"]["id"] == THEME_ID
    assert body["theme"]["name"] == "School"
    assert body["timeRemaining"] == MS_PER_DAY
    assert body["username"] == "anonymous"
    assert body["authenticated"] is False


@pytest.mark.asyncio
async def test_init_reports_submission_state(client, theme):
    await submitted_design(client)

    body = (await client.get("/api/init", headers=ALICE)).json()

    assert body["authenticated"] is True
    assert body["userId"] == "t2_alice"
    assert body["hasSubmitted"] is True


@pytest.mark.asyncio
async def test_create_requires_login(client, theme):
    response = await client.post("/api/design/create", json={})

    assert response.status_code == 401
    assert response.json()["status"] == "error"
    assert response.json()["code"] == "UnauthorizedError"


@pytest.mark.asyncio
async def test_create_design_for_current_theme(client, theme, api_clock):
    design = await create_design(client)

    assert design["userId"] == "t2_alice"
    assert design["username"] == "alice"
    assert design["themeId"] == THEME_ID
    assert design["backgroundColor"] == "#FFFFFF"
    assert design["assets"] == []
    assert design["createdAt"] == api_clock.now
    assert design["submitted"] is False


@pytest.mark.asyncio
async def test_editing_endpoints(client, theme):
    design = await create_design(client)
    base = f"/api/design/{design['id']}"

    placed = await client.post(f"{base}/assets", json={"assetId": "desk", "x": -50, "y": 700}, headers=ALICE)
    assert placed.status_code == 200
    assert placed.json()["assets"][0] == {"assetId": "desk", "x": 0, "y": 600, "rotation": 0, "zIndex": 0}

    await client.post(f"{base}/assets", json={"assetId": "lamp", "x": 10, "y": 10}, headers=ALICE)
    moved = await client.patch(f"{base}/assets/1", json={"x": 900, "y": 20}, headers=ALICE)
    assert moved.json()["assets"][1]["x"] == 800

    rotated = await client.post(f"{base}/assets/0/rotate", headers=ALICE)
    assert rotated.json()["assets"][0]["rotation"] == 90

    layered = await client.post(f"{base}/assets/0/layer", json={"direction": "up"}, headers=ALICE)
    assert layered.json()["assets"][0]["zIndex"] == 1

    colored = await client.put(f"{base}/background", json={"color": "#123abc"}, headers=ALICE)
    assert colored.json()["backgroundColor"] == "#123abc"

    removed = await client.delete(f"{base}/assets/0", headers=ALICE)
    assert [a["assetId"] for a in removed.json()["assets"]] == ["lamp"]


@pytest.mark.asyncio
@pytest.mark.parametrize("method, path, payload, code", [
    ("put", "/background", {"color": "blue"}, "InvalidColorError"),
    ("post", "/assets/0/layer", {"direction": "sideways"}, "InvalidDirectionError"),
    ("post", "/assets/5/rotate", None, "InvalidIndexError"),
])
async def test_invalid_edits_are_rejected(client, theme, method, path, payload, code):
    design = await create_design(client)
    await client.post(f"/api/design/{design['id']}/assets", json={"assetId": "desk", "x": 1, "y": 1}, headers=ALICE)

    kwargs = {"headers": ALICE}
    if payload is not None:
        kwargs["json"] = payload
    response = await getattr(client, method)(f"/api/design/{design['id']}{path}", **kwargs)

    assert response.status_code == 400
    assert response.json()["code"] == code


@pytest.mark.asyncio
async def test_only_owner_can_edit(client, theme):
    design = await create_design(client)

    response = await client.put(f"/api/design/{design['id']}/background", json={"color": "#000000"}, headers=BOB)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_save_design_upserts_and_clamps(client, theme):
    design = await create_design(client)
    design["backgroundColor"] = "#0A0B0C"
    design["assets"] = [{"assetId": "chair_1", "x": 1000, "y": -5, "rotation": 180, "zIndex": 3}]

    response = await client.post("/api/design/save", json={"design": design}, headers=ALICE)

    saved = response.json()
    assert response.status_code == 200
    assert saved["backgroundColor"] == "#0A0B0C"
    assert saved["assets"][0] == {"assetId": "chair_1", "x": 800, "y": 0, "rotation": 180, "zIndex": 3}

    stolen = await client.post("/api/design/save", json={"design": design}, headers=BOB)
    assert stolen.status_code == 403


@pytest.mark.asyncio
async def test_submitted_design_is_locked(client, theme):
    design = await submitted_design(client)

    edit = await client.post(f"/api/design/{design['id']}/assets", json={"assetId": "desk", "x": 1, "y": 1},
                             headers=ALICE)
    delete = await client.delete(f"/api/design/{design['id']}", headers=ALICE)

    assert edit.status_code == 409
    assert edit.json()["code"] == "DesignLockedError"
    assert delete.status_code == 409


@pytest.mark.asyncio
async def test_second_submission_for_theme_conflicts(client, theme):
    await submitted_design(client)
    other = await create_design(client)

    response = await client.post("/api/design/submit", json={"designId": other["id"]}, headers=ALICE)

    assert response.status_code == 409
    assert response.json()["code"] == "DuplicateSubmissionError"


@pytest.mark.asyncio
async def test_drafts_are_private_and_deletable(client, theme):
    design = await create_design(client)
    path = f"/api/design/{design['id']}"

    assert (await client.get(path, headers=ALICE)).status_code == 200
    assert (await client.get(path, headers=BOB)).status_code == 403

    deleted = await client.delete(path, headers=ALICE)
    assert deleted.json() == {"status": "deleted", "designId": design["id"]}
    assert (await client.get(path, headers=ALICE)).status_code == 404


@pytest.mark.asyncio
async def test_gallery_lists_submissions_newest_first(client, theme, api_clock):
    first = await submitted_design(client, ALICE)
    api_clock.advance(1_000)
    second = await submitted_design(client, BOB)
    await create_design(client, CAROL)

    body = (await client.get("/api/gallery", params={"limit": 10})).json()

    assert body["themeId"] == THEME_ID
    assert [d["id"] for d in body["designs"]] == [second["id"], first["id"]]

    page = (await client.get("/api/gallery", params={"themeId": THEME_ID, "limit": 1, "offset": 1})).json()
    assert [d["id"] for d in page["designs"]] == [first["id"]]


@pytest.mark.asyncio
async def test_gallery_rejects_bad_paging(client, theme):
    assert (await client.get("/api/gallery", params={"limit": 0})).status_code == 422
    assert (await client.get("/api/gallery", params={"offset": -1})).status_code == 422


@pytest.mark.asyncio
async def test_vote_toggle_semantics(client, theme):
    design = await submitted_design(client)

    up = (await vote(client, design["id"], "upvote")).json()
    assert (up["voteCount"], up["userVote"]) == (1, "upvote")

    cleared = (await vote(client, design["id"], "upvote")).json()
    assert (cleared["voteCount"], cleared["userVote"]) == (0, None)

    down = (await vote(client, design["id"], "downvote")).json()
    assert (down["voteCount"], down["userVote"]) == (-1, "downvote")

    switched = (await vote(client, design["id"], "upvote")).json()
    assert (switched["voteCount"], switched["userVote"]) == (1, "upvote")

    removed = (await vote(client, design["id"], None)).json()
    assert (removed["voteCount"], removed["userVote"]) == (0, None)

    mine = (await client.get(f"/api/design/{design['id']}/vote", headers=BOB)).json()
    assert mine["userVote"] is None


@pytest.mark.asyncio
async def test_self_vote_is_forbidden(client, theme):
    design = await submitted_design(client)

    response = await vote(client, design["id"], "upvote", headers=ALICE)

    assert response.status_code == 403
    assert response.json() == {
        "status": "error",
        "code": "SelfVoteError",
        "message": "You cannot vote on your own design.",
    }


@pytest.mark.asyncio
async def test_vote_rules(client, theme, api_clock):
    draft = await create_design(client)
    assert (await vote(client, draft["id"], "upvote")).status_code == 403

    anonymous = await client.post("/api/design/vote", json={"designId": draft["id"], "voteType": "upvote"})
    assert anonymous.status_code == 401

    assert (await vote(client, "missing", "upvote")).status_code == 404

    design = await submitted_design(client, CAROL)
    api_clock.advance(MS_PER_DAY)
    closed = await vote(client, design["id"], "upvote")
    assert closed.status_code == 403


@pytest.mark.asyncio
async def test_leaderboard_ranks_and_user_rank(client, theme):
    alice_design = await submitted_design(client, ALICE)
    bob_design = await submitted_design(client, BOB)
    await vote(client, bob_design["id"], "upvote", headers=CAROL)
    await vote(client, alice_design["id"], "downvote", headers=CAROL)

    body = (await client.get("/api/leaderboard", headers=ALICE)).json()

    assert body["themeId"] == THEME_ID
    assert [(e["rank"], e["username"], e["voteCount"]) for e in body["entries"]] == [
        (1, "bob", 1),
        (2, "alice", -1),
    ]
    assert body["userRank"] == 2

    assert (await client.get("/api/leaderboard", params={"limit": 1})).json()["userRank"] is None


@pytest.mark.asyncio
async def test_my_designs(client, theme):
    mine = await create_design(client, ALICE)
    await create_design(client, BOB)

    body = (await client.get("/api/my-designs", headers=ALICE)).json()

    assert [d["id"] for d in body] == [mine["id"]]


@pytest.mark.asyncio
async def test_asset_catalog_filters(client):
    chairs = (await client.get("/api/assets", params={"category": "chair"})).json()
    assert chairs and all(a["category"] == "chair" for a in chairs)

    lamps = (await client.get("/api/assets", params={"q": "lamp"})).json()
    assert [a["id"] for a in lamps] == ["lamp"]

    assert (await client.get("/api/assets", params={"category": "spaceship"})).status_code == 422


@pytest.mark.asyncio
async def test_health(client):
    body = (await client.get("/health")).json()

    assert body["status"] == "healthy"
    assert body["store"] == "ok"
    assert body["theme_rotation"] == "stopped"
