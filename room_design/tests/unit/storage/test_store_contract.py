import pytest


@pytest.mark.asyncio
async def test_strings(kv_store):
    assert await kv_store.get("k") is None
    await kv_store.set("k", "v1")
    await kv_store.set("k", "v2")
    assert await kv_store.get("k") == "v2"
    assert await kv_store.delete("k") is True
    assert await kv_store.delete("k") is False
    assert await kv_store.get("k") is None


@pytest.mark.asyncio
async def test_set_if_absent(kv_store):
    assert await kv_store.set_if_absent("k", "first") is True
    assert await kv_store.set_if_absent("k", "second") is False
    assert await kv_store.get("k") == "first"


@pytest.mark.asyncio
async def test_compare_and_set(kv_store):
    assert await kv_store.compare_and_set("k", None, "a") is True
    assert await kv_store.compare_and_set("k", None, "b") is False
    assert await kv_store.compare_and_set("k", "stale", "b") is False
    assert await kv_store.compare_and_set("k", "a", "b") is True
    assert await kv_store.get("k") == "b"


@pytest.mark.asyncio
async def test_sets(kv_store):
    assert await kv_store.add_to_set("s", ["a", "b"]) == 2
    assert await kv_store.add_to_set("s", ["b", "c"]) == 1
    assert await kv_store.members("s") == {"a", "b", "c"}
    assert await kv_store.remove_from_set("s", ["a", "zzz"]) == 1
    assert await kv_store.members("s") == {"b", "c"}
    assert await kv_store.members("missing") == set()
    assert await kv_store.add_to_set("s", []) == 0


@pytest.mark.asyncio
async def test_sorted_ranges(kv_store):
    await kv_store.add_scored("z", "low", 1)
    await kv_store.add_scored("z", "high", 10)
    await kv_store.add_scored("z", "mid_b", 5)
    await kv_store.add_scored("z", "mid_a", 5)

    assert await kv_store.range_descending("z", 0, -1) == ["high", "mid_b", "mid_a", "low"]
    assert await kv_store.range_descending("z", 1, 2) == ["mid_b", "mid_a"]
    assert await kv_store.range_descending("z", -2, -1) == ["mid_a", "low"]
    assert await kv_store.range_descending("z", 3, 1) == []
    assert await kv_store.range_descending("z", 10, 20) == []
    assert await kv_store.range_descending("nothing", 0, -1) == []


@pytest.mark.asyncio
async def test_sorted_rank_score_and_increment(kv_store):
    await kv_store.add_scored("z", "a", 1)
    await kv_store.add_scored("z", "b", 2)

    assert await kv_store.rank_descending("z", "b") == 0
    assert await kv_store.rank_descending("z", "a") == 1
    assert await kv_store.rank_descending("z", "ghost") is None

    assert await kv_store.increment_score("z", "a", 2) == 3
    assert await kv_store.rank_descending("z", "a") == 0
    assert await kv_store.increment_score("z", "new", -1) == -1
    assert await kv_store.score("z", "new") == -1

    await kv_store.add_scored("z", "a", 0)
    assert await kv_store.score("z", "a") == 0
    assert await kv_store.remove_scored("z", "a") is True
    assert await kv_store.remove_scored("z", "a") is False
    assert await kv_store.score("z", "a") is None


@pytest.mark.asyncio
async def test_counters(kv_store):
    assert await kv_store.get_counter("c") == 0
    assert await kv_store.increment("c", 1) == 1
    assert await kv_store.increment("c", -3) == -2
    assert await kv_store.get_counter("c") == -2
    assert await kv_store.delete("c") is True
    assert await kv_store.get_counter("c") == 0


@pytest.mark.asyncio
async def test_ping(kv_store):
    assert await kv_store.ping() is True


@pytest.mark.asyncio
async def test_fresh_counter_and_score_upsert(kv_store):
    assert await kv_store.increment("design:fresh:votes", 2) == 2
    assert await kv_store.increment("design:fresh:votes", 3) == 5

    assert await kv_store.increment_score("leaderboard:t", "fresh", 1) == 1
    assert await kv_store.increment_score("leaderboard:t", "fresh", 1) == 2


@pytest.mark.asyncio
async def test_overwrites_and_repeated_members(kv_store):
    await kv_store.add_scored("z", "m", 1)
    await kv_store.add_scored("z", "m", 7)
    assert await kv_store.score("z", "m") == 7
    assert await kv_store.range_descending("z", 0, -1) == ["m"]

    await kv_store.set("k", "a")
    await kv_store.set("k", "b")
    assert await kv_store.get("k") == "b"
