"""
Tests for SessionStore
"""
import asyncio

import pytest

from interview_coach.errors import SessionNotFound
from interview_coach.models import InterviewConfig, Persona, Speaker, Turn
from interview_coach.store import SessionStore

CONFIG = InterviewConfig(role="SWE", persona=Persona.EFFICIENT, experience="Mid-level")


def test_create_if_absent_returns_existing(store):
    first = store.create_if_absent("s1", CONFIG)
    other = InterviewConfig(role="PM", persona=Persona.CHATTY, experience="Senior")
    second = store.create_if_absent("s1", other)
    assert first is second
    assert second.config == CONFIG
    assert store.get("s1") is first


def test_get_unknown_returns_none(store):
    assert store.get("missing") is None


def test_delete_unknown_is_noop(store):
    store.delete("missing")
    assert len(store) == 0


def test_stats(store):
    session = store.create_if_absent("s1", CONFIG)
    session.append(Turn(speaker=Speaker.USER, text="hi"))
    session.add_topic("Redis")
    session.add_topic("Redis")
    stats = store.stats("s1")
    assert stats.message_count == 1
    assert stats.off_topic_warnings == 0
    assert stats.config == {"role": "SWE", "persona": "Efficient User", "experience": "Mid-level"}
    assert stats.topics_covered == ["Redis"]


def test_stats_after_delete_raises(store):
    store.create_if_absent("s1", CONFIG)
    store.delete("s1")
    with pytest.raises(SessionNotFound):
        store.stats("s1")


def test_transcript_view_is_read_only(store):
    session = store.create_if_absent("s1", CONFIG)
    view = session.transcript
    assert isinstance(view, tuple)
    session.append(Turn(speaker=Speaker.BOT, text="q"))
    assert view == ()
    assert len(session.transcript) == 1


def test_eviction_disabled_by_default(store):
    session = store.create_if_absent("s1", CONFIG)
    assert store.evict_idle(now=session.last_active + 10_000) == 0
    assert "s1" in store


def test_eviction_with_ttl():
    store = SessionStore(idle_ttl_seconds=60)
    old = store.create_if_absent("old", CONFIG)
    fresh = store.create_if_absent("fresh", CONFIG)
    old.touch(now=0.0)
    fresh.touch(now=100.0)
    assert store.evict_idle(now=120.0) == 1
    assert "old" not in store
    assert "fresh" in store


@pytest.mark.asyncio
async def test_eviction_skips_locked_sessions():
    store = SessionStore(idle_ttl_seconds=1)
    session = store.create_if_absent("busy", CONFIG)
    session.touch(now=0.0)
    async with store.lock("busy"):
        assert store.evict_idle(now=100.0) == 0
    assert store.evict_idle(now=100.0) == 1


@pytest.mark.asyncio
async def test_lock_serializes_same_id(store):
    events = []

    async def worker(name):
        async with store.lock("s1"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


@pytest.mark.asyncio
async def test_lock_independent_ids(store):
    events = []

    async def worker(session_id):
        async with store.lock(session_id):
            events.append(f"{session_id}-in")
            await asyncio.sleep(0.01)
            events.append(f"{session_id}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert events[:2] == ["a-in", "b-in"]


@pytest.mark.asyncio
async def test_lock_released_on_error(store):
    with pytest.raises(RuntimeError):
        async with store.lock("s1"):
            raise RuntimeError("boom")
    async with store.lock("s1"):
        pass


@pytest.mark.asyncio
async def test_lock_entries_dropped_after_release(store):
    for n in range(50):
        async with store.lock(f"unknown-{n}"):
            pass
    assert store._locks == {}
    assert store._lock_users == {}


@pytest.mark.asyncio
async def test_lock_entries_dropped_after_contention(store):
    async def worker():
        async with store.lock("s1"):
            await asyncio.sleep(0.01)

    await asyncio.gather(worker(), worker(), worker())
    assert store._locks == {}
    assert store._lock_users == {}
