"""
Unit tests for the job cache.

Uses a hand-driven store so tests can deliver pushes at any moment,
including after the cache has moved on.
"""

from datetime import datetime, timezone

import pytest

from tradieiq.core.job_cache import JobCache
from tradieiq.core.subscription import Subscription
from tradieiq.models.errors import StoreError
from tradieiq.models.job import Job
from tradieiq.models.status import JobStatus


def make_job(job_id, owner_id="u1", **fields):
    return Job(id=job_id, owner_id=owner_id, client=f"Client {job_id}", address="1 Main St", **fields)


class ManualStore:
    """Store whose pushes are delivered by the test."""

    def __init__(self, initial=None):
        self.initial = initial or {}
        self.events = []
        self.callbacks = {}
        self.fail_subscribe = False

    def subscribe(self, owner_id, callback):
        if self.fail_subscribe:
            raise StoreError("Store error: offline", retryable=True)
        self.events.append(("subscribe", owner_id))
        self.callbacks[owner_id] = callback
        subscription = Subscription(
            on_cancel=lambda: self.events.append(("cancel", owner_id)), name=f"jobs:{owner_id}"
        )
        callback(self.initial.get(owner_id, []))
        return subscription

    def push(self, owner_id, records):
        self.callbacks[owner_id](records)


@pytest.fixture
def store():
    return ManualStore(initial={"u1": [make_job("a"), make_job("b")]})


@pytest.fixture
def cache(store):
    return JobCache(store)


class TestActivate:
    def test_initial_push_fills_cache(self, cache):
        cache.activate("u1")

        assert [job.id for job in cache.jobs] == ["a", "b"]
        assert cache.owner_id == "u1"
        assert cache.is_active

    def test_push_replaces_whole_list(self, cache, store):
        cache.activate("u1")

        store.push("u1", [make_job("c")])

        assert [job.id for job in cache.jobs] == ["c"]
        assert "a" not in cache
        assert cache.get("c").client == "Client c"

    def test_dict_records_are_validated(self, cache, store):
        cache.activate("u1")

        store.push("u1", [{"id": "d", "owner_id": "u1", "status": "", "value": None}])

        job = cache.get("d")
        assert job.status == JobStatus.NEW
        assert job.value == "$0"

    def test_malformed_record_raises_store_error(self, cache, store):
        cache.activate("u1")

        with pytest.raises(StoreError):
            store.push("u1", [{"owner_id": "u1"}])

    def test_same_owner_is_noop(self, cache, store):
        cache.activate("u1")
        cache.activate("u1")

        assert store.events == [("subscribe", "u1")]

    def test_subscribe_failure_leaves_cache_inactive(self, cache, store):
        store.fail_subscribe = True

        with pytest.raises(StoreError):
            cache.activate("u1")

        assert not cache.is_active
        assert cache.owner_id is None
        assert cache.jobs == ()

    def test_listener_sees_every_replace(self, cache, store):
        seen = []
        cache.listen(lambda jobs: seen.append(len(jobs)))

        cache.activate("u1")
        store.push("u1", [])

        assert seen == [2, 0]


class TestDeactivate:
    def test_unsubscribes_before_clearing(self, cache, store):
        cache.activate("u1")
        events_at_clear = []
        cache.listen(lambda jobs: events_at_clear.append(list(store.events)) if not jobs else None)

        cache.deactivate()

        assert cache.jobs == ()
        assert events_at_clear == [[("subscribe", "u1"), ("cancel", "u1")]]

    def test_late_push_after_deactivate_is_dropped(self, cache, store):
        cache.activate("u1")
        cache.deactivate()

        store.push("u1", [make_job("late")])

        assert cache.jobs == ()

    def test_deactivate_when_idle_does_not_notify(self, cache):
        seen = []
        cache.listen(seen.append)

        cache.deactivate()

        assert seen == []


class TestOwnerSwitch:
    def test_switch_cancels_previous_subscription_first(self, store):
        store.initial["u2"] = [make_job("z", owner_id="u2")]
        cache = JobCache(store)

        cache.activate("u1")
        cache.activate("u2")

        assert store.events == [("subscribe", "u1"), ("cancel", "u1"), ("subscribe", "u2")]
        assert [job.id for job in cache.jobs] == ["z"]

    def test_stale_push_from_previous_owner_never_lands(self, store):
        store.initial["u2"] = []
        cache = JobCache(store)
        cache.activate("u1")
        cache.activate("u2")

        store.push("u1", [make_job("a"), make_job("b")])

        assert cache.jobs == ()
        assert all(job.owner_id == "u2" for job in cache.jobs)

    def test_deactivated_during_initial_push(self, store):
        cache = JobCache(store)

        def stop_on_first_push(jobs):
            if jobs:
                cache.deactivate()

        cache.listen(stop_on_first_push)
        cache.activate("u1")

        assert not cache.is_active
        assert cache.jobs == ()
        assert ("cancel", "u1") in store.events


class TestSnapshot:
    def test_jobs_is_immutable_snapshot(self, cache):
        cache.activate("u1")
        snapshot = cache.jobs

        assert isinstance(snapshot, tuple)
        with pytest.raises(Exception):
            snapshot[0].client = "changed"

    def test_get_missing(self, cache):
        assert cache.get(None) is None
        assert cache.get("nope") is None

    def test_created_at_kept(self, store):
        moment = datetime(2026, 3, 2, tzinfo=timezone.utc)
        store.initial["u1"] = [make_job("a", created_at=moment)]
        cache = JobCache(store)

        cache.activate("u1")

        assert cache.get("a").created_at == moment
