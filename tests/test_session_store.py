"""
Unit tests for subscriptions and the session store.
"""

import logging

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError

from tradieiq.core.session_store import SessionStore
from tradieiq.core.subscription import ListenerRegistry, Subscription
from tradieiq.models.session import Identity
from tradieiq.models.status import SessionState

TOM = Identity(uid="u-tom", email="tom@example.com")
SAM = Identity(uid="u-sam", email="sam@example.com")


class TestSubscription:
    def test_cancel_runs_hook_once(self):
        calls = []
        subscription = Subscription(on_cancel=lambda: calls.append("x"))

        subscription.cancel()
        subscription.cancel()

        assert calls == ["x"]
        assert subscription.active is False

    def test_context_manager_cancels(self):
        with Subscription() as subscription:
            assert subscription.active
        assert not subscription.active


class TestListenerRegistry:
    def test_emit_reaches_all_listeners(self):
        registry = ListenerRegistry()
        seen = []
        registry.add(lambda value: seen.append(("a", value)))
        registry.add(lambda value: seen.append(("b", value)))

        assert registry.emit(1) == 2
        assert seen == [("a", 1), ("b", 1)]

    def test_cancelled_listener_removed(self):
        registry = ListenerRegistry()
        seen = []
        subscription = registry.add(seen.append)

        subscription.cancel()

        assert len(registry) == 0
        assert registry.emit(1) == 0
        assert seen == []

    def test_listener_cancelled_mid_emit_is_skipped(self):
        registry = ListenerRegistry()
        seen = []
        second = None

        def first(value):
            seen.append("first")
            second.cancel()

        registry.add(first)
        second = registry.add(lambda value: seen.append("second"))

        registry.emit(None)

        assert seen == ["first"]

    def test_failing_listener_does_not_stop_delivery(self, caplog):
        registry = ListenerRegistry("jobs:u1")
        seen = []

        def broken(value):
            raise RuntimeError("render failed")

        registry.add(broken)
        registry.add(seen.append)

        with caplog.at_level(logging.ERROR):
            delivered = registry.emit(1)

        assert delivered == 1
        assert seen == [1]
        assert "Listener on jobs:u1 failed" in caplog.text

    def test_on_empty_runs_when_last_listener_cancels(self):
        emptied = []
        registry = ListenerRegistry(on_empty=lambda: emptied.append(True))
        first = registry.add(lambda value: None)
        second = registry.add(lambda value: None)

        first.cancel()
        assert emptied == []
        second.cancel()
        second.cancel()

        assert emptied == [True]


class TestIdentity:
    def test_label_prefers_display_name(self):
        assert Identity(uid="u1", email="tom@example.com", display_name="Tom").label == "Tom"

    def test_label_falls_back_to_email_local_part(self):
        assert TOM.label == "tom"

    def test_empty_uid_rejected(self):
        with pytest.raises(ValidationError):
            Identity(uid="  ", email="tom@example.com")


class TestSessionStore:
    def test_starts_loading(self):
        session = SessionStore()

        assert session.state == SessionState.LOADING
        assert session.identity is None
        assert session.is_loading
        assert not session.is_signed_in

    def test_first_notification_without_identity(self):
        session = SessionStore()

        transition = session.apply(None)

        assert session.state == SessionState.SIGNED_OUT
        assert transition.is_first
        assert not transition.identity_changed

    def test_first_notification_with_identity(self):
        session = SessionStore()

        transition = session.apply(TOM)

        assert session.state == SessionState.SIGNED_IN
        assert session.identity == TOM
        assert transition.is_first
        assert transition.identity_changed

    def test_never_returns_to_loading(self):
        session = SessionStore()
        for identity in (TOM, None, SAM, None):
            session.apply(identity)
            assert session.state != SessionState.LOADING

    def test_same_uid_is_not_a_change(self):
        session = SessionStore()
        session.apply(TOM)

        transition = session.apply(Identity(uid="u-tom", email="tom@example.com", display_name="Tom"))

        assert not transition.is_first
        assert not transition.identity_changed
        assert session.identity.display_name == "Tom"

    def test_switch_identity(self):
        session = SessionStore()
        session.apply(TOM)

        transition = session.apply(SAM)

        assert transition.previous_identity == TOM
        assert transition.identity == SAM
        assert transition.identity_changed


identities = st.one_of(
    st.none(),
    st.sampled_from(["u-tom", "u-sam", "u-kim"]).map(
        lambda uid: Identity(uid=uid, email=f"{uid[2:]}@example.com")
    ),
)


class TestSessionStoreProperties:
    @given(st.lists(identities, min_size=1, max_size=20))
    def test_state_follows_last_notification(self, notifications):
        """LOADING is left on the first notification and never re-entered."""
        session = SessionStore()
        previous_uid = None

        for index, identity in enumerate(notifications):
            transition = session.apply(identity)
            uid = identity.uid if identity is not None else None

            assert transition.is_first == (index == 0)
            assert transition.identity_changed == (uid != previous_uid)
            expected = SessionState.SIGNED_IN if identity is not None else SessionState.SIGNED_OUT
            assert session.state == expected
            previous_uid = uid
