"""Tests for ChangeBroker — before/commit/after rounds and vetoes."""

import pytest

from confbind import (
    ChangeBroker,
    ChangeEvent,
    Outcome,
    PropertyChangeListener,
    RollbackBatch,
    RollbackOperation,
    Veto,
)


class _Recorder:
    """Observer that logs every hook call into a shared list."""

    def __init__(self, log, name="obs", verdict=None):
        self.log = log
        self.name = name
        self.verdict = verdict

    def before_change(self, event):
        self.log.append((self.name, "before", event.key))
        if callable(self.verdict):
            return self.verdict(event)
        return self.verdict

    def after_change(self, event):
        self.log.append((self.name, "after", event.key))


def _commit(log):
    return lambda key, old, new: log.append(("store", "commit", key))


class TestApply:
    def test_no_observers_commits(self):
        log = []
        b = ChangeBroker()
        assert b.apply("k", None, "v", _commit(log)) is Outcome.COMMITTED
        assert log == [("store", "commit", "k")]

    def test_order_before_commit_after(self):
        log = []
        b = ChangeBroker()
        b.register(_Recorder(log, "a"))
        b.register(_Recorder(log, "b"))
        b.apply("k", "1", "2", _commit(log))
        assert log == [
            ("a", "before", "k"),
            ("b", "before", "k"),
            ("store", "commit", "k"),
            ("a", "after", "k"),
            ("b", "after", "k"),
        ]

    def test_event_contents(self):
        events = []
        source = object()
        b = ChangeBroker(source=source)
        b.register(events.append)
        b.apply("primeNumber", "13", "17", lambda *a: None)
        assert events == [ChangeEvent(source, "primeNumber", "13", "17")]
        assert events[0].source is source

    def test_operation_veto_returned(self):
        log = []
        b = ChangeBroker()
        b.register(_Recorder(log, "a", Veto.OPERATION))
        b.register(_Recorder(log, "b"))
        assert b.apply("k", "1", "2", _commit(log)) is Outcome.ROLLED_BACK_OPERATION
        assert log == [("a", "before", "k")]  # b never asked, nothing committed

    def test_operation_veto_raised(self):
        log = []

        def veto(event):
            raise RollbackOperation()

        b = ChangeBroker()
        b.register(_Recorder(log, "a"))
        b.register(_Recorder(log, "b", veto))
        assert b.apply("k", "1", "2", _commit(log)) is Outcome.ROLLED_BACK_OPERATION
        assert log == [("a", "before", "k"), ("b", "before", "k")]

    def test_batch_veto_raised_and_returned(self):
        def veto(event):
            raise RollbackBatch()

        for verdict in (Veto.BATCH, veto):
            log = []
            b = ChangeBroker()
            b.register(_Recorder(log, "a", verdict))
            assert b.apply("k", None, "v", _commit(log)) is Outcome.ROLLED_BACK_BATCH
            assert ("store", "commit", "k") not in log

    def test_non_veto_return_values_ignored(self):
        log = []
        b = ChangeBroker()
        b.register(_Recorder(log, "a", True))
        assert b.apply("k", None, "v", _commit(log)) is Outcome.COMMITTED

    def test_misbehaving_observer_propagates(self):
        log = []

        def boom(event):
            raise RuntimeError("boom")

        b = ChangeBroker()
        b.register(_Recorder(log, "a", boom))
        with pytest.raises(RuntimeError, match="boom"):
            b.apply("k", None, "v", _commit(log))
        assert ("store", "commit", "k") not in log


class TestRegistration:
    def test_duplicate_registration_notifies_twice(self):
        log = []
        obs = _Recorder(log)
        b = ChangeBroker()
        b.register(obs)
        b.register(obs)
        b.apply("k", None, "v", lambda *a: None)
        assert log.count(("obs", "after", "k")) == 2

    def test_unregister_by_identity(self):
        log = []
        obs = _Recorder(log)
        b = ChangeBroker()
        b.register(obs)
        b.register(obs)
        b.unregister(obs)
        assert len(b) == 1
        b.unregister(obs)
        b.unregister(obs)  # absent: no-op
        assert len(b) == 0

    def test_unregister_uses_identity_not_equality(self):
        class _AlwaysEqual(PropertyChangeListener):
            def __eq__(self, other):
                return True

            __hash__ = object.__hash__

        first, second = _AlwaysEqual(), _AlwaysEqual()
        b = ChangeBroker()
        b.register(first)
        b.register(second)
        b.unregister(second)
        assert len(b) == 1
        assert b.observers[0] is first

    def test_key_filter(self):
        events = []
        b = ChangeBroker()
        b.register(events.append, key="port")
        b.apply("hostname", None, "x", lambda *a: None)
        b.apply("port", None, "80", lambda *a: None)
        assert [e.key for e in events] == ["port"]

    def test_callable_is_after_only(self):
        events = []
        b = ChangeBroker()
        b.register(lambda e: events.append(e.new_value))
        b.apply("k", None, "v", lambda *a: None)
        assert events == ["v"]

    def test_base_listener_hooks_are_noops(self):
        b = ChangeBroker()
        b.register(PropertyChangeListener())
        assert b.apply("k", None, "v", lambda *a: None) is Outcome.COMMITTED
