"""Tests for event models (models/event.py)."""

import dataclasses
import threading

import pytest

from snagwire.models import (
    EventDraft,
    ExceptionRecord,
    RawCapture,
    RawException,
    Severity,
    ThreadInfo,
)
from snagwire.models.event import walk_exception_chain


class OrderError(Exception):
    pass


def raise_nested():
    try:
        {}["missing"]
    except KeyError as e:
        raise OrderError("order failed") from e


def raise_during_handling():
    try:
        1 / 0
    except ZeroDivisionError:
        raise ValueError("while handling")


def raise_suppressed():
    try:
        1 / 0
    except ZeroDivisionError:
        raise ValueError("clean") from None


def caught(func):
    try:
        func()
    except Exception as e:
        return e
    raise AssertionError("expected an exception")


class TestExceptionChain:
    def test_explicit_cause(self):
        chain = walk_exception_chain(caught(raise_nested))
        assert [type(e) for e in chain] == [OrderError, KeyError]

    def test_implicit_context(self):
        chain = walk_exception_chain(caught(raise_during_handling))
        assert [type(e) for e in chain] == [ValueError, ZeroDivisionError]

    def test_suppressed_context(self):
        chain = walk_exception_chain(caught(raise_suppressed))
        assert [type(e) for e in chain] == [ValueError]

    def test_cycle_terminates(self):
        a, b = ValueError("a"), ValueError("b")
        a.__cause__ = b
        b.__cause__ = a
        assert walk_exception_chain(a) == [a, b]


class TestRawException:
    def test_type_names(self):
        assert RawException.from_exception(ValueError("x")).type_name == "ValueError"
        assert RawException.from_exception(OrderError("x")).type_name == f"{__name__}.OrderError"

    def test_frames_innermost_first(self):
        raw = RawException.from_exception(caught(raise_nested))

        assert raw.message == "order failed"
        assert raw.frames[0].function == "raise_nested"
        assert raw.frames[-1].function == "caught"
        assert raw.frames[0].module == __name__

    def test_unraised_exception_has_no_frames(self):
        assert RawException.from_exception(ValueError("x")).frames == ()


class TestRawCapture:
    def test_primary_is_most_recent(self):
        raw = RawCapture.from_exception(caught(raise_nested))
        assert raw.primary.type_name.endswith("OrderError")
        assert len(raw.exceptions) == 2

    def test_defaults(self):
        raw = RawCapture.from_exception(ValueError("x"))
        assert raw.severity is Severity.WARNING
        assert raw.unhandled is False
        assert raw.threads == ()

    def test_immutable(self):
        raw = RawCapture.from_exception(ValueError("x"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            raw.severity = Severity.ERROR

    def test_thread_snapshot(self):
        raw = RawCapture.from_exception(ValueError("x"), send_threads=True)

        current = [t for t in raw.threads if t.current]
        assert len(current) == 1
        assert current[0].id == threading.get_ident()


class TestEventDraft:
    def make_draft(self):
        return EventDraft(
            severity=Severity.WARNING,
            exceptions=[ExceptionRecord(type_name="ValueError", message="bad")],
            metadata={"tab": {"a": 1}},
        )

    def test_exception_shortcuts(self):
        draft = self.make_draft()
        assert draft.exception_class == "ValueError"
        assert draft.exception_message == "bad"

    def test_add_and_clear_tab(self):
        draft = self.make_draft()
        draft.add_to_tab("tab", "b", 2)
        assert draft.metadata["tab"] == {"a": 1, "b": 2}

        draft.clear_tab("tab")
        assert "tab" not in draft.metadata

    def test_set_user(self):
        draft = self.make_draft()
        draft.set_user(id="1", email="a@example.com", name="A")
        assert draft.user == {"id": "1", "email": "a@example.com", "name": "A"}

    def test_restore_discards_changes(self):
        draft = self.make_draft()
        checkpoint = draft.checkpoint()
        draft.context = "changed"
        draft.add_to_tab("tab", "b", 2)
        draft.severity = Severity.ERROR

        draft.restore(checkpoint)

        assert draft.context is None
        assert draft.metadata == {"tab": {"a": 1}}
        assert draft.severity is Severity.WARNING

    def test_frozen_event_read_only(self):
        event = self.make_draft().freeze()

        with pytest.raises(dataclasses.FrozenInstanceError):
            event.context = "x"
        with pytest.raises(TypeError):
            event.metadata["tab"]["a"] = 2

    def test_freeze_copies(self):
        draft = self.make_draft()
        event = draft.freeze()
        draft.add_to_tab("tab", "b", 2)

        assert dict(event.metadata["tab"]) == {"a": 1}

    def test_thread_info_dict(self):
        info = ThreadInfo(id=1, name="main", current=True)
        assert info.to_dict() == {
            "id": 1,
            "name": "main",
            "errorReportingThread": True,
            "stacktrace": [],
        }
