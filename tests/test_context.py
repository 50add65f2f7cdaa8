"""Tests for scoped metadata (context.py)."""

import threading

import pytest

from snagwire.context import add_metadata, clear_metadata, current_metadata, metadata_scope
from snagwire.models import RawCapture


@pytest.fixture(autouse=True)
def clean_metadata():
    clear_metadata()
    yield
    clear_metadata()


class TestMetadataScope:
    def test_scope_visible_inside_block(self):
        with metadata_scope("request", path="/checkout"):
            assert current_metadata()["request"] == {"path": "/checkout"}
        assert "request" not in current_metadata()

    def test_nested_scopes_merge_and_restore(self):
        with metadata_scope("request", path="/checkout"):
            with metadata_scope("request", method="POST"):
                assert current_metadata()["request"] == {"path": "/checkout", "method": "POST"}
            assert current_metadata()["request"] == {"path": "/checkout"}

    def test_restored_after_exception(self):
        with pytest.raises(ValueError):
            with metadata_scope("job", id=7):
                raise ValueError("boom")
        assert current_metadata() == {}

    def test_current_metadata_read_only(self):
        with metadata_scope("job", id=7):
            with pytest.raises(TypeError):
                current_metadata()["job"]["id"] = 8

    def test_add_metadata_lasts_until_scope_exit(self):
        with metadata_scope("job", id=7):
            add_metadata("job", "attempt", 2)
            assert current_metadata()["job"] == {"id": 7, "attempt": 2}
        assert current_metadata() == {}

    def test_clear_metadata(self):
        add_metadata("job", "id", 7)
        clear_metadata()
        assert current_metadata() == {}


class TestIsolation:
    def test_threads_do_not_share_metadata(self):
        seen = {}

        def worker():
            seen["other"] = dict(current_metadata())

        with metadata_scope("request", path="/checkout"):
            t = threading.Thread(target=worker)
            t.start()
            t.join()

        assert seen["other"] == {}


class TestCaptureMerge:
    def test_scoped_metadata_attached_to_capture(self):
        with metadata_scope("request", path="/checkout"):
            raw = RawCapture.from_exception(ValueError("bad"), metadata={"request": {"id": 1}})

        assert raw.metadata["request"] == {"path": "/checkout", "id": 1}

    def test_capture_does_not_mutate_scope(self):
        with metadata_scope("request", path="/checkout"):
            raw = RawCapture.from_exception(ValueError("bad"))
            raw.metadata["request"]["path"] = "/changed"
            assert current_metadata()["request"]["path"] == "/checkout"
