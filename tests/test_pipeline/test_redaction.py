"""Tests for metadata redaction (redaction.py)."""

from snagwire.pipeline.redaction import FILTERED, redact, should_filter

FILTERS = ("password", "credit_card_number")


class TestShouldFilter:
    def test_exact_key(self):
        assert should_filter("password", FILTERS)

    def test_key_containing_token(self):
        assert should_filter("user_password", FILTERS)

    def test_case_sensitive(self):
        assert not should_filter("PASSWORD", FILTERS)

    def test_unrelated_key(self):
        assert not should_filter("mysecret", FILTERS)

    def test_non_string_key(self):
        assert not should_filter(42, FILTERS)

    def test_empty_token_ignored(self):
        assert not should_filter("anything", ("",))


class TestRedact:
    def test_matching_keys_replaced_siblings_kept(self):
        metadata = {
            "myTab": {
                "password": "password value",
                "credit_card_number": "card number",
                "mysecret": "not filtered",
            }
        }
        result = redact(metadata, FILTERS)

        assert result["myTab"] == {
            "password": FILTERED,
            "credit_card_number": FILTERED,
            "mysecret": "not filtered",
        }

    def test_every_tab_redacted(self):
        metadata = {"user": {"password": "hunter2"}, "custom": {"password": "hunter2", "bar": "ok"}}
        result = redact(metadata, FILTERS)

        assert result["user"]["password"] == FILTERED
        assert result["custom"] == {"password": FILTERED, "bar": "ok"}

    def test_nested_mappings(self):
        metadata = {"request": {"body": {"password": "x", "name": "y"}}}
        result = redact(metadata, FILTERS)
        assert result["request"]["body"] == {"password": FILTERED, "name": "y"}

    def test_filtered_nested_key_replaced_whole(self):
        metadata = {"request": {"password": {"old": "a", "new": "b"}}}
        assert redact(metadata, FILTERS)["request"]["password"] == FILTERED

    def test_input_not_modified(self):
        metadata = {"myTab": {"password": "secret"}}
        redact(metadata, FILTERS)
        assert metadata == {"myTab": {"password": "secret"}}

    def test_no_filters(self):
        metadata = {"myTab": {"password": "secret"}}
        assert redact(metadata, ()) == metadata
