"""Tests for the Sentry integration.

No real Sentry SDK calls are made: init is only exercised with an empty
DSN, and the before_send hook is called directly.
"""

from spmhost.core.sentry import _scrub_dict, _scrub_event, init_sentry


class TestScrubDict:
    def test_redacts_authorization(self) -> None:
        d = {"Authorization": "Bearer abc", "host": "localhost"}
        _scrub_dict(d)
        assert d["Authorization"] == "[REDACTED]"
        assert d["host"] == "localhost"

    def test_redacts_dsn(self) -> None:
        d = {"sentry_dsn": "https://key@sentry.io/1"}
        _scrub_dict(d)
        assert d["sentry_dsn"] == "[REDACTED]"

    def test_recurses_into_nested_dicts(self) -> None:
        d = {"config": {"api_token": "t"}}
        _scrub_dict(d)
        assert d["config"]["api_token"] == "[REDACTED]"

    def test_preserves_artifact_fields(self) -> None:
        d = {"filename": "a.zip", "artifacts_path": "/srv/artifacts/"}
        _scrub_dict(d)
        assert d == {"filename": "a.zip", "artifacts_path": "/srv/artifacts/"}


class TestScrubEvent:
    def test_drops_request_body_and_scrubs_headers(self) -> None:
        event = {
            "request": {
                "data": "PK\x03\x04...",
                "headers": {"Cookie": "session=1", "X-Filename": "a.zip"},
            },
            "extra": {"password": "hunter2"},
        }

        result = _scrub_event(event, None)

        assert "data" not in result["request"]
        assert result["request"]["headers"]["Cookie"] == "[REDACTED]"
        assert result["request"]["headers"]["X-Filename"] == "a.zip"
        assert result["extra"]["password"] == "[REDACTED]"

    def test_event_without_request(self) -> None:
        assert _scrub_event({"message": "x"}, None) == {"message": "x"}


class TestInitSentry:
    def test_empty_dsn_is_noop(self) -> None:
        assert init_sentry("") is False

    def test_whitespace_dsn_is_noop(self) -> None:
        assert init_sentry("   ") is False
