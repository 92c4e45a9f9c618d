"""Tests for error sanitizing and normalization."""

import json

import httpx
import pytest

from helpscout_cli.api.errors import (
    RATE_LIMIT_NOTE,
    REDACTED,
    HelpScoutApiError,
    HelpScoutCliError,
    handle_error,
    normalize_error,
    sanitize_api_error,
    sanitize_error_message,
)


# ── sanitize_error_message ─────────────────────────────────────────────────────


class TestSanitizeErrorMessage:
    def test_redacts_bearer_token(self) -> None:
        result = sanitize_error_message("Authorization: Bearer abc123token456")
        assert REDACTED in result
        assert "abc123token456" not in result

    def test_redacts_token_and_client_secret_pairs(self) -> None:
        result = sanitize_error_message("failed with token=s3cr3t and client_secret: hunter2")
        assert "s3cr3t" not in result
        assert "hunter2" not in result
        assert result.count(REDACTED) == 2

    def test_long_message_truncated_to_503_characters(self) -> None:
        result = sanitize_error_message("x" * 600)
        assert len(result) == 503
        assert result.endswith("...")

    def test_message_at_cap_is_untouched(self) -> None:
        assert sanitize_error_message("y" * 500) == "y" * 500

    def test_plain_short_message_unchanged(self) -> None:
        assert sanitize_error_message("Conversation not found") == "Conversation not found"


# ── sanitize_api_error ─────────────────────────────────────────────────────────


class TestSanitizeApiError:
    def test_error_description_preferred(self) -> None:
        result = sanitize_api_error({"error_description": "Invalid client credentials", "error": "unauthorized"})
        assert result.name == "unauthorized"
        assert result.detail == "Invalid client credentials"

    def test_message_used_when_no_description(self) -> None:
        result = sanitize_api_error({"message": "Resource not found", "error": "not_found"})
        assert (result.name, result.detail) == ("not_found", "Resource not found")

    def test_embedded_errors_joined(self) -> None:
        result = sanitize_api_error({
            "_embedded": {
                "errors": [
                    {"path": "subject", "message": "Subject is required"},
                    {"path": "body", "message": "Body is required"},
                ]
            }
        })
        assert result.detail == "Subject is required; Body is required"
        assert result.name == "api_error"

    def test_empty_object_yields_default(self) -> None:
        result = sanitize_api_error({})
        assert (result.name, result.detail) == ("api_error", "An error occurred")

    @pytest.mark.parametrize("value", [None, "boom", 42, ["error"]])
    def test_non_object_yields_default(self, value: object) -> None:
        result = sanitize_api_error(value)
        assert (result.name, result.detail) == ("api_error", "An error occurred")

    def test_detail_is_redacted(self) -> None:
        result = sanitize_api_error({"error": "bad_request", "message": "Bearer leaked.token.value"})
        assert "leaked.token.value" not in result.detail


# ── normalize_error ────────────────────────────────────────────────────────────


class TestNormalizeError:
    def test_cli_error_keeps_its_status(self) -> None:
        result = normalize_error(HelpScoutCliError("Invalid conversation ID", 400))
        assert result.to_dict() == {"name": "cli_error", "detail": "Invalid conversation ID", "statusCode": 400}

    def test_cli_error_without_status_defaults_to_1(self) -> None:
        assert normalize_error(HelpScoutCliError("Operation cancelled")).status_code == 1

    def test_api_error_uses_response_status(self) -> None:
        error = HelpScoutApiError({"error": "not_found", "message": "Conversation not found"}, 404)
        result = normalize_error(error)
        assert (result.name, result.detail, result.status_code) == ("not_found", "Conversation not found", 404)

    def test_api_error_status_falls_back_to_table(self) -> None:
        error = HelpScoutApiError({"error": "forbidden", "message": "Nope"}, 0)
        assert normalize_error(error).status_code == 403

    def test_api_error_without_error_field_is_unknown(self) -> None:
        error = HelpScoutApiError({"message": "Gateway exploded"}, 502)
        result = normalize_error(error)
        assert (result.name, result.detail, result.status_code) == ("unknown_error", "Gateway exploded", 502)

    def test_rate_limit_gets_note(self) -> None:
        error = HelpScoutApiError({"error": "too_many_requests", "message": "Slow down"}, 429)
        result = normalize_error(error)
        assert result.detail.startswith("Slow down")
        assert result.detail.endswith(RATE_LIMIT_NOTE)

    def test_plain_exception_is_unknown_error(self) -> None:
        result = normalize_error(httpx.ConnectError("connection refused"))
        assert (result.name, result.detail, result.status_code) == ("unknown_error", "connection refused", 1)

    def test_opaque_value_gets_default_detail(self) -> None:
        result = normalize_error(object())
        assert result.to_dict() == {
            "name": "unknown_error",
            "detail": "An unexpected error occurred",
            "statusCode": 1,
        }

    def test_exception_without_message_gets_default_detail(self) -> None:
        assert normalize_error(RuntimeError()).detail == "An unexpected error occurred"


# ── handle_error ───────────────────────────────────────────────────────────────


class TestHandleError:
    def test_writes_json_to_stderr_and_exits_1(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            handle_error(HelpScoutCliError("Not configured", 401))
        assert excinfo.value.code == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert json.loads(captured.err) == {
            "error": {"name": "cli_error", "detail": "Not configured", "statusCode": 401}
        }
