"""Tests for ``helpscout conversations`` with HelpScoutClient mocked."""

import base64
import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from helpscout_cli.api.errors import HelpScoutApiError
from helpscout_cli.api.types import PagedResult


# ── list ───────────────────────────────────────────────────────────────────────


class TestList:
    def test_single_page(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.list_conversations.return_value = PagedResult(
            items=[{"id": 1}], page={"number": 1, "totalPages": 1}
        )

        result = invoke("conversations", "list", "--status", "active", "--page", "2")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"conversations": [{"id": 1}], "page": {"number": 1, "totalPages": 1}}
        kwargs = mock_client.list_conversations.await_args.kwargs
        assert kwargs["status"] == "active"
        assert kwargs["page"] == 2
        assert kwargs["query"] is None

    def test_date_filters_become_query(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.list_conversations.return_value = PagedResult()

        invoke("conversations", "list", "--created-since", "2026-01-05", "-q", "tag:vip")

        query = mock_client.list_conversations.await_args.kwargs["query"]
        assert query == "(tag:vip) AND (createdAt:[2026-01-05T00:00:00Z TO *])"

    def test_summary_walks_all_pages_with_threads(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.list_all_conversations.return_value = [
            {"id": 1, "status": "active", "tags": [{"name": "vip"}]},
            {"id": 2, "status": "closed", "tags": []},
        ]

        result = invoke("conversations", "list", "--summary")

        data = json.loads(result.output)
        assert data["total"] == 2
        assert data["byStatus"] == {"active": 1, "closed": 1}
        assert data["byTag"] == {"vip": 1}
        assert len(data["conversations"]) == 2
        assert mock_client.list_all_conversations.await_args.kwargs["embed"] == "threads"
        mock_client.list_conversations.assert_not_called()

    def test_bad_date_is_cli_error(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "list", "--created-since", "yesterday-ish")
        assert result.exit_code == 1
        assert '"cli_error"' in result.output
        mock_client.list_conversations.assert_not_called()


# ── view / threads ─────────────────────────────────────────────────────────────


class TestView:
    def test_adds_participants_and_plain_bodies(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation.return_value = {
            "id": 5,
            "_embedded": {"threads": [
                {"type": "customer", "body": "<p>Hello</p>", "createdAt": "2026-01-05T09:00:00Z",
                 "customer": {"first": "Ada", "email": "ada@example.com"}},
            ]},
        }

        result = invoke("conversations", "view", "5")

        data = json.loads(result.output)
        assert data["customer"] == {"name": "Ada", "email": "ada@example.com", "messageCount": 1, "firstMessage": "Hello"}
        assert data["_embedded"]["threads"][0]["body"] == "Hello"
        mock_client.get_conversation.assert_awaited_once_with(5, "threads")

    def test_invalid_id(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "view", "abc")
        assert result.exit_code == 1
        assert "Invalid conversation ID" in result.output
        mock_client.get_conversation.assert_not_called()

    def test_api_error_is_normalized(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation.side_effect = HelpScoutApiError(
            {"error": "not_found", "message": "Conversation not found"}, 404
        )
        result = invoke("conversations", "view", "9")
        assert result.exit_code == 1
        assert '"statusCode": 404' in result.output


class TestThreads:
    THREADS = [
        {"id": 1, "type": "customer", "body": "<b>hi</b>"},
        {"id": 2, "type": "note", "body": "internal"},
        {"id": 3, "type": "lineitem"},
        {"id": 4, "type": "message", "body": "reply"},
    ]

    def _ids(self, output: str) -> list[int]:
        return [t["id"] for t in json.loads(output)]

    def test_default_shows_communications(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation_threads.return_value = self.THREADS
        result = invoke("conversations", "threads", "5")
        assert self._ids(result.output) == [1, 4]
        assert json.loads(result.output)[0]["body"] == "hi"

    def test_include_notes(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation_threads.return_value = self.THREADS
        assert self._ids(invoke("conversations", "threads", "5", "--include-notes").output) == [1, 2, 4]

    def test_all(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation_threads.return_value = self.THREADS
        assert self._ids(invoke("conversations", "threads", "5", "--all").output) == [1, 2, 3, 4]

    def test_type_filter_and_html(self, invoke: Any, mock_client: MagicMock) -> None:
        mock_client.get_conversation_threads.return_value = self.THREADS
        result = invoke("conversations", "threads", "5", "--type", "customer,lineitem", "--html")
        assert self._ids(result.output) == [1, 3]
        assert json.loads(result.output)[0]["body"] == "<b>hi</b>"


# ── mutations ──────────────────────────────────────────────────────────────────


class TestMutations:
    def test_delete_with_yes(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "delete", "5", "--yes")
        assert json.loads(result.output) == {"message": "Conversation deleted"}
        mock_client.delete_conversation.assert_awaited_once_with(5)

    def test_delete_declined(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "delete", "5", input="n\n")
        assert result.exit_code == 1
        assert "Operation cancelled" in result.output
        mock_client.delete_conversation.assert_not_called()

    def test_delete_confirmed(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "delete", "5", input="y\n")
        assert result.exit_code == 0
        mock_client.delete_conversation.assert_awaited_once_with(5)

    def test_update_builds_operations(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "update", "5", "--status", "closed", "--assignee", "none")

        assert result.exit_code == 0, result.output
        mock_client.update_conversation.assert_awaited_once_with(5, [
            {"op": "replace", "path": "/status", "value": "closed"},
            {"op": "remove", "path": "/assignTo"},
        ])

    def test_update_without_options(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "update", "5")
        assert result.exit_code == 1
        assert "At least one update option is required" in result.output

    def test_reply(self, invoke: Any, mock_client: MagicMock) -> None:
        invoke("conversations", "reply", "5", "--text", "Thanks!", "--user", "7", "--status", "closed")
        mock_client.create_reply.assert_awaited_once_with(5, "Thanks!", user=7, draft=None, status="closed")

    def test_note(self, invoke: Any, mock_client: MagicMock) -> None:
        result = invoke("conversations", "note", "5", "--text", "internal")
        assert json.loads(result.output) == {"message": "Note added"}
        mock_client.create_note.assert_awaited_once_with(5, "internal", user=None, status=None)

    def test_tags(self, invoke: Any, mock_client: MagicMock) -> None:
        invoke("conversations", "add-tag", "5", "vip")
        invoke("conversations", "remove-tag", "5", "spam")
        mock_client.add_conversation_tag.assert_awaited_once_with(5, "vip")
        mock_client.remove_conversation_tag.assert_awaited_once_with(5, "spam")

    def test_set_field(self, invoke: Any, mock_client: MagicMock) -> None:
        invoke("conversations", "set-field", "5", "--field-id", "12", "--value", "Gold")
        mock_client.update_conversation_fields.assert_awaited_once_with(5, [{"id": 12, "value": "Gold"}])


# ── attachments ────────────────────────────────────────────────────────────────


class TestAttachments:
    def test_download_writes_file(self, invoke: Any, mock_client: MagicMock, tmp_path: Path) -> None:
        mock_client.list_conversation_attachments.return_value = {
            "conversationId": 5,
            "attachments": [{"id": 100, "filename": "notes.txt", "threadId": 10}],
        }
        mock_client.get_attachment_data.return_value = {"data": base64.b64encode(b"hello").decode()}
        target = tmp_path / "out.txt"

        result = invoke("conversations", "attachment-download", "5", "100", "-o", str(target))

        assert result.exit_code == 0, result.output
        assert target.read_bytes() == b"hello"
        data = json.loads(result.output)
        assert data["size"] == 5
        assert data["filename"] == "notes.txt"
        assert data["path"] == str(target.resolve())

    @pytest.mark.parametrize(
        ("api_filename", "expected"),
        [("../../.bashrc", ".bashrc"), ("/etc/passwd", "passwd"), ("..", "attachment-100")],
    )
    def test_download_keeps_api_filename_in_cwd(
        self,
        invoke: Any,
        mock_client: MagicMock,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        api_filename: str,
        expected: str,
    ) -> None:
        workdir = tmp_path / "a" / "b"
        workdir.mkdir(parents=True)
        monkeypatch.chdir(workdir)
        mock_client.list_conversation_attachments.return_value = {
            "conversationId": 5,
            "attachments": [{"id": 100, "filename": api_filename, "threadId": 10}],
        }
        mock_client.get_attachment_data.return_value = {"data": base64.b64encode(b"x").decode()}

        result = invoke("conversations", "attachment-download", "5", "100")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["path"] == str((workdir / expected).resolve())
        assert (workdir / expected).read_bytes() == b"x"
        assert [p.name for p in tmp_path.iterdir()] == ["a"]

    def test_upload_guesses_mime_type(self, invoke: Any, mock_client: MagicMock, tmp_path: Path) -> None:
        source = tmp_path / "report.txt"
        source.write_bytes(b"data")

        result = invoke("conversations", "attachment-upload", "5", "10", "-f", str(source))

        assert result.exit_code == 0, result.output
        mock_client.create_attachment.assert_awaited_once_with(
            5, 10, file_name="report.txt", mime_type="text/plain", data=base64.b64encode(b"data").decode()
        )

    def test_upload_unknown_extension_is_octet_stream(self, invoke: Any, mock_client: MagicMock, tmp_path: Path) -> None:
        source = tmp_path / "blob.zzqx"
        source.write_bytes(b"\x00")

        result = invoke("conversations", "attachment-upload", "5", "10", "-f", str(source))

        assert json.loads(result.output)["mimeType"] == "application/octet-stream"

    def test_delete(self, invoke: Any, mock_client: MagicMock) -> None:
        invoke("conversations", "attachment-delete", "5", "100", "-y")
        mock_client.delete_attachment.assert_awaited_once_with(5, 100)
