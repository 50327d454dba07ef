from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from desk_notify import cli as cli_mod
from desk_notify.bus.transport import ACTION_INVOKED, NOTIFICATION_CLOSED
from tests._helpers.bus import FakeService


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch) -> FakeService:
    svc = FakeService(nid=7)

    async def _connect(address: str | None = None) -> FakeService:
        return svc

    monkeypatch.setattr(cli_mod, "connect_service", _connect)
    return svc


def _invoke(args: list[str], input: str | None = None):
    return CliRunner().invoke(cli_mod.cli, args, input=input)


def test_sends_summary_and_body(service: FakeService) -> None:
    result = _invoke(["Build", "all", "green", "-u", "critical", "--action", "open:Open"])
    assert result.exit_code == 0, result.output
    req = service.sent[0]
    assert req.summary == "Build"
    assert req.body == "all green"
    assert req.actions == ["open", "Open"]
    assert req.hints["urgency"].value == 2
    assert result.stdout == ""
    assert service.closed is True


def test_print_id(service: FakeService) -> None:
    result = _invoke(["hi", "--print-id"])
    assert result.exit_code == 0
    assert result.stdout == "7\n"


def test_replace_alias(service: FakeService) -> None:
    assert _invoke(["hi", "--replace", "12"]).exit_code == 0
    assert _invoke(["hi", "--id", "13"]).exit_code == 0
    assert [r.replaces_id for r in service.sent] == [12, 13]


def test_body_from_stdin(service: FakeService) -> None:
    result = _invoke(["Title", "-"], input="line one\nline two\n")
    assert result.exit_code == 0, result.output
    assert service.sent[0].body == "line one\nline two\n"


def test_yaml_from_piped_stdin(service: FakeService) -> None:
    result = _invoke([], input="summary: piped\nbody: from yaml\n")
    assert result.exit_code == 0, result.output
    assert service.sent[0].summary == "piped"
    assert service.sent[0].body == "from yaml"


def test_yaml_file_with_cli_override(service: FakeService, tmp_path: Path) -> None:
    p = tmp_path / "n.yaml"
    p.write_text("summary: from file\nbody: file body\nhints:\n  x-k: doc\n", encoding="utf-8")
    result = _invoke(["--file", str(p), "--hint", "x-k:1", "CLI title"])
    assert result.exit_code == 0, result.output
    req = service.sent[0]
    assert req.summary == "CLI title"
    assert req.body == "file body"
    assert req.hints["x-k"].value == 1


def test_card_file(service: FakeService, tmp_path: Path) -> None:
    p = tmp_path / "card.yaml"
    p.write_text(
        "card:\n  type: multiple_choice\n  question: Lunch?\n  choices: ['Pizza party', '???']\n",
        encoding="utf-8",
    )
    result = _invoke(["--file", str(p)])
    assert result.exit_code == 0, result.output
    req = service.sent[0]
    assert req.summary == "Question"
    assert req.actions == ["pizza_party", "Pizza party", "choice_2", "???"]
    assert json.loads(req.body)["question"] == "Lunch?"


def test_card_with_body_fails(service: FakeService, tmp_path: Path) -> None:
    p = tmp_path / "card.yaml"
    p.write_text("card:\n  type: permission\n  question: Go?\n", encoding="utf-8")
    result = _invoke(["--file", str(p), "Title", "some", "body"])
    assert result.exit_code == 1
    assert result.stderr.startswith("error: cannot combine a card")
    assert service.sent == []


def test_stdin_body_with_file_fails(service: FakeService) -> None:
    result = _invoke(["--file", "x.yaml", "Title", "-"], input="body")
    assert result.exit_code == 1
    assert "cannot use BODY='-' together with --file" in result.stderr


def test_progress_out_of_range_fails(service: FakeService) -> None:
    result = _invoke(["hi", "--progress", "150"])
    assert result.exit_code == 1
    assert result.stderr == "error: progress must be between 0 and 100\n"


def test_malformed_action_fails(service: FakeService) -> None:
    result = _invoke(["hi", "--action", "nolabel"])
    assert result.exit_code == 1
    assert "invalid --action 'nolabel'" in result.stderr


def test_malformed_yaml_fails(service: FakeService) -> None:
    result = _invoke([], input="summary: [oops")
    assert result.exit_code == 1
    assert "failed to parse YAML payload" in result.stderr


def test_transport_error_exit_1(monkeypatch: pytest.MonkeyPatch) -> None:
    svc = FakeService(fail_notify=True)

    async def _connect(address: str | None = None) -> FakeService:
        return svc

    monkeypatch.setattr(cli_mod, "connect_service", _connect)
    result = _invoke(["hi"])
    assert result.exit_code == 1
    assert "failed to send desktop notification" in result.stderr
    assert svc.closed is True


def test_await_closed_event(service: FakeService) -> None:
    service.signals = [(NOTIFICATION_CLOSED, (7, 2))]
    result = _invoke(["hi", "--await"])
    assert result.exit_code == 0, result.output
    assert result.stdout == '{"event":"closed","reason":2}\n'


def test_await_prints_id_first(service: FakeService) -> None:
    service.signals = [(ACTION_INVOKED, (7, "open"))]
    result = _invoke(["hi", "--await", "--print-id", "--action", "open:Open"])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["7", '{"event":"action","id":7,"action":"open"}']


def test_await_timeout_exit_124(service: FakeService, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[float] = []

    async def _expire(aw, timeout):
        seen.append(timeout)
        aw.close()
        raise asyncio.TimeoutError

    monkeypatch.setattr(asyncio, "wait_for", _expire)
    result = _invoke(["hi", "--await", "-t", "2000"])
    assert result.exit_code == 124
    assert result.stdout == '{"event":"await-timeout","timeout_ms":3000}\n'
    assert result.stderr == "error: --await timed out after 3000ms\n"
    assert seen == [3.0]


def test_await_from_yaml_flag(service: FakeService) -> None:
    service.signals = [(NOTIFICATION_CLOSED, (7, 1))]
    result = _invoke([], input="summary: s\nawait: true\nprint_id: true\n")
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["7", '{"event":"closed","id":7,"reason":1}']


def test_empty_invocation_on_tty_prints_help(service: FakeService, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_mod, "_stdin_is_tty", lambda: True)
    result = _invoke([])
    assert result.exit_code == 0
    assert "Usage:" in result.stdout
    assert service.sent == []


def test_invalid_urgency_is_usage_error(service: FakeService) -> None:
    result = _invoke(["hi", "-u", "extreme"])
    assert result.exit_code == 2


def test_unknown_option_is_usage_error(service: FakeService) -> None:
    result = _invoke(["--urgncy", "low", "hi"])
    assert result.exit_code == 2
    assert "--urgncy" in result.stderr
    assert service.sent == []


def test_dashed_body_words_after_separator(service: FakeService) -> None:
    result = _invoke(["Title", "--", "-v", "--verbose"])
    assert result.exit_code == 0, result.output
    assert service.sent[0].body == "-v --verbose"


def test_undecodable_close_reason_exit_1(service: FakeService) -> None:
    service.signals = [(NOTIFICATION_CLOSED, (7, "soon"))]
    result = _invoke(["hi", "--await"])
    assert result.exit_code == 1
    assert result.stdout == ""
    assert result.stderr.startswith("error: failed to decode NotificationClosed reason")
    assert service.closed is True


@pytest.mark.parametrize("value", ["-1", "soon"])
def test_invalid_config_exit_1(service: FakeService, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("NOTIFY_AWAIT_GRACE_MS", value)
    result = _invoke(["hi"])
    assert result.exit_code == 1
    assert result.stderr.startswith("error: ")
    assert "NOTIFY_AWAIT_GRACE_MS" in result.stderr
    assert service.sent == []
