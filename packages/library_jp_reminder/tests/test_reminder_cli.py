"""Tests for the library-jp-remind command."""

import runpy
import sys
from datetime import date

import pytest

from library_jp_client import LoanRecord
from library_jp_reminder import NotificationError, SecretUnavailableError, cli, logging_config, runner
from library_jp_reminder.buckets import classify
from library_jp_reminder.runner import RunReport


def make_report(sent: bool) -> RunReport:
    today = date(2024, 6, 1)
    loans = [LoanRecord("Book A", date(2024, 6, 4)), LoanRecord("Book [B]", date(2024, 6, 2))]
    return RunReport(
        today=today,
        target_date=date(2024, 6, 2),
        loans=loans,
        buckets=classify(today, loans),
        garbage_message="明日のゴミ出し (2024-06-02): 収集はありません。",
        library_message="【返却期限まであと3日】1冊\n・Book A",
        message="明日のゴミ出し (2024-06-02): 収集はありません。\n\n【返却期限まであと3日】1冊\n・Book A",
        sent=sent,
    )


@pytest.fixture
def calls(monkeypatch):
    """Replace the run and logging setup; record how they were called."""
    recorded = {"outcome": make_report(sent=True)}

    async def fake_run_reminders(settings, *, store, now=None, send=True):
        recorded.update(settings=settings, now=now, send=send)
        outcome = recorded["outcome"]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fake_configure_logging(level, file_path=None):
        recorded.update(log_level=level, log_file=file_path)

    monkeypatch.setattr(cli, "run_reminders", fake_run_reminders)
    monkeypatch.setattr(cli, "configure_logging", fake_configure_logging)
    monkeypatch.delenv("REMINDER_TIMEZONE", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    return recorded


class TestCli:
    """Tests for cli.main."""

    def test_sends_by_default(self, calls, capsys):
        assert cli.main([]) == 0
        assert calls["send"] is True
        assert calls["now"] is None
        assert calls["log_level"] == "INFO"
        # Sent messages are not echoed
        assert "Book A" not in capsys.readouterr().out

    def test_dry_run_prints_message(self, calls, capsys):
        calls["outcome"] = make_report(sent=False)
        assert cli.main(["--dry-run", "--date", "2024-06-01", "--log-level", "DEBUG"]) == 0

        assert calls["send"] is False
        assert calls["now"].date() == date(2024, 6, 1)
        assert calls["now"].tzinfo.key == "Asia/Tokyo"
        assert calls["log_level"] == "DEBUG"
        assert "【返却期限まであと3日】1冊" in capsys.readouterr().out

    def test_show_loans_table(self, calls, capsys):
        assert cli.main(["--show-loans"]) == 0
        out = capsys.readouterr().out
        assert "Days Remaining" in out
        assert "Book [B]" in out
        assert "2024-06-04" in out

    def test_bad_date_is_rejected(self, calls):
        with pytest.raises(SystemExit):
            cli.main(["--date", "June 1st"])

    def test_bad_config_exits_1(self, calls, monkeypatch, capsys):
        monkeypatch.setenv("REMINDER_TIMEZONE", "Nowhere/Special")
        assert cli.main([]) == 1
        assert "REMINDER_TIMEZONE" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "error",
        [SecretUnavailableError("library-id"), NotificationError("Webhook rejected the message: HTTP 404")],
    )
    def test_failures_exit_1(self, calls, capsys, error):
        calls["outcome"] = error
        assert cli.main([]) == 1
        assert str(error) in capsys.readouterr().err

    def test_loans_table_days_remaining(self):
        lines = cli.loans_table(make_report(sent=True)).splitlines()
        assert "Days Remaining" in lines[0]
        assert "Book A" in lines[2] and lines[2].rstrip(" |").endswith("3")
        assert "Book [B]" in lines[3] and lines[3].rstrip(" |").endswith("1")

    def test_module_runs_as_script(self, monkeypatch, capsys):
        async def missing_secret(settings, *, store, now=None, send=True):
            raise SecretUnavailableError("library-id")

        # Running the module re-imports these names from their home modules
        monkeypatch.setattr(runner, "run_reminders", missing_secret)
        monkeypatch.setattr(logging_config, "configure_logging", lambda level, file_path=None: None)
        monkeypatch.delenv("REMINDER_TIMEZONE", raising=False)
        monkeypatch.setattr(sys, "argv", ["library-jp-remind", "--dry-run"])

        with pytest.raises(SystemExit) as exc_info:
            runpy.run_module("library_jp_reminder.cli", run_name="__main__")

        assert exc_info.value.code == 1
        assert "library-id" in capsys.readouterr().err
