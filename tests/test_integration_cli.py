"""Integration tests for CLI functionality."""

import json
import logging
import os
import subprocess
import sys

import pytest

from lumina_pkg import cli
from lumina_pkg.controller import Calculator
from lumina_pkg.delegate import StaticDelegate
from lumina_pkg.config import LOG_LEVEL
from lumina_pkg.history import HistoryStore, MemoryStorage
from lumina_pkg.logging_config import setup_logging
from lumina_pkg.types import AIResponse


@pytest.fixture(autouse=True)
def restore_lumina_logger():
    """main_entry installs handlers on the shared logger; drop them afterwards."""
    logger = logging.getLogger("lumina")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


def run_cli(*args, stdin=None):
    env = dict(os.environ, PYTHONIOENCODING="utf-8")
    return subprocess.run(
        [sys.executable, "-m", "lumina_pkg", "--no-history", *args],
        input=stdin,
        capture_output=True,
        text=True,
        encoding="utf-8",
        env=env,
        timeout=30,
    )


def test_cli_version():
    """Test --version flag."""
    result = run_cli("--version")
    assert result.returncode == 0
    assert result.stdout.strip() != ""


def test_cli_eval_human():
    """Test CLI evaluation with human output."""
    result = run_cli("--eval", "2+2*3")
    assert result.returncode == 0
    assert result.stdout.strip() == "8"


def test_cli_eval_json():
    """Test CLI evaluation with JSON output."""
    result = run_cli("--eval", "sqrt(16)+2^3", "--format", "json")
    assert result.returncode == 0
    data = json.loads(result.stdout.strip())
    assert data == {"ok": True, "expression": "sqrt(16)+2^3", "result": "12"}


def test_cli_eval_error():
    result = run_cli("-e", "1/0")
    assert result.returncode == 1
    assert result.stdout.strip() == "Error"


def test_cli_repl_session():
    """Test a piped REPL session with chaining and history."""
    result = run_cli(stdin=":help\n2+2\n*3\n:history\n:quit\n")
    assert result.returncode == 0
    assert "= 4" in result.stdout
    assert "= 12" in result.stdout
    assert "4*3 = 12" in result.stdout
    assert "Goodbye." in result.stdout


def test_cli_repl_eof():
    result = run_cli(stdin="1+1\n")
    assert result.returncode == 0
    assert "= 2" in result.stdout
    assert "Goodbye." in result.stdout


class TestMainEntry:
    def test_empty_eval(self, capsys):
        assert cli.main_entry(["--no-history", "-e", "   "]) == 1
        assert "Empty input" in capsys.readouterr().out

    def test_eval_persists_history(self, tmp_path, capsys):
        history_file = tmp_path / "storage.json"
        assert cli.main_entry(["--history-file", str(history_file), "-e", "6*7"]) == 0
        assert capsys.readouterr().out.strip() == "42"
        store = HistoryStore(cli.JsonFileStorage(history_file))
        assert [(e.expression, e.result) for e in store] == [("6*7", "42")]

    def test_eval_error_is_not_persisted(self, tmp_path, capsys):
        history_file = tmp_path / "storage.json"
        assert cli.main_entry(["--history-file", str(history_file), "-e", "2+"]) == 1
        assert capsys.readouterr().out.strip() == "Error"
        assert len(HistoryStore(cli.JsonFileStorage(history_file))) == 0

    def test_blank_ai_question(self, capsys):
        assert cli.main_entry(["--no-history", "--ai", " "]) == 1
        assert "Empty question" in capsys.readouterr().out

    def test_invalid_format(self):
        with pytest.raises(SystemExit):
            cli.main_entry(["--format", "xml"])


class TestAskAI:
    @pytest.fixture
    def calc(self):
        answer = AIResponse(result="5", steps="10 / 2 = 5", is_error=False)
        delegate = StaticDelegate({"half of ten": answer})
        return Calculator(history=HistoryStore(MemoryStorage()), delegate=delegate)

    def test_success(self, calc, capsys):
        assert cli.ask_ai(calc, "half of ten") is True
        out = capsys.readouterr().out
        assert "= 5" in out
        assert "10 / 2 = 5" in out

    def test_failure(self, calc, capsys):
        assert cli.ask_ai(calc, "unknown") is False
        assert "= Error" in capsys.readouterr().out

    def test_json_output(self, calc, capsys):
        cli.ask_ai(calc, "half of ten", output_format="json")
        data = json.loads(capsys.readouterr().out)
        assert data["committedResult"] == "5"
        assert data["mode"] == "ai"


class TestReplCommands:
    @pytest.fixture
    def calc(self):
        return Calculator(history=HistoryStore(MemoryStorage()), delegate=StaticDelegate())

    def run(self, calc, monkeypatch, lines):
        feed = iter(lines)

        def fake_input(prompt=""):
            try:
                return next(feed)
            except StopIteration:
                raise EOFError

        monkeypatch.setattr("builtins.input", fake_input)
        cli.repl_loop(calc)

    def test_select_and_continue(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, ["3*3", ":clear", ":select 1", "+1"])
        out = capsys.readouterr().out
        assert "= 9" in out
        assert "= 10" in out
        assert [e.expression for e in calc.history] == ["9+1", "3*3"]

    def test_bad_select(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, [":select 7", ":select x"])
        out = capsys.readouterr().out
        assert "No history entry '7'" in out
        assert "No history entry 'x'" in out

    def test_mode(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, [":mode scientific", ":mode graphing"])
        out = capsys.readouterr().out
        assert "Mode: scientific" in out
        assert "Unknown mode 'graphing'" in out
        assert calc.state.mode == "scientific"

    def test_ai_prefix(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, ["?what is love"])
        assert calc.delegate.calls == ["what is love"]
        assert "= Error" in capsys.readouterr().out

    def test_clear_history(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, ["1+1", ":clear-history", ":history"])
        out = capsys.readouterr().out
        assert "History cleared" in out
        assert "No calculations yet" in out

    def test_unknown_command(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, [":frobnicate"])
        assert "Unknown command ':frobnicate'" in capsys.readouterr().out

    def test_delete_and_state(self, calc, capsys, monkeypatch):
        self.run(calc, monkeypatch, ["12+3", ":del", ":state"])
        out = capsys.readouterr().out
        state_line = [line for line in out.splitlines() if line.startswith("{")][-1]
        assert json.loads(state_line)["expression"] == ""


def test_setup_logging_uses_configured_default_level():
    logger = setup_logging()
    assert logger.level == getattr(logging, LOG_LEVEL.upper())
    assert logger.name == "lumina"
