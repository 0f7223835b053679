"""
End-to-end tests for the kp command line, with a stub resolver and a
temporary config file.
"""

import json
import logging

import pytest
from conftest import StubResolver

from port_killer import cli, core
from port_killer.models import ProcessInfo
from port_killer.watcher import PortWatcher


@pytest.fixture
def stub(monkeypatch, node_process):
    stub = StubResolver({3000: node_process})
    monkeypatch.setattr(core, "get_resolver", lambda: stub)
    return stub


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    monkeypatch.setenv("PORT_KILLER_CONFIG", str(path))
    monkeypatch.delenv("PORT_KILLER_DEBUG", raising=False)
    return path


@pytest.fixture
def answers(monkeypatch):
    """Record prompts and answer them from a list (default yes)."""
    asked = []
    replies = []

    def ask(prompt, default=True, console=None):
        asked.append(str(prompt))
        return replies.pop(0) if replies else default

    monkeypatch.setattr(cli.Display, "confirm", lambda self, message: ask(message))
    return asked, replies


def read_json(capsys):
    return json.loads(capsys.readouterr().out)


class TestNormalizeArgv:
    def test_bare_ports(self):
        assert cli.normalize_argv(["3000", "-f"]) == ["kill", "3000", "-f"]

    def test_flags_before_command(self):
        assert cli.normalize_argv(["-f", "load", "dev"]) == ["load", "-f", "dev"]

    def test_config_value_is_skipped(self):
        assert cli.normalize_argv(["-c", "scan", "scan"]) == ["scan", "-c", "scan"]

    def test_help_and_version(self):
        assert cli.normalize_argv(["--help"]) == ["--help"]
        assert cli.normalize_argv(["-V"]) == ["-V"]

    def test_empty(self):
        assert cli.normalize_argv([]) == ["kill"]


class TestKillCommand:
    def test_force_json(self, stub, config_path, capsys):
        assert cli.main(["3000,3001", "--force", "--json"]) == 0

        assert read_json(capsys) == [
            {"success": True, "port": 3000, "process": {"pid": 123, "name": "node", "port": 3000}},
            {"success": False, "port": 3001, "error": "No process found"},
        ]
        assert stub.terminated == [123]

    def test_text_output(self, stub, config_path, capsys):
        assert cli.main(["3000-3001", "-f"]) == 0
        out = capsys.readouterr().out
        assert "Port 3000: Process killed successfully" in out
        assert "Port 3001: No process found" in out

    def test_prompt_decline(self, stub, config_path, answers, capsys):
        asked, replies = answers
        replies.append(False)

        assert cli.main(["3000"]) == 0

        assert asked == ["Kill process 123 (node) on port 3000?"]
        assert stub.terminated == []
        assert "Operation cancelled by user" in capsys.readouterr().out

    def test_dry_run(self, stub, config_path, answers, capsys):
        asked, _ = answers
        assert cli.main(["3000", "--dry-run"]) == 0
        assert asked == []
        assert stub.terminated == []
        assert "would kill 123 (node)" in capsys.readouterr().out

    def test_quiet_prints_nothing_but_still_prompts(self, stub, config_path, answers, capsys):
        asked, _ = answers
        assert cli.main(["3000", "-q"]) == 0
        assert len(asked) == 1
        assert capsys.readouterr().out == ""

    def test_list_before_and_after(self, stub, config_path, capsys):
        assert cli.main(["3000", "-f", "-l"]) == 0
        assert capsys.readouterr().out.count("Active Ports") == 2

    def test_info(self, stub, config_path, capsys):
        assert cli.main(["3000", "-f", "-i"]) == 0
        assert "Process Information:" in capsys.readouterr().out

    def test_parse_error_exits_1(self, stub, config_path, capsys):
        assert cli.main(["3002-3000", "-f"]) == 1
        captured = capsys.readouterr()
        assert "Error: Invalid port range: 3002-3000" in captured.err
        assert stub.resolved == []

    def test_no_ports_prints_help(self, config_path, capsys):
        assert cli.main([]) == 0
        assert "usage: kp" in capsys.readouterr().out

    def test_default_options_from_config(self, stub, config_path, capsys):
        config_path.write_text(json.dumps({"defaultOptions": {"dryRun": True, "json": True}}))
        assert cli.main(["3000", "-c", str(config_path)]) == 0
        assert read_json(capsys)[0]["success"] is True
        assert stub.terminated == []

    def test_broken_config_is_fatal(self, stub, config_path, capsys):
        config_path.write_text("{")
        assert cli.main(["3000", "-f"]) == 1
        assert "not valid JSON" in capsys.readouterr().err


class TestPresetCommands:
    def test_save_then_load(self, stub, config_path, capsys):
        assert cli.main(["save", "dev", "3000-3001"]) == 0
        assert json.loads(config_path.read_text())["presets"] == {"dev": [3000, 3001]}
        capsys.readouterr()

        assert cli.main(["-f", "load", "dev", "-j"]) == 0
        assert [r["port"] for r in read_json(capsys)] == [3000, 3001]
        assert stub.terminated == [123]

    def test_save_invalid_ports(self, config_path, capsys):
        assert cli.main(["save", "dev", "abc"]) == 1
        assert not config_path.exists()

    def test_load_unknown_preset(self, stub, config_path, capsys):
        assert cli.main(["load", "prod"]) == 1
        assert 'Preset "prod" not found' in capsys.readouterr().err


class TestScanCommand:
    def test_scan_json(self, monkeypatch, config_path, capsys):
        stub = StubResolver(
            {
                3000: ProcessInfo(pid=1, name="node", port=3000, user="dev", command="node a.js"),
                8000: ProcessInfo(pid=2, name="python", port=8000),
            }
        )
        monkeypatch.setattr(core, "get_resolver", lambda: stub)

        assert cli.main(["scan", "--json"]) == 0
        assert read_json(capsys) == [
            {"pid": 1, "name": "node", "port": 3000, "user": "dev", "command": "node a.js"},
            {"pid": 2, "name": "python", "port": 8000},
        ]

    def test_scan_table(self, stub, config_path, capsys):
        assert cli.main(["scan"]) == 0
        out = capsys.readouterr().out
        assert "Active Ports" in out and "node" in out

    def test_scan_empty(self, monkeypatch, config_path, capsys):
        monkeypatch.setattr(core, "get_resolver", lambda: StubResolver())
        assert cli.main(["scan"]) == 0
        assert "No active ports found" in capsys.readouterr().out


class TestWatchCommand:
    def test_invalid_port(self, stub, config_path, capsys):
        assert cli.main(["watch", "http"]) == 1
        assert "Invalid port number" in capsys.readouterr().err

    def test_watch_kills_on_confirm_even_without_force(self, stub, config_path, answers, monkeypatch):
        created = []

        def one_cycle(*args, **kwargs):
            created.append(kwargs)
            return PortWatcher(*args, max_cycles=1, **kwargs)

        monkeypatch.setattr(core, "PortWatcher", one_cycle)
        asked, _ = answers

        assert cli.main(["watch", "3000", "--interval", "250"]) == 0

        assert created[0]["interval_ms"] == 250
        assert asked == ["Kill process 123 (node) on port 3000?"]
        assert stub.terminated == [123]

    def test_interrupt_stops_cleanly(self, stub, config_path, monkeypatch):
        def interrupted(self):
            raise KeyboardInterrupt

        monkeypatch.setattr(PortWatcher, "run", interrupted)
        assert cli.main(["watch", "3000"]) == 0

    def test_zero_or_negative_interval_rejected(self, stub, config_path, capsys):
        assert cli.main(["watch", "3000", "--interval=0"]) == 1
        assert "Error: Invalid interval: 0" in capsys.readouterr().err

        assert cli.main(["watch", "3000", "--interval=-5"]) == 1
        assert "Error: Invalid interval: -5" in capsys.readouterr().err
        assert stub.resolved == []


class TestPromptInput:
    def test_closed_stdin_counts_as_no(self, stub, config_path, monkeypatch, capsys):
        def closed(*args):
            raise EOFError

        monkeypatch.setattr("builtins.input", closed)

        assert cli.main(["3000,3001", "-q", "-j"]) == 0

        captured = capsys.readouterr()
        assert "Traceback" not in captured.err
        assert json.loads(captured.out) == [
            {
                "success": False,
                "port": 3000,
                "process": {"pid": 123, "name": "node", "port": 3000},
                "error": "Operation cancelled by user",
            },
            {"success": False, "port": 3001, "error": "No process found"},
        ]
        assert stub.terminated == []

    def test_ctrl_c_at_prompt_exits_1(self, stub, config_path, monkeypatch, capsys):
        def interrupted(*args):
            raise KeyboardInterrupt

        monkeypatch.setattr("builtins.input", interrupted)

        assert cli.main(["3000"]) == 1

        captured = capsys.readouterr()
        assert "Error: Operation cancelled by user" in captured.err
        assert "Traceback" not in captured.err
        assert stub.terminated == []


class TestUsageErrors:
    @pytest.mark.parametrize(
        "argv",
        [
            ["watch", "3000", "--interval", "abc"],
            ["watch"],
            ["3000", "--bogus"],
        ],
    )
    def test_exit_code_is_1(self, config_path, capsys, argv):
        with pytest.raises(SystemExit) as exc:
            cli.main(argv)
        assert exc.value.code == 1
        assert "usage: kp" in capsys.readouterr().err


class TestConfigDefaults:
    def test_json_default_applies_to_scan(self, stub, config_path, capsys):
        config_path.write_text(json.dumps({"defaultOptions": {"json": True}}))
        assert cli.main(["scan"]) == 0
        assert read_json(capsys) == [{"pid": 123, "name": "node", "port": 3000}]

    def test_quiet_default_raises_log_level(self, stub, config_path, capsys):
        config_path.write_text(json.dumps({"defaultOptions": {"quiet": True}}))
        assert cli.main(["3000", "-f"]) == 0
        assert logging.getLogger().level == logging.ERROR
        assert capsys.readouterr().out == ""

    def test_verbose_flag_wins_over_quiet_default(self, stub, config_path):
        config_path.write_text(json.dumps({"defaultOptions": {"quiet": True}}))
        assert cli.main(["3000", "-f", "-v"]) == 0
        assert logging.getLogger().level == logging.DEBUG
