"""
Tests for caff.run: notifications, modes and exit codes.
"""

import io

import pytest

from conftest import posix_only
from caff.caff import HELP_TEXT, finish_message, run, start_message
from caff.core import supervisor as supervisor_module
from caff.core.classifier import classify
from caff.core.config import Config
from caff.core.supervisor import INTERRUPTED_MESSAGE, LaunchError
from caff.core.ui import UIResult


class TestMessages:
    """Tests for the start/finish text contract."""

    def test_start_with_everything(self):
        request = classify(["disu", "2h", "--", "brew", "upgrade"])
        assert start_message(request) == (
            "[caff] starting: duration=2h, flags: -d -i -s -u -t 7200, command: brew upgrade"
        )

    def test_start_with_nothing(self):
        assert start_message(classify([])) == (
            "[caff] starting: duration=infinite, flags: <none>, command: (no command)"
        )

    def test_start_seconds_label(self):
        assert "duration=90s" in start_message(classify(["t=90"]))

    def test_finish(self):
        assert finish_message(7) == "[caff] finished with status 7."


class TestHelp:
    """Help short-circuits everything else."""

    @pytest.mark.parametrize(
        "argv",
        [["-h"], ["--help"], ["help"], ["disu", "help", "2h"], ["quiet", "-h"]],
    )
    def test_help_spawns_nothing(self, argv, fake_caffeinate, config_for):
        fake = fake_caffeinate()
        out = io.StringIO()
        assert run(argv, config_for(fake), out) == 0
        assert out.getvalue() == HELP_TEXT
        assert not fake.called


@posix_only
class TestRun:
    """End-to-end runs against a fake caffeinate."""

    @pytest.fixture(autouse=True)
    def _no_real_ui(self, monkeypatch):
        """Fail loudly if a test reaches the UI without asking for it."""

        def _ui(duration, is_alive, token=None, stream=None):
            raise AssertionError("UI must not run")

        monkeypatch.setattr(supervisor_module, "run_progress", _ui)

    def test_command_exit_code(self, fake_caffeinate, config_for):
        fake = fake_caffeinate()
        out = io.StringIO()
        code = run(["di", "--", "sh", "-c", "exit 7"], config_for(fake), out)
        assert code == 7
        lines = out.getvalue().splitlines()
        assert lines[0].startswith("[caff] starting: duration=infinite, flags: -d -i")
        assert lines[-1] == "[caff] finished with status 7."

    def test_quiet_command_is_silent(self, fake_caffeinate, config_for):
        fake = fake_caffeinate()
        out = io.StringIO()
        assert run(["-q", "--", "sh", "-c", "exit 5"], config_for(fake), out) == 5
        assert out.getvalue() == ""

    def test_quiet_without_command(self, fake_caffeinate, config_for):
        fake = fake_caffeinate()
        out = io.StringIO()
        assert run(["quiet", "disu", "t=0"], config_for(fake), out) == 0
        assert out.getvalue() == ""
        assert fake.argv == ["-d", "-i", "-s", "-u", "-t", "0"]

    def test_quiet_from_config(self, fake_caffeinate, config_for):
        fake = fake_caffeinate("exit 0")
        out = io.StringIO()
        assert run(["d"], config_for(fake, quiet=True), out) == 0
        assert out.getvalue() == ""
        assert fake.called

    def test_nonzero_caffeinate_status_reported(self, fake_caffeinate, config_for):
        fake = fake_caffeinate("exit 2")
        out = io.StringIO()
        assert run(["--", "true"], config_for(fake), out) == 2
        assert "[caff] finished with status 2." in out.getvalue()

    def test_launch_failure_propagates(self, tmp_path):
        out = io.StringIO()
        with pytest.raises(LaunchError) as exc:
            run(["d"], Config(caffeinate=str(tmp_path / "missing")), out)
        assert exc.value.exit_code == 127
        assert "starting" in out.getvalue()
        assert "finished" not in out.getvalue()


@posix_only
class TestInterrupt:
    """UI-mode interruption."""

    def test_interrupt_returns_130(self, fake_caffeinate, config_for, monkeypatch):
        fake = fake_caffeinate()
        alive_during_ui = []

        def _ui(duration, is_alive, token=None, stream=None):
            alive_during_ui.append(is_alive())
            return UIResult.INTERRUPTED

        monkeypatch.setattr(supervisor_module, "run_progress", _ui)

        out = io.StringIO()
        code = run(["disu", "long"], config_for(fake), out)

        assert code == 130
        assert alive_during_ui == [True]
        text = out.getvalue()
        assert text.count(INTERRUPTED_MESSAGE) == 1
        assert "finished" not in text
        assert text.startswith("[caff] starting: duration=3h")

    def test_ui_completion_reports_status(self, fake_caffeinate, config_for, monkeypatch):
        fake = fake_caffeinate("exit 0")
        monkeypatch.setattr(
            supervisor_module,
            "run_progress",
            lambda duration, is_alive, token=None, stream=None: UIResult.COMPLETED,
        )
        out = io.StringIO()
        assert run(["30m"], config_for(fake), out) == 0
        assert out.getvalue().splitlines()[-1] == "[caff] finished with status 0."
