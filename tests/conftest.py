"""
Shared test fixtures for caff tests.
"""

import stat
import sys
from pathlib import Path

import pytest
import structlog

from caff.core import config as config_module
from caff.core.config import Config

# Stands in for /usr/bin/caffeinate: records its argv, then behaves like the
# real tool (exec the utility if given, else hold for -t seconds or "forever").
FAKE_CAFFEINATE = """\
#!/bin/sh
: > "{argv_file}"
for arg in "$@"; do
  printf '%s\\n' "$arg" >> "{argv_file}"
done
{body}
"""

EMULATE_BODY = """\
timeout=""
while [ $# -gt 0 ]; do
  case "$1" in
    -t) timeout="$2"; shift 2 ;;
    -w) shift 2 ;;
    -*) shift ;;
    *) break ;;
  esac
done
if [ $# -gt 0 ]; then
  exec "$@"
fi
if [ -n "$timeout" ]; then
  exec sleep "$timeout"
fi
exec sleep 3600
"""

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs /bin/sh")


class FakeCaffeinate:
    """Handle on a fake caffeinate script and what it was called with."""

    def __init__(self, path: Path, argv_file: Path):
        self.path = path
        self.argv_file = argv_file

    @property
    def called(self) -> bool:
        return self.argv_file.exists()

    @property
    def argv(self) -> list[str]:
        if not self.argv_file.exists():
            return []
        return self.argv_file.read_text().splitlines()


@pytest.fixture
def fake_caffeinate(tmp_path):
    """Factory for fake caffeinate executables.

    make() emulates caffeinate; make("exit 3") runs the given shell body instead.
    """

    def _make(body: str = EMULATE_BODY, name: str = "caffeinate") -> FakeCaffeinate:
        path = tmp_path / name
        argv_file = tmp_path / f"{name}.argv"
        path.write_text(FAKE_CAFFEINATE.format(argv_file=argv_file, body=body))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeCaffeinate(path, argv_file)

    return _make


@pytest.fixture
def config_for():
    """Build a Config pointing at a fake caffeinate."""

    def _config(fake: FakeCaffeinate, **kwargs) -> Config:
        return Config(caffeinate=str(fake.path), **kwargs)

    return _config


@pytest.fixture(autouse=True)
def _no_logging():
    """Keep structlog configuration from leaking between tests."""
    yield
    config_module._logger = None
    structlog.reset_defaults()
