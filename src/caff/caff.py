"""Smart wrapper around macOS caffeinate.

caff turns compact arguments into a caffeinate invocation:

    caff disu 2h                  -> caffeinate -d -i -s -u -t 7200
    caff di short                 -> caffeinate -d -i -t 900
    caff dis medium -- brew upgrade -> caffeinate -d -i -s -t 3600 brew upgrade

Execution modes:
- quiet, or a command after "--": caffeinate runs in the foreground and its
  exit code (the command's, when there is one) is returned.
- otherwise: caffeinate runs in the background while a countdown bar (known
  duration) or spinner (unknown duration) is shown. Ctrl+C stops both and
  exits with 130.

Environment:
- CAFF_CAFFEINATE: inhibitor binary (default "caffeinate")
- CAFF_LOG: write a JSON-lines audit log to this path
- CAFF_QUIET: quiet by default when truthy
"""

from __future__ import annotations

import sys
from dataclasses import replace
from typing import TextIO

from caff.core.classifier import InvocationRequest, classify
from caff.core.config import Config, configure_logging, load_config, log_event
from caff.core.supervisor import LaunchError, Supervisor
from caff.core.ui import PREFIX

EXIT_CONFIG_ERROR = 2

HELP_TEXT = """\
caff - smart wrapper around macOS caffeinate

Usage:
  caff [options] [disu|flags...] [duration] [-- command ...]

Examples:
  caff disu 2h
  caff di short
  caff dis medium -- brew upgrade
  caff -q disu 30m -- long-running-command

Flag shorthand:
  d        -> -d  (prevent display sleep)
  i        -> -i  (prevent idle sleep)
  s        -> -s  (prevent system sleep)
  u        -> -u  (declare user is active)
  "disu"   -> -d -i -s -u

Durations:
  t=3600   -> -t 3600 (manual seconds)
  2h       -> 2 hours
  30m      -> 30 minutes

Presets:
  short    -> 15 minutes
  medium   -> 1 hour
  long     -> 3 hours
  night,
  overnight-> 8 hours

Meta options:
  -q, --quiet, quiet   Run without UI and without start/finish messages
  -h, --help, help     Show this help

Behavior:
  - If a duration is known and no command is given: shows a countdown bar
  - If no duration is known and no command is given: shows a spinner
  - If a command is given: no UI (only start/finish messages)
  - Ctrl+C interrupts both the UI and caffeinate (exit code 130)
  - When a command is passed after "--", its exit code is propagated

Any other word is passed to caffeinate unchanged.
"""


# === Notifications ===


def start_message(request: InvocationRequest) -> str:
    flags = " ".join(request.caffeinate_flags) or "<none>"
    command = " ".join(request.command) if request.has_command else "(no command)"
    return (
        f"{PREFIX} starting: duration={request.duration.label}, "
        f"flags: {flags}, command: {command}"
    )


def finish_message(code: int) -> str:
    return f"{PREFIX} finished with status {code}."


def _mode(request: InvocationRequest) -> str:
    if request.wants_ui:
        return "countdown" if request.duration.bounded else "spinner"
    return "foreground"


# === Entry point ===


def run(argv: list[str], config: Config | None = None, stream: TextIO | None = None) -> int:
    """Run caff for argv (without the program name) and return the exit code."""
    out = stream if stream is not None else sys.stdout
    if config is None:
        config = Config()

    request = classify(argv)
    if request.help:
        out.write(HELP_TEXT)
        out.flush()
        return 0

    if config.quiet and not request.quiet:
        request = replace(request, quiet=True)

    log_event(
        "invocation",
        flags=list(request.caffeinate_flags),
        duration=request.duration.label,
        command=list(request.command),
        mode=_mode(request),
    )

    if not request.quiet:
        print(start_message(request), file=out, flush=True)

    supervisor = Supervisor(caffeinate=config.caffeinate, stream=stream)
    code = supervisor.run(request)

    if supervisor.state == "interrupted":
        return code

    log_event("finished", status=code)
    if not request.quiet:
        print(finish_message(code), file=out, flush=True)
    return code


def main() -> None:
    try:
        config = load_config()
    except ValueError as e:
        print(f"{PREFIX} error: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        configure_logging(config)
    except OSError as e:
        print(f"Warning: logging disabled, cannot open {config.log}: {e}", file=sys.stderr)

    try:
        code = run(sys.argv[1:], config)
    except LaunchError as e:
        print(f"{PREFIX} error: {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    sys.exit(code)


if __name__ == "__main__":
    main()
