"""
Process supervision for caff.

Launches caffeinate either in the foreground (quiet mode or a wrapped command)
or in the background with a progress UI, and turns the outcome into an exit
code:

- foreground: caffeinate's own exit code (the wrapped command's, when present)
- background, UI completed: caffeinate's exit code
- background, UI interrupted: 130 after caffeinate is terminated and reaped
"""

from __future__ import annotations

import signal
import subprocess
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TextIO

from caff.core.classifier import InvocationRequest
from caff.core.config import log_event
from caff.core.ui import PREFIX, UIResult, interrupt_scope, run_progress

EXIT_INTERRUPTED = 130
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127

# How often the final wait checks for Ctrl+C
REAP_INTERVAL = 0.2

INTERRUPTED_MESSAGE = f"{PREFIX} interrupted, caffeinate stopped."

UIRunner = Callable[..., UIResult]


class LaunchError(Exception):
    """caffeinate could not be started. exit_code follows shell conventions."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


def exit_code_of(returncode: int) -> int:
    """Map a Popen returncode to a shell exit code (-N for signal N -> 128+N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


@dataclass
class SupervisedProcess:
    """A running caffeinate process, owned by the supervisor."""

    argv: tuple[str, ...]
    popen: subprocess.Popen = field(repr=False)

    @property
    def pid(self) -> int:
        return self.popen.pid

    def alive(self) -> bool:
        """Non-blocking liveness check."""
        return self.popen.poll() is None

    def terminate(self) -> None:
        if self.alive():
            self.popen.terminate()

    def wait(self) -> int:
        return exit_code_of(self.popen.wait())


def launch(argv: list[str] | tuple[str, ...], detached: bool = False) -> SupervisedProcess:
    """Start argv. Raises LaunchError if the binary is missing or not executable.

    A detached process gets its own session, so terminal Ctrl+C reaches only caff.
    """
    argv = tuple(argv)
    try:
        popen = subprocess.Popen(argv, start_new_session=detached)
    except FileNotFoundError:
        log_event("launch_failed", argv=list(argv), reason="not_found")
        raise LaunchError(f"{argv[0]}: command not found", EXIT_NOT_FOUND) from None
    except PermissionError:
        log_event("launch_failed", argv=list(argv), reason="not_executable")
        raise LaunchError(f"{argv[0]}: permission denied", EXIT_NOT_EXECUTABLE) from None
    log_event("launched", pid=popen.pid, argv=list(argv))
    return SupervisedProcess(argv=argv, popen=popen)


@contextmanager
def deferred_interrupt() -> Iterator[None]:
    """Keep SIGINT from raising KeyboardInterrupt in caff while a foreground child runs.

    A Python-level handler (unlike SIG_IGN) is reset on exec, so the child
    still receives Ctrl+C with its default disposition.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.getsignal(signal.SIGINT)
    if previous is None:
        previous = signal.SIG_DFL
    signal.signal(signal.SIGINT, lambda signum, frame: None)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class Supervisor:
    """Runs caffeinate for one InvocationRequest and returns the exit code."""

    def __init__(
        self,
        caffeinate: str = "caffeinate",
        ui: UIRunner | None = None,
        stream: TextIO | None = None,
    ):
        self.caffeinate = caffeinate
        self.ui = ui
        self.stream = stream
        self.state = "idle"

    def _out(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stdout

    def argv_for(self, request: InvocationRequest) -> list[str]:
        """caffeinate argv: flags, then the wrapped command if any."""
        return [self.caffeinate, *request.caffeinate_flags, *request.command]

    def run(self, request: InvocationRequest) -> int:
        """Launch and supervise. Raises LaunchError if caffeinate cannot start."""
        self.state = "launching"
        argv = self.argv_for(request)
        if request.wants_ui:
            return self._run_background(request, argv)
        return self._run_foreground(launch(argv))

    def _run_foreground(self, proc: SupervisedProcess) -> int:
        self.state = "foreground"
        with deferred_interrupt():
            code = proc.wait()
        self.state = "completed"
        return code

    def _run_background(self, request: InvocationRequest, argv: list[str]) -> int:
        """Launch detached and drive the UI.

        SIGINT sets the token from launch until caffeinate is reaped, so Ctrl+C
        at any point takes the interrupted path instead of raising.
        """
        ui = self.ui if self.ui is not None else run_progress
        token = threading.Event()
        with interrupt_scope(token):
            proc = launch(argv, detached=True)
            self.state = "background"
            try:
                result = ui(request.duration, proc.alive, token=token, stream=self.stream)
                if result is UIResult.COMPLETED:
                    result = self._await_exit(proc, token)
            except BaseException:
                proc.terminate()
                proc.wait()
                raise

            if result is UIResult.INTERRUPTED:
                proc.terminate()
                proc.wait()
                self.state = "interrupted"
                log_event("interrupted", pid=proc.pid)
                print(INTERRUPTED_MESSAGE, file=self._out(), flush=True)
                return EXIT_INTERRUPTED

            code = proc.wait()
        self.state = "completed"
        return code

    def _await_exit(self, proc: SupervisedProcess, token: threading.Event) -> UIResult:
        """Wait for caffeinate after the UI finished, still honouring Ctrl+C."""
        while proc.alive():
            if token.wait(REAP_INTERVAL):
                return UIResult.INTERRUPTED
        return UIResult.COMPLETED
