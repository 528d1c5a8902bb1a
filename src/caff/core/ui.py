"""
Terminal progress UI for caff.

Two variants run while caffeinate works in the background:
- countdown bar when the duration is known
- spinner when it is not

Both poll the target's liveness every tick and stop on Ctrl+C. SIGINT is only
caught inside interrupt_scope(), which turns it into a cancellation token the
loops wait on.
"""

from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from typing import TextIO

from caff.core.duration import DurationSpec

PREFIX = "[caff]"
CLEAR_LINE = "\r\033[K"

BAR_WIDTH = 20
BAR_FILLED = "#"
BAR_EMPTY = "."
TICK_SECONDS = 1.0

SPINNER_FRAMES = ("-", "\\", "|", "/")
SPINNER_INTERVAL = 0.2


class UIResult(Enum):
    """How a UI loop ended. Value is the loop's status code."""

    COMPLETED = 0
    INTERRUPTED = 1


@contextmanager
def interrupt_scope(token: threading.Event) -> Iterator[threading.Event]:
    """Route SIGINT to token.set() for the duration of the block.

    The previous handler is restored on every exit path.
    """
    previous = signal.getsignal(signal.SIGINT)
    if previous is None:  # installed outside Python
        previous = signal.SIG_DFL

    def _on_interrupt(signum, frame):
        token.set()

    signal.signal(signal.SIGINT, _on_interrupt)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


# === Rendering ===


def format_remaining(seconds: int) -> str:
    """MM:SS; minutes are not wrapped into hours (8h -> 480:00)."""
    seconds = max(seconds, 0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def render_bar(total: int, elapsed: int, width: int = BAR_WIDTH) -> str:
    """[####................] with floor(elapsed * width / total) slots filled."""
    filled = elapsed * width // total if total > 0 else width
    filled = max(0, min(filled, width))
    return "[" + BAR_FILLED * filled + BAR_EMPTY * (width - filled) + "]"


def _write(stream: TextIO, text: str) -> None:
    stream.write(text)
    stream.flush()


def _interrupted(stream: TextIO) -> UIResult:
    _write(stream, f"{CLEAR_LINE}{PREFIX} interrupted by user.\n")
    return UIResult.INTERRUPTED


# === Loops ===


def countdown(
    total: int,
    is_alive: Callable[[], bool],
    token: threading.Event,
    stream: TextIO | None = None,
    tick: float = TICK_SECONDS,
) -> UIResult:
    """Show a countdown bar for total seconds, or until the target exits or token is set."""
    if stream is None:
        stream = sys.stdout
    if total <= 0:
        return UIResult.COMPLETED

    elapsed = 0
    while elapsed <= total and not token.is_set():
        if not is_alive():
            break
        remaining = max(total - elapsed, 0)
        _write(
            stream,
            f"{CLEAR_LINE}{PREFIX} {render_bar(total, elapsed)} "
            f"{format_remaining(remaining)} remaining",
        )
        token.wait(tick)
        elapsed += 1

    if token.is_set():
        return _interrupted(stream)

    _write(
        stream,
        f"{CLEAR_LINE}{PREFIX} {render_bar(total, total)} {format_remaining(0)} done\n",
    )
    return UIResult.COMPLETED


def spinner(
    is_alive: Callable[[], bool],
    token: threading.Event,
    stream: TextIO | None = None,
    interval: float = SPINNER_INTERVAL,
) -> UIResult:
    """Spin until the target exits or token is set. There is no 'done' state."""
    if stream is None:
        stream = sys.stdout
    frame = 0
    while not token.is_set():
        if not is_alive():
            break
        _write(stream, f"{CLEAR_LINE}{PREFIX} {SPINNER_FRAMES[frame]} running...")
        frame = (frame + 1) % len(SPINNER_FRAMES)
        token.wait(interval)

    if token.is_set():
        return _interrupted(stream)

    _write(stream, CLEAR_LINE)
    return UIResult.COMPLETED


def run_progress(
    duration: DurationSpec,
    is_alive: Callable[[], bool],
    token: threading.Event | None = None,
    stream: TextIO | None = None,
) -> UIResult:
    """Pick the UI variant for duration and run it with SIGINT scoped to the loop."""
    if token is None:
        token = threading.Event()
    with interrupt_scope(token):
        if duration.bounded:
            return countdown(duration.seconds, is_alive, token, stream)
        return spinner(is_alive, token, stream)
