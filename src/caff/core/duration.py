"""
Duration parsing and labelling for caff.

Resolves manual seconds (t=3600), human durations (2h, 30m) and named presets
into a DurationSpec that knows its caffeinate arguments and display label.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Named presets, in seconds
PRESETS = {
    "short": 900,  # 15 minutes
    "medium": 3600,  # 1 hour
    "long": 10800,  # 3 hours
    "night": 28800,  # 8 hours
    "overnight": 28800,
}

UNIT_SECONDS = {"h": 3600, "m": 60}

MANUAL_RE = re.compile(r"t=([0-9]+)")
HUMAN_RE = re.compile(r"([0-9]+)([hm])")

UNBOUNDED_LABEL = "infinite"


@dataclass(frozen=True)
class DurationSpec:
    """A resolved duration. seconds=None means unbounded (no -t)."""

    seconds: int | None = None

    @property
    def bounded(self) -> bool:
        return self.seconds is not None

    @property
    def label(self) -> str:
        if self.seconds is None:
            return UNBOUNDED_LABEL
        return format_label(self.seconds)

    def args(self) -> tuple[str, ...]:
        """caffeinate arguments for this duration."""
        if self.seconds is None:
            return ()
        return ("-t", str(self.seconds))


UNBOUNDED = DurationSpec()


def format_label(seconds: int) -> str:
    """Pick the largest unit that divides evenly: 7200 -> 2h, 2700 -> 45m, 90 -> 90s."""
    if seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


def parse_manual(token: str) -> int | None:
    """t=<digits> -> literal seconds."""
    m = MANUAL_RE.fullmatch(token)
    if not m:
        return None
    return int(m.group(1))


def parse_human(token: str) -> int | None:
    """<digits>h or <digits>m -> seconds."""
    m = HUMAN_RE.fullmatch(token)
    if not m:
        return None
    return int(m.group(1)) * UNIT_SECONDS[m.group(2)]


def parse_preset(token: str) -> int | None:
    return PRESETS.get(token)


def resolve(seconds: int | None) -> DurationSpec:
    """Wrap classified seconds (or None) in a DurationSpec."""
    if seconds is None:
        return UNBOUNDED
    return DurationSpec(seconds)
