"""
Argument classification for caff.

Turns a raw argument vector into an InvocationRequest. Tokens before the first
"--" are matched against an ordered list of matchers (first match wins);
everything after it is the command to run under caffeinate.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from caff.core.duration import (
    DurationSpec,
    parse_human,
    parse_manual,
    parse_preset,
    resolve,
)

SEPARATOR = "--"

HELP_WORDS = frozenset({"-h", "--help", "help"})
QUIET_WORDS = frozenset({"-q", "--quiet", "quiet"})

# Shorthand letters in the order their flags are emitted
SHORTHAND_ORDER = "disu"


@dataclass(frozen=True)
class TokenClass:
    """Result of classifying a single pre-separator token."""

    kind: Literal["help", "quiet", "shorthand", "duration", "passthrough"]
    flags: tuple[str, ...] = ()  # shorthand expansion or the verbatim token
    seconds: int | None = None  # set when kind="duration"


@dataclass(frozen=True)
class Matcher:
    """A named predicate + transform pair."""

    name: str
    test: Callable[[str], bool]
    transform: Callable[[str], TokenClass]


@dataclass(frozen=True)
class InvocationRequest:
    """Everything caff needs to know about one invocation."""

    help: bool = False
    quiet: bool = False
    passthrough_flags: tuple[str, ...] = ()
    duration: DurationSpec = field(default_factory=DurationSpec)
    command: tuple[str, ...] = ()

    @property
    def has_command(self) -> bool:
        return bool(self.command)

    @property
    def wants_ui(self) -> bool:
        """Progress UI runs only without a command and outside quiet mode."""
        return not self.quiet and not self.has_command

    @property
    def caffeinate_flags(self) -> tuple[str, ...]:
        """Flags handed to caffeinate: passthrough first, then -t if bounded."""
        return self.passthrough_flags + self.duration.args()


# === Matchers ===


def _is_shorthand(token: str) -> bool:
    return bool(token) and all(c in SHORTHAND_ORDER for c in token)


def _expand_shorthand(token: str) -> TokenClass:
    """'usid' -> -d -i -s -u. Order is fixed, duplicates collapse."""
    return TokenClass(
        "shorthand", flags=tuple(f"-{c}" for c in SHORTHAND_ORDER if c in token)
    )


def _duration_matcher(name: str, parse: Callable[[str], int | None]) -> Matcher:
    return Matcher(
        name,
        test=lambda token: parse(token) is not None,
        transform=lambda token: TokenClass("duration", seconds=parse(token)),
    )


MATCHERS: tuple[Matcher, ...] = (
    Matcher("help", lambda t: t in HELP_WORDS, lambda t: TokenClass("help")),
    Matcher("quiet", lambda t: t in QUIET_WORDS, lambda t: TokenClass("quiet")),
    Matcher("shorthand", _is_shorthand, _expand_shorthand),
    _duration_matcher("manual", parse_manual),
    _duration_matcher("human", parse_human),
    _duration_matcher("preset", parse_preset),
)

PASSTHROUGH = Matcher(
    "passthrough", lambda t: True, lambda t: TokenClass("passthrough", flags=(t,))
)


def classify_token(token: str) -> TokenClass:
    """Classify one token. Never fails; unknown tokens pass through verbatim."""
    for matcher in MATCHERS:
        if matcher.test(token):
            return matcher.transform(token)
    return PASSTHROUGH.transform(token)


def split_command(argv: list[str]) -> tuple[list[str], list[str]]:
    """Split at the first '--'. Later separators belong to the command."""
    try:
        i = argv.index(SEPARATOR)
    except ValueError:
        return list(argv), []
    return list(argv[:i]), list(argv[i + 1 :])


def classify(argv: list[str]) -> InvocationRequest:
    """Build an InvocationRequest from raw arguments (without the program name).

    When several duration tokens appear, the last one wins.
    """
    pre_args, command = split_command(argv)

    show_help = False
    quiet = False
    flags: list[str] = []
    seconds: int | None = None

    for token in pre_args:
        result = classify_token(token)
        if result.kind == "help":
            show_help = True
        elif result.kind == "quiet":
            quiet = True
        elif result.kind == "duration":
            seconds = result.seconds
        else:
            flags.extend(result.flags)

    return InvocationRequest(
        help=show_help,
        quiet=quiet,
        passthrough_flags=tuple(flags),
        duration=resolve(seconds),
        command=tuple(command),
    )
