"""
caff - smart wrapper around macOS caffeinate.

Shorthand flags, human durations, presets, a progress UI, and exit-code
propagation for commands run under caffeinate.
"""

from __future__ import annotations

__version__ = "0.1.0"

from caff.caff import run
from caff.core.classifier import InvocationRequest, classify

__all__ = ["run", "classify", "InvocationRequest", "__version__"]
