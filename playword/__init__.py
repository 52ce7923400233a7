"""
PlayWord: browser automation driven by plain-language instructions.

This package contains the pieces for indexing page elements, resolving
instructions into tool calls, replaying recorded steps, and capturing new
steps from a human operating the browser.
"""

from .core.config import SessionConfig
from .core.errors import (
    FAILED,
    InvalidLogPathError,
    NoCandidateError,
    PlayWordError,
    ReasonerMalformedOutput,
    UnhandledActuatorError,
)
from .core.observer import Observer
from .core.orchestrator import PlayWord

__all__ = [
    "FAILED",
    "InvalidLogPathError",
    "NoCandidateError",
    "Observer",
    "PlayWord",
    "PlayWordError",
    "ReasonerMalformedOutput",
    "SessionConfig",
    "UnhandledActuatorError",
]
