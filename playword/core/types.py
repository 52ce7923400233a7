from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict, Union

from langchain_core.messages import BaseMessage

ActionResult = Union[str, bool]


class _ActionBase(TypedDict):
    name: str
    params: Dict[str, Any]


class Action(_ActionBase, total=False):
    # Only set by the Observer dry run
    success: bool


class Recording(TypedDict):
    input: str
    actions: List[Action]


class _ElementLocationBase(TypedDict):
    xpath: str
    html: str


class ElementLocation(_ElementLocationBase, total=False):
    frameSrc: str


class VectorRecord(TypedDict):
    content: str
    embedding: List[float]


class ResolverState(TypedDict):
    messages: List[BaseMessage]
    # "operation" | "assertion" | "query"
    kind: Optional[str]
    # "idle" | "classified" | "tools_bound" | "tool_invoked" | "resolved"
    phase: str
    results: List[Any]
    result: Optional[ActionResult]


class ObserverMode(Enum):
    IDLE = "idle"
    WAITING_FOR_USER = "waiting_for_user"
    DRY_RUNNING = "dry_running"


@dataclass
class ObserverState:
    mode: ObserverMode = ObserverMode.IDLE
    # Independent of mode: a description may still be generating while
    # the human already sees the panel.
    waiting_for_ai: bool = False

    @property
    def dry_running(self) -> bool:
        return self.mode is ObserverMode.DRY_RUNNING

    @property
    def waiting_for_user(self) -> bool:
        return self.mode is ObserverMode.WAITING_FOR_USER

    def accepts_gestures(self) -> bool:
        return self.mode is ObserverMode.IDLE and not self.waiting_for_ai

    def as_dict(self) -> Dict[str, bool]:
        return {
            "dryRunning": self.dry_running,
            "waitingForAI": self.waiting_for_ai,
            "waitingForUserAction": self.waiting_for_user,
        }
