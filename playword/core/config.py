import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

# Step log
DEFAULT_RECORD_PATH = Path(".playword/recordings.json")
RECORD_SUFFIX = ".json"

# Models
CHAT_MODEL = "gpt-4o-mini"
EMBEDDING_MODEL = "text-embedding-3-small"

# Timing (seconds)
SETTLE_DELAY = 0.25
OBSERVER_DEBOUNCE = 0.5
OBSERVER_POLL_INTERVAL = 0.2
ACTION_TIMEOUT_MS = 10000
WAIT_FOR_TEXT_TIMEOUT_MS = 30000
FRAME_WAIT_TIMEOUT = 30.0

# Element retrieval
TOP_K = 10
MAX_FRAGMENT_LENGTH = 1000
ALLOWED_TAGS = [
    "a",
    "button",
    "div",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "img",
    "input",
    "label",
    "li",
    "option",
    "p",
    "select",
    "span",
    "strong",
    "td",
    "textarea",
    "th",
    "ul",
]
INPUT_TAGS = ["input", "textarea"]
SELECT_TAGS = ["select"]
SANITIZED_ATTRIBUTES = ["class", "href", "id", "name",
                        "placeholder", "title", "type", "value"]
SANITIZED_ATTRIBUTE_PREFIXES = ["aria-", "data-"]

# Patterns
AI_PATTERN = re.compile(r"^\[\b(?:ai)\b\]", re.IGNORECASE)
VARIABLE_PATTERN = re.compile(r"\{([^{}]+)\}")

# Keys dropped from the log when the Observer saves
OBSERVER_EXCLUDED_KEYS = ["html", "success"]


@dataclass
class SessionConfig:
    """Settings for one PlayWord session."""

    browser: str = "chromium"
    headless: bool = False
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    model: str = CHAT_MODEL
    delay: float = SETTLE_DELAY
    record: Union[bool, str, Path] = False
    retry: bool = True
    use_screenshot: bool = False
    debug: bool = False

    @property
    def record_path(self) -> Optional[Path]:
        if self.record is True:
            return DEFAULT_RECORD_PATH
        if not self.record:
            return None
        return Path(self.record)

    @classmethod
    def from_env(cls, **overrides) -> "SessionConfig":
        load_dotenv()
        values = {
            "browser": os.getenv("PLAYWORD_BROWSER", "chromium"),
            "headless": _as_bool(os.getenv("PLAYWORD_HEADLESS")),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "openai_base_url": os.getenv("OPENAI_BASE_URL"),
            "model": os.getenv("PLAYWORD_MODEL", CHAT_MODEL),
            "use_screenshot": _as_bool(os.getenv("PLAYWORD_USE_SCREENSHOT")),
            "debug": _as_bool(os.getenv("PLAYWORD_DEBUG")),
        }
        record = os.getenv("PLAYWORD_RECORD")
        if record:
            values["record"] = True if _as_bool(record) else record
        values.update(overrides)
        return cls(**values)


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")
