import re
from io import BytesIO
from typing import Any, Dict, List, Optional

import pytest
from langchain_core.messages import AIMessage
from PIL import Image

from playword.core.errors import FAILED


class FakeActuator:
    """Records every primitive it is asked to run."""

    def __init__(self):
        self.page = "page"
        self.calls: List[tuple] = []
        self.locations: List[Dict[str, Any]] = []
        self.fail_xpaths = set()
        self.raises: Dict[str, Exception] = {}
        self.page_text = ""
        self.element_text = "Welcome back"
        self.resets = 0

    def _call(self, name: str, **params):
        self.calls.append((name, params))
        if name in self.raises:
            raise self.raises[name]

    async def ensure_page(self):
        return self.page

    async def new_page(self):
        return self.page

    async def reset(self):
        self.resets += 1

    async def element_locations(self, tags):
        self.calls.append(("element_locations", {"tags": tags}))
        return [dict(loc) for loc in self.locations]

    async def screenshot(self):
        self.calls.append(("screenshot", {}))
        buf = BytesIO()
        Image.new("RGB", (1280, 720), "white").save(buf, format="JPEG")
        return buf.getvalue()

    async def goto(self, url):
        self._call("goto", url=url)
        return f"Navigated to {url}"

    async def click(self, xpath, frame_src=None):
        self._call("click", xpath=xpath)
        if xpath in self.fail_xpaths:
            return FAILED
        return f"Clicked on {xpath}"

    async def hover(self, xpath, duration=None, frame_src=None):
        self._call("hover", xpath=xpath, duration=duration)
        return f"Hovered on {xpath}"

    async def input(self, xpath, text, frame_src=None):
        self._call("input", xpath=xpath, text=text)
        if xpath in self.fail_xpaths:
            return FAILED
        return f"Filled {xpath} with {text}"

    async def select(self, xpath, option, frame_src=None):
        self._call("select", xpath=xpath, option=option)
        return f"Selected {option} from {xpath}"

    async def switch_frame(self, frame_number=None):
        self._call("switch_frame", frame_number=frame_number)
        return f"Switched to frame {frame_number}"

    async def press_keys(self, keys):
        self._call("press_keys", keys=keys)
        return f"Pressed keys {keys}"

    async def get_text(self, xpath, frame_src=None):
        self._call("get_text", xpath=xpath)
        if xpath in self.fail_xpaths:
            return FAILED
        return self.element_text

    async def assert_page_contains(self, text, frame_src=None):
        self._call("assert_page_contains", text=text)
        return text in self.page_text

    async def assert_page_url_matches(self, pattern):
        self._call("assert_page_url_matches", pattern=pattern)
        return re.search(pattern, "https://x.test/home") is not None


class FakeReasoner:
    """Scripted model. Embeddings count vocabulary words, so ranking is predictable."""

    def __init__(self, vocabulary: Optional[List[str]] = None):
        self.vocabulary = vocabulary or ["login", "search", "submit", "email", "password"]
        self.kind = "operation"
        self.tool_responses: List[AIMessage] = []
        self.candidate_index: Any = 0
        self.summary = 'the "Login" link'
        self.calls: List[str] = []
        self.candidates_seen: List[List[str]] = []
        self.screenshots: List[Optional[str]] = []

    def _embed(self, text: str) -> List[float]:
        text = text.lower()
        return [float(text.count(word)) for word in self.vocabulary]

    async def classify_action(self, message):
        self.calls.append("classify_action")
        return self.kind

    async def use_tools(self, tools, messages):
        self.calls.append("use_tools")
        if self.tool_responses:
            return self.tool_responses.pop(0)
        return AIMessage(content="")

    async def embed_documents(self, texts):
        self.calls.append("embed_documents")
        return [self._embed(t) for t in texts]

    async def embed_query(self, text):
        self.calls.append("embed_query")
        return self._embed(text)

    async def get_best_candidate(self, user_input, candidates, screenshot=None):
        self.calls.append("get_best_candidate")
        self.candidates_seen.append(list(candidates))
        self.screenshots.append(screenshot)
        return self.candidate_index

    async def summarize_html(self, html):
        self.calls.append("summarize_html")
        return self.summary

    async def analyze_image(self, image, user_input):
        self.calls.append("analyze_image")
        return "42"


class NullPanel:
    def __init__(self):
        self.opened = False
        self.notifications: List[str] = []
        self.timeline: List[Dict[str, Any]] = []
        self.input = ""

    async def is_open(self):
        return self.opened

    async def open(self):
        self.opened = True

    async def close(self):
        self.opened = False

    async def set_input(self, value, disabled):
        self.input = value

    async def set_loader(self, on):
        pass

    async def show_timeline(self, steps):
        self.timeline = steps

    async def notify(self, content, color="#e0e0e0"):
        self.notifications.append(content)


def _tool_call(name: str, **args) -> AIMessage:
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": f"call_{name}"}])


def _tool_calls(*calls) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[
            {"name": name, "args": args, "id": f"call_{i}"} for i, (name, args) in enumerate(calls)
        ],
    )


@pytest.fixture
def actuator():
    return FakeActuator()


@pytest.fixture
def reasoner():
    return FakeReasoner()


@pytest.fixture
def panel():
    return NullPanel()


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "steps" / "recordings.json"


@pytest.fixture
def tool_call():
    return _tool_call


@pytest.fixture
def tool_calls():
    return _tool_calls
