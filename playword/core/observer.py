import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from langchain_core.messages import HumanMessage
from playwright.async_api import Error as PlaywrightError

from .config import (
    DEFAULT_RECORD_PATH,
    OBSERVER_DEBOUNCE,
    OBSERVER_EXCLUDED_KEYS,
    OBSERVER_POLL_INTERVAL,
    SETTLE_DELAY,
)
from .errors import PlayWordError, is_failure
from .executor import run_action
from .logger import Logger
from .recorder import Recorder
from .types import Action, ObserverMode, ObserverState
from ..dom.scripts import (
    HAS_CLASS,
    PANEL_CSS,
    SET_EVENT_LISTENERS,
    SET_INPUT,
    SET_PANEL,
    SET_TIMELINE,
    SHOW_MESSAGE,
    TOGGLE_CLASS,
)
from ..tools.classifier import CLASSIFIER_TOOLS

ELEMENT_PHRASES = {
    "click": "Click on {phrase}",
    "hover": "Hover over {phrase}",
    "input": 'Input "{text}" into {phrase}',
    "select": 'Select "{option}" from {phrase}',
}


class PagePanel:
    """The recording panel mounted in the observed page.

    UI updates are best effort: while the page navigates the panel may be
    missing, in which case the call is logged and skipped.
    """

    TIMEOUT_MS = 2000

    def __init__(self, actuator, logger: Logger):
        self.actuator = actuator
        self.logger = logger

    async def _eval(self, selector: str, script: str, arg: Any = None, default: Any = None) -> Any:
        page = self.actuator.page
        if page is None or page.is_closed():
            return default
        try:
            return await page.locator(selector).first.evaluate(script, arg, timeout=self.TIMEOUT_MS)
        except PlaywrightError as e:
            self.logger.info("Panel", f"{selector} not available: {e.message}")
            return default

    async def is_open(self) -> bool:
        return bool(await self._eval("#plwd-panel", HAS_CLASS, "open", default=False))

    async def open(self) -> None:
        await self._eval("#plwd-panel", TOGGLE_CLASS, {"name": "open", "on": True})

    async def close(self) -> None:
        await self._eval("#plwd-panel", TOGGLE_CLASS, {"name": "open", "on": False})

    async def set_input(self, value: str, disabled: bool) -> None:
        await self._eval("#plwd-input", SET_INPUT, {"value": value, "disabled": disabled})

    async def set_loader(self, on: bool) -> None:
        await self._eval("#plwd-loader-box", TOGGLE_CLASS, {"name": "on", "on": on})

    async def show_timeline(self, steps: List[Dict[str, Any]]) -> None:
        await self._eval("#plwd-timeline", SET_TIMELINE, steps)

    async def notify(self, content: str, color: str = "#e0e0e0") -> None:
        page = self.actuator.page
        if page is None or page.is_closed():
            return
        try:
            await page.evaluate(SHOW_MESSAGE, {"content": content, "color": color})
        except PlaywrightError as e:
            self.logger.info("Panel", f"Notification dropped: {e.message}")


class Observer:
    """Turns what a human does in the browser into recorded steps.

    Every gesture (click, hover, input, select, navigation) becomes a pending
    action. The model writes a description for it, the human edits it if needed
    and accepts or cancels it from the panel. Accepted steps are appended to the
    step log and can be replayed with ``dry_run``.
    """

    def __init__(
        self,
        playword,
        delay: float = SETTLE_DELAY,
        record_path: Union[str, Path] = DEFAULT_RECORD_PATH,
        panel=None,
        debounce: float = OBSERVER_DEBOUNCE,
        poll_interval: float = OBSERVER_POLL_INTERVAL,
        user_action_timeout: Optional[float] = None,
    ):
        self.playword = playword
        # Steps are written by the Observer only
        self.playword.recorder = None
        self.actuator = playword.actuator
        self.reasoner = playword.reasoner
        self.logger: Logger = playword.logger
        self.recorder = Recorder(record_path)
        self.panel = panel or PagePanel(self.actuator, self.logger)
        self.delay = abs(delay)
        self.debounce = debounce
        self.poll_interval = poll_interval
        self.user_action_timeout = user_action_timeout

        self.state = ObserverState()
        self.action: Optional[Action] = None
        self.input = ""
        self._normalized_input: Optional[str] = None
        self._stop_requested = False
        self._queue: "asyncio.Queue[Action]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # --- setup ---

    async def observe(self) -> None:
        """Instrument every page of the context and open the first one."""
        context = self.playword.context
        context.on("page", self._on_page)
        await context.add_init_script(script=f"({SET_EVENT_LISTENERS})()")
        await context.add_init_script(script=f"({SET_PANEL})({json.dumps(PANEL_CSS)})")

        bindings = {
            "acceptEvent": self.accept,
            "clearAll": self.clear_all,
            "deleteStep": self.delete_step,
            "dropEvent": self.cancel,
            "dryRun": self.dry_run,
            "emit": self.handle_emit,
            "notify": self.panel.notify,
            "stopDryRun": self.stop_dry_run,
            "updateInput": self.update_input,
        }
        for name, handler in bindings.items():
            await context.expose_function(name, self._guarded(name, handler))
        await context.expose_function("state", self.state.as_dict)

        self.recorder.load()
        self._ensure_worker()
        await self.actuator.new_page()
        self.logger.info("Observer", f"Observing, {self.recorder.count()} steps loaded from {self.recorder.path}")

    def _on_page(self, page) -> None:
        page.on("framenavigated", lambda frame: self._on_navigated(page, frame))

    def _on_navigated(self, page, frame) -> None:
        if frame != page.main_frame or frame.url == "about:blank":
            return
        event: Action = {"name": "goto", "params": {"url": frame.url}}
        task = asyncio.ensure_future(self._guarded("emit", self.handle_emit)(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _guarded(self, name: str, handler):
        async def run(*args):
            try:
                return await handler(*args)
            except Exception as e:
                self.logger.error("Observer", f"{name} failed: {e}")
                await self.panel.notify(f"{name} failed: {e}", "#e06c75")

        return run

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.ensure_future(self._describe_worker())

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    # --- gestures ---

    async def handle_emit(self, event: Action) -> None:
        """Capture a gesture and wait until the human accepts or cancels it."""
        if not self.state.accepts_gestures() or self.actuator.page is None:
            return

        self.action = event
        self.input = ""
        self._normalized_input = None
        self.state.mode = ObserverMode.WAITING_FOR_USER
        self.logger.info("Observer", f"Captured {event['name']}")

        await asyncio.sleep(self.debounce)
        self._ensure_worker()
        await self._queue.put(event)

        loop = asyncio.get_running_loop()
        started = loop.time()
        while self.state.waiting_for_user:
            if not await self.panel.is_open():
                await self.panel.open()
                await self._preview()
                await self.panel.set_input(self.input, self.state.waiting_for_ai)
            if self.user_action_timeout is not None and loop.time() - started > self.user_action_timeout:
                self.logger.warn("Observer", "No answer from the user, dropping the pending step")
                await self.cancel()
                break
            await asyncio.sleep(self.poll_interval)

        await self.panel.close()

    async def descriptions_done(self) -> None:
        """Wait until every queued description request has been handled."""
        await self._queue.join()

    async def _describe_worker(self) -> None:
        # Single consumer: one description request in flight at a time
        while True:
            event = await self._queue.get()
            try:
                await self._describe(event)
            except Exception as e:
                self.logger.error("Observer", f"Description failed: {e}")
                await self.panel.notify(f"Description failed: {e}", "#e06c75")
            finally:
                self._queue.task_done()

    async def _describe(self, event: Action) -> None:
        if self.action is not event:
            return
        await self._wait_for_ai(True)
        try:
            params = event.get("params") or {}
            if event["name"] == "goto":
                description = f"Navigate to {params.get('url', '')}"
            else:
                phrase = await self.reasoner.summarize_html(params.get("html", ""))
                template = ELEMENT_PHRASES.get(event["name"], "{phrase}")
                description = template.format(
                    phrase=phrase, text=params.get("text", ""), option=params.get("option", ""))
            # Cancelled or replaced while the model was answering
            if self.action is not event:
                return
            self.input = description
            await self._normalize()
            self.logger.info("Observer", f"Step: {self.input}")
        finally:
            await self._wait_for_ai(False)

    async def _normalize(self) -> None:
        """Map the description onto an Action, keeping the locator of the captured element."""
        response = await self.reasoner.use_tools(CLASSIFIER_TOOLS, [HumanMessage(content=self.input)])
        self._normalized_input = self.input
        if not response.tool_calls:
            return
        call = response.tool_calls[0]
        selected = {t.name: t for t in CLASSIFIER_TOOLS}.get(call["name"])
        if selected is None:
            self.logger.warn("Observer", f"Unknown tool {call['name']}, keeping the captured action")
            return
        self.action = await selected.ainvoke(call["args"], config={"configurable": {"action": self.action}})
        self.logger.divider()
        self.logger.info("Observer", f"Action: {json.dumps(self.action)}")

    async def _wait_for_ai(self, on: bool) -> None:
        self.state.waiting_for_ai = on
        await self.panel.set_loader(on)
        await self.panel.set_input(self.input, on)

    async def _preview(self) -> None:
        steps = []
        for recording in self.recorder.list():
            outcomes = [a.get("success") for a in recording["actions"] if "success" in a]
            steps.append({
                "input": recording["input"],
                "success": all(outcomes) if outcomes else None,
            })
        await self.panel.show_timeline(steps)

    def _reset_pending(self) -> None:
        self.action = None
        self.input = ""
        self._normalized_input = None
        if self.state.waiting_for_user:
            self.state.mode = ObserverMode.IDLE

    # --- panel commands ---

    async def update_input(self, text: str) -> None:
        self.input = text

    async def accept(self) -> None:
        """Append the pending action as a new step and persist the log."""
        if self.action is None:
            return
        if self.state.waiting_for_ai:
            await self.panel.notify("Still describing the step, try again in a moment")
            return
        if not self.input:
            await self.panel.notify("The step has no description yet, type one before saving")
            return
        if self._normalized_input != self.input:
            await self._normalize()
        self.recorder.init_step(self.recorder.count(), self.input)
        self.recorder.add_action(self.action)
        self.recorder.save(OBSERVER_EXCLUDED_KEYS, full=True)
        self.logger.info("Observer", f"Saved step {self.recorder.count() - 1}: {self.input}")
        self._reset_pending()

    async def cancel(self) -> None:
        self._reset_pending()

    async def delete_step(self, position: int) -> None:
        self.recorder.delete(position)
        self.recorder.save(OBSERVER_EXCLUDED_KEYS, full=True)
        self.logger.info("Observer", f"Deleted step {position}")
        await self._preview()

    async def clear_all(self) -> None:
        self._reset_pending()
        self.recorder.clear()
        self.recorder.save(OBSERVER_EXCLUDED_KEYS, full=True)
        await self.panel.notify("Cleared")
        await self._preview()

    async def stop_dry_run(self) -> None:
        if self.state.dry_running:
            self._stop_requested = True

    async def dry_run(self) -> None:
        """Replay every recorded step from a clean browser state, without the model."""
        self.logger.divider()
        self.logger.info("Observer", "Starting the dry run", "green")
        self._reset_pending()
        self._stop_requested = False
        self.state.mode = ObserverMode.DRY_RUNNING
        try:
            await self.actuator.reset()
            self.logger.info("Observer", "Page state reset", "green")
            for recording in self.recorder.list():
                if self._stop_requested:
                    self.logger.warn("Observer", "Dry run stopped")
                    break
                for action in recording["actions"]:
                    try:
                        result = await run_action(self.actuator, action)
                    except PlayWordError as e:
                        self.logger.error("Observer", f"{action['name']} raised {e}")
                        result = False
                    action["success"] = bool(result) and not is_failure(result)
                    self.logger.info(
                        "Observer", ("PASS: " if action["success"] else "FAIL: ") + recording["input"])
                await asyncio.sleep(self.delay)
        finally:
            self.state.mode = ObserverMode.IDLE
        self.logger.info("Observer", "Dry run completed", "green")
        await self.panel.notify("Completed", "#e5c07b")
        await self._preview()
