import asyncio
import copy
from pathlib import Path
from typing import Optional, Union

from .config import AI_PATTERN, DEFAULT_RECORD_PATH, SETTLE_DELAY, SessionConfig
from .errors import is_failure
from .executor import Actuator, run_action
from .logger import Logger
from .recorder import Recorder
from .types import ActionResult, Recording
from ..agents.reasoner import Reasoner
from ..agents.resolver import run_resolver


class PlayWord:
    """Runs free-text instructions against a browser context.

    Each ``say`` call is one step. When the step log already holds an entry for
    this step with the same input, the recorded actions are replayed without
    calling the model; otherwise the instruction goes through the resolver and
    the actions it performs are recorded. Prefix an instruction with ``[ai]`` to
    skip the log for that step.
    """

    def __init__(
        self,
        context=None,
        reasoner=None,
        actuator: Optional[Actuator] = None,
        delay: float = SETTLE_DELAY,
        record: Union[bool, str, Path] = False,
        retry: bool = True,
        use_screenshot: bool = False,
        debug: bool = False,
        logger: Optional[Logger] = None,
    ):
        self.logger = logger or Logger(debug=debug)
        self.context = context
        self.actuator = actuator or Actuator(context, self.logger)
        if reasoner is None:
            reasoner = Reasoner(logger=self.logger)
        self.reasoner = reasoner
        self.delay = abs(delay)
        self.retry = retry
        # Send a page screenshot along with the candidate list when picking an element
        self.use_screenshot = use_screenshot
        self.recorder: Optional[Recorder] = None
        if record:
            self.recorder = Recorder(DEFAULT_RECORD_PATH if record is True else record)
        self.step = 0
        self.input = ""
        self._started = False

    @classmethod
    def from_config(cls, context, config: SessionConfig) -> "PlayWord":
        logger = Logger(debug=config.debug)
        reasoner = Reasoner(
            model=config.model,
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            logger=logger,
        )
        return cls(
            context,
            reasoner=reasoner,
            delay=config.delay,
            record=config.record_path or False,
            retry=config.retry,
            use_screenshot=config.use_screenshot,
            logger=logger,
        )

    @property
    def page(self):
        return self.actuator.page

    async def begin(self, message: str) -> None:
        if not self._started:
            self._started = True
            await self.actuator.ensure_page()
            if self.recorder is not None:
                self.recorder.load()
        self.input = AI_PATTERN.sub("", message).strip()

    async def resolve_or_replay(self, message: str) -> ActionResult:
        recording = self.recorder.get(self.step) if self.recorder is not None else None
        if AI_PATTERN.match(message) or recording is None or recording["input"] != self.input:
            return await self._resolve()
        return await self._replay(recording)

    def end(self) -> None:
        self.step += 1

    async def say(self, message: str) -> ActionResult:
        await self.begin(message)
        result = await self.resolve_or_replay(message)
        self.end()
        return result

    async def _resolve(self) -> ActionResult:
        self.logger.info("AI", self.input, "green")
        previous = None
        if self.recorder is not None:
            previous = copy.deepcopy(self.recorder.get(self.step))
            self.recorder.init_step(self.step, self.input)

        try:
            result = await run_resolver(self, self.input)
        except Exception:
            if self.recorder is not None:
                self.recorder.restore(self.step, previous)
            raise

        self.logger.info("AI", f"Result: {result}", "green" if result else "red")
        if self.recorder is not None:
            self.recorder.save()
        return result

    async def _replay(self, recording: Recording) -> ActionResult:
        self.logger.info("Replay", self.input, "green")
        result: ActionResult = ""

        for action in recording["actions"]:
            try:
                result = await run_action(self.actuator, action, self.reasoner)
            except Exception as e:
                if not self.retry:
                    raise
                self.logger.warn("Replay", f"{action['name']} raised {e!r}, retrying with AI")
                return await self._resolve()

            self.logger.info("Replay", str(result))
            if is_failure(result):
                if self.retry:
                    self.logger.warn("Replay", f"{action['name']} failed, retrying with AI")
                    return await self._resolve()
                break
            await asyncio.sleep(self.delay)

        if self.recorder is not None:
            self.recorder.seek(self.step)
            self.recorder.save()
        return result
