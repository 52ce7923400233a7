from typing import Any, Dict, List

from langchain_core.runnables import RunnableConfig

from ..core.executor import run_action
from ..core.types import Action, ActionResult
from ..dom.ranker import locate


def session_of(config: RunnableConfig):
    return config["configurable"]["session"]


async def target_params(session, keywords: str, tags: List[str]) -> Dict[str, Any]:
    """Locator params of the element ``keywords`` describes."""
    location = await locate(session, keywords, tags)
    params = {"xpath": location["xpath"]}
    if location.get("frameSrc"):
        params["frameSrc"] = location["frameSrc"]
    return params


async def perform(session, name: str, params: Dict[str, Any]) -> ActionResult:
    """Append the action to the step being recorded, then run it."""
    action: Action = {"name": name, "params": params}
    if session.recorder is not None:
        session.recorder.add_action(action)
    session.logger.info("Tool", f"{name} {params}")
    return await run_action(session.actuator, action, session.reasoner)
