from typing import Any, Dict, List

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph

from ..core.errors import NoCandidateError
from ..core.types import ActionResult, ResolverState
from ..tools.assertion import ASSERTION_TOOLS
from ..tools.operation import OPERATION_TOOLS
from ..tools.query import QUERY_TOOLS

CATALOGUES = {
    "operation": OPERATION_TOOLS,
    "assertion": ASSERTION_TOOLS,
    "query": QUERY_TOOLS,
}


def _session(config: RunnableConfig):
    return config["configurable"]["session"]


async def classify(state: ResolverState, config: RunnableConfig) -> Dict[str, Any]:
    session = _session(config)
    kind = await session.reasoner.classify_action(state["messages"][0])
    session.logger.info("Resolver", f"Instruction classified as {kind}")
    return {"kind": kind, "phase": "classified"}


async def bind_tools(state: ResolverState, config: RunnableConfig) -> Dict[str, Any]:
    session = _session(config)
    response = await session.reasoner.use_tools(CATALOGUES[state["kind"]], state["messages"])
    if response.content:
        session.logger.info("Resolver", f"Model: {response.content}")
    return {"messages": state["messages"] + [response], "phase": "tools_bound"}


def should_invoke(state: ResolverState) -> str:
    last = state["messages"][-1]
    if isinstance(last, AIMessage) and last.tool_calls:
        return "invoke_tools"
    return "resolve"


async def invoke_tools(state: ResolverState, config: RunnableConfig) -> Dict[str, Any]:
    """Run the requested tool calls one after another, in the order the model returned them."""
    session = _session(config)
    tools = {t.name: t for t in CATALOGUES[state["kind"]]}
    messages = list(state["messages"])
    results: List[Any] = []

    for call in messages[-1].tool_calls:
        selected = tools.get(call["name"])
        if selected is None:
            result = f"Unknown tool {call['name']}"
        else:
            session.logger.info("Resolver", f"Calling {call['name']} {call['args']}")
            try:
                result = await selected.ainvoke(call["args"], config=config)
            except NoCandidateError as e:
                result = str(e)
        results.append(result)
        messages.append(ToolMessage(content=str(result), tool_call_id=call["id"], name=call["name"]))

    return {"messages": messages, "results": results, "phase": "tool_invoked"}


def resolve(state: ResolverState) -> Dict[str, Any]:
    if state["results"]:
        return {"result": state["results"][-1], "phase": "resolved"}
    content = state["messages"][-1].content
    if not isinstance(content, str):
        content = str(content)
    result: ActionResult = content
    if content in ("true", "false"):
        result = content == "true"
    return {"result": result, "phase": "resolved"}


def build_graph():
    graph = StateGraph(ResolverState)
    graph.add_node("classify", classify)
    graph.add_node("bind_tools", bind_tools)
    graph.add_node("invoke_tools", invoke_tools)
    graph.add_node("resolve", resolve)

    graph.set_entry_point("classify")
    graph.add_edge("classify", "bind_tools")
    graph.add_conditional_edges(
        "bind_tools",
        should_invoke,
        {"invoke_tools": "invoke_tools", "resolve": "resolve"},
    )
    graph.add_edge("invoke_tools", "resolve")
    graph.add_edge("resolve", END)

    return graph.compile()


async def run_resolver(session, instruction: str) -> ActionResult:
    """Classify ``instruction``, let the model pick tools from that bucket and run them."""
    app = build_graph()
    state: ResolverState = {
        "messages": [HumanMessage(content=instruction)],
        "kind": None,
        "phase": "idle",
        "results": [],
        "result": None,
    }
    final_state = await app.ainvoke(
        state,
        config={
            "run_name": "playword_resolver",
            "recursion_limit": 25,
            "configurable": {"session": session},
        },
    )
    return final_state["result"]
