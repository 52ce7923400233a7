import asyncio
import json

import pytest

from playword.core.errors import FAILED, ReasonerMalformedOutput, UnhandledActuatorError
from playword.core.orchestrator import PlayWord

LOGIN_STEP = {
    "input": "Click the login link",
    "actions": [{"name": "click", "params": {"xpath": "//a[1]"}}],
}
GOTO_STEP = {
    "input": "Navigate to https://x.test",
    "actions": [{"name": "goto", "params": {"url": "https://x.test"}}],
}


def _write_log(path, steps):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(steps, indent=2))


def _read_log(path):
    return json.loads(path.read_text())


def _playword(actuator, reasoner, log_path, **kwargs):
    return PlayWord(actuator=actuator, reasoner=reasoner, record=log_path, delay=0, **kwargs)


def test_empty_log_resolves_and_records(actuator, reasoner, log_path, tool_call):
    reasoner.tool_responses.append(tool_call("GoTo", url="https://x.test"))
    playword = _playword(actuator, reasoner, log_path)

    result = asyncio.run(playword.say("Navigate to https://x.test"))

    assert result == "Navigated to https://x.test"
    assert _read_log(log_path) == [GOTO_STEP]
    assert playword.step == 1


def test_matching_step_replays_without_the_model(actuator, reasoner, log_path):
    _write_log(log_path, [GOTO_STEP, LOGIN_STEP])
    playword = _playword(actuator, reasoner, log_path)

    async def scenario():
        first = await playword.say("Navigate to https://x.test")
        second = await playword.say("Click the login link")
        return first, second

    first, second = asyncio.run(scenario())
    assert first == "Navigated to https://x.test"
    assert second == "Clicked on //a[1]"
    assert reasoner.calls == []
    assert _read_log(log_path) == [GOTO_STEP, LOGIN_STEP]


def test_input_mismatch_goes_to_the_model(actuator, reasoner, log_path, tool_call):
    _write_log(log_path, [GOTO_STEP])
    reasoner.tool_responses.append(tool_call("GoTo", url="https://y.test"))
    playword = _playword(actuator, reasoner, log_path)

    asyncio.run(playword.say("Navigate to https://y.test"))

    assert "classify_action" in reasoner.calls
    assert _read_log(log_path)[0]["input"] == "Navigate to https://y.test"


def test_step_position_must_match(actuator, reasoner, log_path, tool_call):
    # same input recorded, but at step 1
    _write_log(log_path, [{"input": "Open", "actions": []}, GOTO_STEP])
    reasoner.tool_responses.append(tool_call("GoTo", url="https://x.test"))
    playword = _playword(actuator, reasoner, log_path)

    asyncio.run(playword.say("Navigate to https://x.test"))
    assert "classify_action" in reasoner.calls


def test_ai_marker_forces_resolution(actuator, reasoner, log_path, tool_call):
    _write_log(log_path, [GOTO_STEP])
    reasoner.tool_responses.append(tool_call("GoTo", url="https://x.test"))
    playword = _playword(actuator, reasoner, log_path)

    asyncio.run(playword.say("[AI] Navigate to https://x.test"))

    assert playword.input == "Navigate to https://x.test"
    assert reasoner.calls == ["classify_action", "use_tools"]
    assert _read_log(log_path) == [GOTO_STEP]


def test_failed_replay_falls_back_to_the_model(actuator, reasoner, log_path, tool_call):
    _write_log(log_path, [LOGIN_STEP])
    actuator.fail_xpaths.add("//a[1]")
    actuator.locations = [{"xpath": '//a[@href="/login"]', "html": '<a href="/login">Login</a>'}]
    reasoner.tool_responses.append(tool_call("Click", keywords="login link"))
    playword = _playword(actuator, reasoner, log_path)

    result = asyncio.run(playword.say("Click the login link"))

    assert result == 'Clicked on //a[@href="/login"]'
    assert reasoner.calls.count("classify_action") == 1
    assert _read_log(log_path) == [{
        "input": "Click the login link",
        "actions": [{"name": "click", "params": {"xpath": '//a[@href="/login"]'}}],
    }]
    assert playword.step == 1


def test_failed_replay_without_retry_returns_sentinel(actuator, reasoner, log_path):
    _write_log(log_path, [LOGIN_STEP])
    actuator.fail_xpaths.add("//a[1]")
    playword = _playword(actuator, reasoner, log_path, retry=False)

    result = asyncio.run(playword.say("Click the login link"))

    assert result == FAILED
    assert reasoner.calls == []
    assert _read_log(log_path) == [LOGIN_STEP]
    assert playword.step == 1


def test_replay_exception_with_retry_falls_back(actuator, reasoner, log_path, tool_call):
    _write_log(log_path, [GOTO_STEP])
    actuator.raises["goto"] = UnhandledActuatorError("net::ERR_NAME_NOT_RESOLVED")
    reasoner.tool_responses.append(tool_call("PressKeys", keys="F5"))
    playword = _playword(actuator, reasoner, log_path)

    result = asyncio.run(playword.say("Navigate to https://x.test"))
    assert result == "Pressed keys F5"
    assert "classify_action" in reasoner.calls


def test_replay_exception_without_retry_propagates(actuator, reasoner, log_path):
    _write_log(log_path, [GOTO_STEP])
    actuator.raises["goto"] = UnhandledActuatorError("net::ERR_NAME_NOT_RESOLVED")
    playword = _playword(actuator, reasoner, log_path, retry=False)

    with pytest.raises(UnhandledActuatorError):
        asyncio.run(playword.say("Navigate to https://x.test"))
    assert playword.step == 0
    assert _read_log(log_path) == [GOTO_STEP]


def test_reasoner_error_keeps_log_and_cursor(actuator, reasoner, log_path):
    _write_log(log_path, [GOTO_STEP])

    async def broken(message):
        raise ReasonerMalformedOutput("ActionType: type must be one of assertion, operation, query")

    reasoner.classify_action = broken
    playword = _playword(actuator, reasoner, log_path)

    with pytest.raises(ReasonerMalformedOutput):
        asyncio.run(playword.say("[ai] Navigate to https://x.test"))
    assert playword.step == 0
    assert playword.recorder.list() == [GOTO_STEP]
    assert _read_log(log_path) == [GOTO_STEP]


def test_without_recording_every_step_uses_the_model(actuator, reasoner, tool_call):
    reasoner.tool_responses.append(tool_call("GoTo", url="https://x.test"))
    playword = PlayWord(actuator=actuator, reasoner=reasoner, delay=0)

    assert asyncio.run(playword.say("Navigate to https://x.test")) == "Navigated to https://x.test"
    assert playword.recorder is None


def test_text_starting_with_failed_is_a_normal_result(actuator, reasoner, log_path):
    step = {"input": "Read the banner", "actions": [{"name": "get_text", "params": {"xpath": "//p[1]"}}]}
    _write_log(log_path, [step])
    actuator.element_text = "Failed login attempts: 0"
    playword = _playword(actuator, reasoner, log_path)

    assert asyncio.run(playword.say("Read the banner")) == "Failed login attempts: 0"
    assert reasoner.calls == []
