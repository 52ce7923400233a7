from typing import Any

# Sentinel returned by the Actuator for recoverable failures.
FAILED = "Failed to perform the action"


class PlayWordError(Exception):
    pass


class NoCandidateError(PlayWordError):
    """No element survived the tag/visibility filter for the requested intent."""

    def __init__(self, intent: str = ""):
        self.intent = intent
        super().__init__(f"No candidate element found for: {intent}" if intent else "No candidate element found")


class UnhandledActuatorError(PlayWordError):
    """Environment error raised by the browser (navigation timeout, closed page, ...)."""


class InvalidLogPathError(PlayWordError):
    def __init__(self, path: Any):
        self.path = path
        super().__init__(f"Invalid record path '{path}': the step log must be a .json file")


class ReasonerMalformedOutput(PlayWordError):
    """The model answered with something that does not fit the requested structure."""


def is_failure(result: Any) -> bool:
    return isinstance(result, str) and result == FAILED
