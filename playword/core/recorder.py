import copy
import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from .config import RECORD_SUFFIX
from .errors import InvalidLogPathError
from .types import Action, Recording


def _strip_keys(value: Any, keys: Iterable[str]) -> Any:
    """Drop ``keys`` from every dict nested anywhere inside ``value``."""
    keys = set(keys)
    if isinstance(value, dict):
        return {k: _strip_keys(v, keys) for k, v in value.items() if k not in keys}
    if isinstance(value, list):
        return [_strip_keys(v, keys) for v in value]
    return value


class Recorder:
    """In-memory step log mirrored to a JSON file.

    The file holds a list of ``{"input": ..., "actions": [...]}`` entries, one
    per completed step. ``save`` rewrites it with every step up to the current
    position.
    """

    def __init__(self, path: Union[str, Path]):
        path = Path(path)
        if path.suffix != RECORD_SUFFIX:
            raise InvalidLogPathError(path)
        self.path = path
        self.position = 0
        self.recordings: List[Recording] = []

    def load(self) -> List[Recording]:
        if self.path.exists():
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self.recordings = data if isinstance(data, list) else []
        return self.recordings

    def save(self, excluded: Optional[List[str]] = None, full: bool = False) -> None:
        """Write the log. Steps after the current position are left out unless ``full``."""
        end = len(self.recordings) if full else self.position + 1
        recordings = copy.deepcopy(self.recordings[:end])
        if excluded:
            recordings = _strip_keys(recordings, excluded)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(recordings, indent=2), encoding="utf-8")

    def init_step(self, position: int, input: str) -> None:
        self.position = position
        entry: Recording = {"input": input, "actions": []}
        if position < len(self.recordings):
            self.recordings[position] = entry
        else:
            # Keep the list dense when the log is shorter than the cursor
            while len(self.recordings) < position:
                self.recordings.append({"input": "", "actions": []})
            self.recordings.append(entry)

    def seek(self, position: int) -> None:
        self.position = position

    def add_action(self, action: Action) -> None:
        self.recordings[self.position]["actions"].append(action)

    def get(self, position: int) -> Optional[Recording]:
        if 0 <= position < len(self.recordings):
            return self.recordings[position]
        return None

    def restore(self, position: int, recording: Optional[Recording]) -> None:
        """Put back ``recording`` at ``position`` (drop the slot when it was empty)."""
        if recording is not None:
            self.recordings[position] = recording
        elif position == len(self.recordings) - 1:
            self.recordings.pop()

    def delete(self, position: int) -> None:
        if position < 0 or position >= len(self.recordings):
            return
        del self.recordings[position]
        if self.position >= position:
            self.position = max(self.position - 1, 0)

    def clear(self) -> None:
        self.recordings = []
        self.position = 0

    def count(self) -> int:
        return len(self.recordings)

    def list(self) -> List[Recording]:
        return self.recordings
