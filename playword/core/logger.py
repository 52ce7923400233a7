from typing import Optional

from rich.console import Console


class Logger:
    """Console output for one session.

    ``info`` only prints when the session was built with ``debug=True``;
    warnings and errors always print.
    """

    def __init__(self, debug: bool = False, console: Optional[Console] = None):
        self.debug = debug
        self.console = console or Console(stderr=True)

    def _print(self, tag: str, msg: str, style: Optional[str] = None) -> None:
        # markup off: tags like "[Replay]" must not be read as rich markup
        self.console.print(f"[{tag}] {msg}", style=style, markup=False, highlight=False)

    def info(self, tag: str, msg: str, style: Optional[str] = None) -> None:
        if self.debug:
            self._print(tag, msg, style)

    def warn(self, tag: str, msg: str) -> None:
        self._print(tag, msg, "yellow")

    def error(self, tag: str, msg: str) -> None:
        self._print(tag, msg, "bold red")

    def divider(self) -> None:
        if self.debug:
            self.console.rule(style="dim")
