"""
Entry point for PlayWord: runs a list of instructions against a browser,
or starts the Observer to record new steps by hand.

  python run_playword.py test "Navigate to https://example.com" "Check the title is Example Domain"
  python run_playword.py observe --record .playword/login.json
"""

from __future__ import annotations

import argparse
import asyncio

from playword import Observer, PlayWord, SessionConfig
from playword.core.browser import open_context


async def run_test(config: SessionConfig, instructions) -> None:
    async with open_context(config) as context:
        playword = PlayWord.from_config(context, config)
        for instruction in instructions:
            result = await playword.say(instruction)
            print(f"[PlayWord] {instruction} -> {result}")


async def run_observer(config: SessionConfig) -> None:
    async with open_context(config) as context:
        playword = PlayWord.from_config(context, config)
        observer = Observer(playword, delay=config.delay, record_path=config.record_path)
        await observer.observe()
        print(f"[Observer] Recording to {config.record_path}. Close the browser to stop.")
        closed = asyncio.Event()
        context.on("close", lambda _: closed.set())
        try:
            await closed.wait()
        finally:
            await observer.close()


def main():
    parser = argparse.ArgumentParser(description="Drive a browser with plain-language instructions.")
    parser.add_argument("mode", choices=["test", "observe"])
    parser.add_argument("instructions", nargs="*")
    parser.add_argument("--record", help="Step log path (.json); enables record/replay")
    parser.add_argument("--browser", default=None, choices=["chromium", "firefox", "webkit"])
    parser.add_argument("--headless", action="store_true")
    parser.add_argument("--no-retry", action="store_true", help="Do not fall back to AI when a recorded step fails")
    parser.add_argument("--screenshot", action="store_true", help="Show the model a screenshot when picking elements")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    overrides = {}
    if args.record:
        overrides["record"] = args.record
    elif args.mode == "observe":
        overrides["record"] = True
    if args.browser:
        overrides["browser"] = args.browser
    if args.headless:
        overrides["headless"] = True
    if args.no_retry:
        overrides["retry"] = False
    if args.screenshot:
        overrides["use_screenshot"] = True
    if args.debug:
        overrides["debug"] = True
    config = SessionConfig.from_env(**overrides)

    if args.mode == "observe":
        asyncio.run(run_observer(config))
    else:
        asyncio.run(run_test(config, args.instructions))


if __name__ == "__main__":
    main()
