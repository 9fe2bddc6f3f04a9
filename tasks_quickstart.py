"""
Example: restore or sign in, then print your Google Tasks as a tree.

Prerequisites:
1. Create a Google Cloud Project and enable the Google Tasks API
2. Create OAuth 2.0 credentials (Desktop application type)
3. Either export TASKS_EXTENDED_CLIENT_ID / TASKS_EXTENDED_CLIENT_SECRET, or
   point TASKS_EXTENDED_CREDENTIALS_PATH at the downloaded credentials.json

Usage:
    python tasks_quickstart.py          # print once
    python tasks_quickstart.py --watch  # press Enter to simulate a window focus, q to quit
"""

import asyncio
import logging
import sys

from tasks_extended import AppConfig, TasksApp
from tasks_extended.exceptions import ConfigurationError
from tasks_extended.view import render_session, render_tasks


def print_lines(lines):
    for line in lines:
        print(line)
    print()


async def main(watch: bool = False) -> int:
    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return 1

    app = TasksApp.from_config(config)
    app.session.subscribe(lambda snapshot: print_lines(render_session(snapshot)))
    app.tasks.subscribe(lambda state: print_lines(render_tasks(state)))

    if not await app.boot():
        print("Your browser will open automatically.")
        if not await app.sign_in():
            return 1

    loop = asyncio.get_running_loop()
    while watch:
        answer = await loop.run_in_executor(None, sys.stdin.readline)
        if answer.strip().lower() == "q":
            break
        app.focus_gained()

    app.close()
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(main(watch="--watch" in sys.argv)))
