"""
Serve examples/site_dynamic with markers filled in by Python callables.

    python examples/dynamic_server.py --port 8080
    curl http://127.0.0.1:8080/
    curl http://127.0.0.1:8080/dynamic.html

Shows the three ways to supply an anchor callback: a plain function, a
closure, and a stateful object.
"""

import argparse
import itertools
import logging
import subprocess
import sys
import time
from pathlib import Path

from hike import Anchor, DynamicPage, Server, setup_logging


logger = logging.getLogger("dynamic_server")

SITE = Path(__file__).parent / "site_dynamic"


def run_command(*argv: str) -> str:
    try:
        result = subprocess.run(argv, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning(f"{argv[0]} failed: {e}")
        return f"({argv[0]} unavailable)"
    return result.stdout


def uptime() -> str:
    return run_command("uptime")


class HitCounter:
    """Callable object: every substitution counts one hit."""

    def __init__(self):
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return str(next(self._counter))


def main():
    parser = argparse.ArgumentParser(description="Dynamic page demo")
    parser.add_argument("--host", "-H", default="127.0.0.1")
    parser.add_argument("--port", "-p", type=int, default=8080)
    args = parser.parse_args()

    setup_logging("INFO")

    server = Server(args.host, args.port)
    server.set_root_dir(SITE)
    server.set_debug(True)

    server.register_dynamic_page(DynamicPage(
        url="/dynamic.html",
        anchors=[
            Anchor("<!-- [uptime] -->", uptime),
            Anchor("{{TIME}}", lambda: time.strftime("%H:%M:%S")),
            Anchor("{{HITS}}", HitCounter()),
        ],
    ))

    @server.dynamic("/", "<!-- [ls] -->")
    def listing():
        return run_command("ls", "-lh", str(SITE))

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
