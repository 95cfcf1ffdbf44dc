"""
Serve a directory as plain files.

    python examples/static_server.py
    python examples/static_server.py --root ./public --port 3000 --debug

Settings not given on the command line are read from HIKE_* environment
variables (see ServerConfig.from_env).
"""

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from hike import ConfigurationError, Server, ServerConfig, setup_logging


logger = logging.getLogger("static_server")


def main():
    config = ServerConfig.from_env()

    parser = argparse.ArgumentParser(description="Serve a directory over HTTP")
    parser.add_argument("--host", "-H", default=config.host, help=f"Address to bind (default: {config.host})")
    parser.add_argument("--port", "-p", type=int, default=config.port, help=f"Port (default: {config.port})")
    parser.add_argument(
        "--root", "-r",
        default=os.getenv("HIKE_ROOT_DIR", str(Path(__file__).parent / "site_static")),
        help="Directory to serve (default: examples/site_static)",
    )
    parser.add_argument("--default-page", default=config.default_page, help="Directory index file")
    parser.add_argument("--debug", "-d", action="store_true", default=config.debug, help="Log every request")
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=config.log_level.upper(),
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    # Root is applied below so a bad directory is reported, not raised.
    server = Server(args.host, args.port, replace(config, root_dir="."))
    try:
        server.set_root_dir(args.root)
    except ConfigurationError as e:
        logger.error(f"Invalid root directory: {e}")
        return 1

    server.set_default_page(args.default_page)
    server.set_debug(args.debug)
    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
