"""Run the task API: ``python -m todolist [--host H] [--port P]``."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

import uvicorn

from todolist.config import get_settings
from todolist.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    settings = get_settings()

    p = argparse.ArgumentParser(prog="todolist-server", description="Serve the to-do list API.")
    p.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    p.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    ns = p.parse_args(argv)

    setup_logging(settings.log_level, log_dir=settings.log_dir)
    logger.info("Serving todolist on http://%s:%s", ns.host, ns.port)

    uvicorn.run("todolist.main:app", host=ns.host, port=ns.port, log_config=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
