from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

# Third-party loggers that are only interesting when something goes wrong.
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class _ConsoleQuietFilter(logging.Filter):
    """
    Keep the named loggers off the console unless CRITICAL.

    The file handler still gets everything.
    """

    def __init__(self, names: Iterable[str]) -> None:
        super().__init__()
        self._prefixes = tuple(names)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if any(name == p or name.startswith(p + ".") for p in self._prefixes):
            return record.levelno >= logging.CRITICAL
        return True


def setup_logging(
    level: Union[int, str] = logging.INFO,
    *,
    log_dir: Optional[Union[str, Path]] = None,
    console_quiet: Iterable[str] = (),
) -> None:
    """
    Configure root logging:
    - stderr handler at ``level``
    - optional ``todolist.log`` file handler (everything, DEBUG+) under ``log_dir``
    - loggers named in ``console_quiet`` (and their children) stay off the console

    Safe to call more than once; previous handlers are replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_dir else level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    quiet = tuple(console_quiet)
    if quiet:
        ch.addFilter(_ConsoleQuietFilter(quiet))
    root.addHandler(ch)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / "todolist.log"), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
