"""
Logging for the license server.
Configure once with setup_logging(); use get_logger() everywhere.
"""
import logging
from typing import Optional, Union

ROOT_NAME = "fence"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"
_setup_done = False


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """Attach a console handler to the fence root logger. Idempotent."""
    global _setup_done
    if _setup_done:
        return

    if isinstance(level, str):
        level = getattr(logging, level.strip().upper(), logging.INFO)
    if level is None:
        level = logging.INFO

    root = logging.getLogger(ROOT_NAME)
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
    root.addHandler(console)

    _setup_done = True


def get_logger(name: str) -> logging.Logger:
    """Child of the fence root logger, e.g. get_logger("ledger") -> fence.ledger."""
    if name.startswith(ROOT_NAME + ".") or name == ROOT_NAME:
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_NAME}.{name}")
