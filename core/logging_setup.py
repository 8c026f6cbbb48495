import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from core.workspace import log_path


def setup_logger(path: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """Send all FocusWriter logging to a rotating file.

    The terminal belongs to the editor, so nothing is logged to stderr.
    Calling this twice does not add a second handler.
    """
    if path is None:
        path = log_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger()
    logger.setLevel(level)

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        handler = RotatingFileHandler(
            path,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
