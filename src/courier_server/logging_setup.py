from __future__ import annotations

import logging
from typing import Any, Dict, List

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(cfg: Dict[str, Any]) -> None:
    """Set up root logging from the ``logging`` config section.

    Keys: ``level`` (name or number, default INFO) and an optional ``file``
    that gets a FileHandler next to the console handler.
    """
    log_cfg = cfg.get("logging", {}) or {}
    level = log_cfg.get("level", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_cfg.get("file"):
        handlers.append(logging.FileHandler(str(log_cfg["file"])))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
