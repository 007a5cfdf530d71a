from __future__ import annotations

import logging
import os
import traceback
from typing import Optional

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level_name: Optional[str] = None) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    name = (level_name or os.environ.get("CYPHER_TRAINER_LOG_LEVEL", "WARNING")).upper()
    level = getattr(logging, name, logging.WARNING)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def format_java_like(exc: BaseException, max_frames: int = 8) -> str:
    """Render an exception and its causes as a compact, Java-style trace."""
    lines: list[str] = []
    current: Optional[BaseException] = exc
    first = True
    while current is not None:
        prefix = "Exception" if first else "Caused by"
        lines.append(f"{prefix} ({type(current).__name__}): {current}")
        frames = traceback.extract_tb(current.__traceback__)
        kept = frames[-max_frames:]
        for frame in kept:
            filename = os.path.basename(frame.filename)
            lines.append(f"    at {frame.name}({filename}:{frame.lineno})")
        if len(frames) > len(kept):
            lines.append(f"    ... {len(frames) - len(kept)} frames elided")
        current = current.__cause__
        first = False
    return "\n".join(lines)
