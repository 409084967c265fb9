"""Root logger setup for the scheduler host.

Modules log through ``logging.getLogger(__name__)``; this only attaches a
handler once, so library users who configure logging themselves are not
overridden unless they call it.
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_initialized = False


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the root logger. Subsequent calls only adjust the level."""
    global _initialized
    log_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    if _initialized:
        return
    _initialized = True

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
