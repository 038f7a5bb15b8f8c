# brewnote_backend/app/utils/logs.py
from __future__ import annotations

import logging

_ROOT = "brewnote"

def get_logger(area: str) -> logging.Logger:
    """
    Named logger under the `brewnote` root. A stream handler is attached to the
    root once, unless the host (uvicorn, pytest) already configured one.
    """
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
    return logging.getLogger(f"{_ROOT}.{area}")
