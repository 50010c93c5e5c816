"""Process-wide registry for application code.

Library code should take a Registry as a parameter instead.
"""

from __future__ import annotations

import threading

from .registry import Registry

_default: Registry | None = None
_lock = threading.Lock()


def default_registry() -> Registry:
    """Return the process-wide Registry, creating it on first use."""
    global _default
    with _lock:
        if _default is None:
            _default = Registry()
        return _default
