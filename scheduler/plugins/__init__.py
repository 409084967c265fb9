"""
scheduler/plugins — in-tree scheduling plugins.

Public API:
    Eagle            — EAGLE admission + ranking plugin
    default_registry — Registry with every in-tree plugin registered
"""

from scheduler.framework.plugin import Registry
from scheduler.plugins.eagle import NAME as EAGLE_NAME
from scheduler.plugins.eagle import Eagle


def default_registry() -> Registry:
    """A fresh Registry holding the in-tree plugins."""
    registry = Registry()
    registry.register(EAGLE_NAME, Eagle.new)
    return registry


__all__ = ["Eagle", "EAGLE_NAME", "default_registry"]
