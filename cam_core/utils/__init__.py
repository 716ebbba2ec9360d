"""Shared utilities: filesystem helpers and logging setup."""

from cam_core.utils.fs import atomic_write_text, ensure_dir, load_structured, load_yaml
from cam_core.utils.logging_config import (
    element_context,
    pop_context,
    push_context,
    setup_logging,
)

__all__ = [
    "atomic_write_text",
    "element_context",
    "ensure_dir",
    "load_structured",
    "load_yaml",
    "pop_context",
    "push_context",
    "setup_logging",
]
