"""
Toolpath Intermediate Representation module.

Defines toolpath moves as immutable dataclasses, grouped by Z-level into
one operation per element.  This vocabulary is the contract between the
toolpath generators and dialect-specific G-code emission.

All coordinates are absolute document millimetres.
"""

from cam_core.job_ir.operations import (
    ArcMove,
    Comment,
    Linear,
    Move,
    Rapid,
    ToolpathOperation,
    ZLevel,
)

__all__ = [
    "ArcMove",
    "Comment",
    "Linear",
    "Move",
    "Rapid",
    "ToolpathOperation",
    "ZLevel",
]
