"""G-code emission and post-processing.

Emission goes through :mod:`~cam_core.gcode.dialects` (per-controller
syntax) and :mod:`~cam_core.gcode.generator` (IR walk and program frame).
The text passes -- :func:`convert`, :func:`optimize`, :func:`validate`,
:func:`analyze` -- work on program text through the shared token parser.
"""

from cam_core.gcode.analyzer import AnalysisReport, analyze
from cam_core.gcode.converter import convert
from cam_core.gcode.dialects import GCodeError
from cam_core.gcode.generator import GCodeGenerator, render_moves, render_operations
from cam_core.gcode.optimizer import optimize
from cam_core.gcode.validator import validate

__all__ = [
    "AnalysisReport",
    "GCodeError",
    "GCodeGenerator",
    "analyze",
    "convert",
    "optimize",
    "render_moves",
    "render_operations",
    "validate",
]
