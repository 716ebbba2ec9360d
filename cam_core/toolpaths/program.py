"""Program assembly -- a list of elements to one complete G-code program.

For each element, in document order:

1. parse the mapping (models are accepted as-is);
2. fill unset parameters with :func:`~cam_core.toolpaths.resolver.resolve`;
3. build the toolpath IR (primitive generator or component assembler).

The first block of each element starts with its operation type and, when the
element is under twice the tool diameter, a smaller-tool suggestion.

A failure inside one element becomes a comment block in the program and
the run continues with the next element.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable

from cam_core.configs.loader import ControllerDialect, MachiningSettings
from cam_core.elements.model import ElementError, ElementModel, parse_element
from cam_core.gcode.dialects import GCodeError
from cam_core.gcode.generator import GCodeGenerator
from cam_core.job_ir.operations import ToolpathOperation
from cam_core.toolpaths.primitives import generate_operations
from cam_core.toolpaths.resolver import needs_smaller_tool, resolve
from cam_core.utils.logging_config import element_context

logger = logging.getLogger(__name__)


def _annotate(
    element: ElementModel, settings: MachiningSettings, ops: list[ToolpathOperation],
) -> list[ToolpathOperation]:
    # Strategy and tool-size notes head the element's first block.
    if not ops:
        return ops
    notes: list[str] = []
    if settings.operation_type is not None:
        notes.append(f"Operation: {settings.operation_type.value}")
    if needs_smaller_tool(element, settings):
        logger.warning(
            "%s is smaller than twice the %.3f mm tool; consider a smaller tool",
            element.label, settings.tool_diameter,
        )
        notes.append(
            f"Element smaller than twice the tool diameter "
            f"({settings.tool_diameter:.3f} mm); consider a smaller tool"
        )
    first = ops[0]
    return [replace(first, notes=(*notes, *first.notes)), *ops[1:]]


def _element_operations(
    index: int, item: ElementModel | dict[str, Any], settings: MachiningSettings,
) -> list[ToolpathOperation]:
    try:
        element = item if isinstance(item, ElementModel) else parse_element(item)
        with element_context(element=element.label, kind=element.kind):
            resolved = resolve(element, settings)
            return _annotate(element, resolved, generate_operations(element, resolved))
    except (ElementError, GCodeError, ValueError) as exc:
        logger.warning("Element %d skipped: %s", index, exc)
        return [ToolpathOperation(label=f"Element {index}: error", notes=(str(exc),))]


def build_operations(
    elements: Iterable[ElementModel | dict[str, Any]],
    settings: MachiningSettings,
) -> list[ToolpathOperation]:
    """Toolpath IR for every element, errors included as comment operations."""
    ops: list[ToolpathOperation] = []
    for index, item in enumerate(elements, start=1):
        ops.extend(_element_operations(index, item, settings))
    return ops


def generate_program(
    elements: Iterable[ElementModel | dict[str, Any]],
    settings: MachiningSettings,
    dialect: ControllerDialect | str | None = None,
) -> str:
    """Complete program (header, element blocks, footer).

    Parameters
    ----------
    elements : Iterable[ElementModel | dict]
        Element models or raw document mappings.
    settings : MachiningSettings
        Job settings; unset depth/stepdown/plungerate are resolved per
        element.
    dialect : ControllerDialect | str | None
        Target controller; defaults to ``settings.dialect``.

    Returns
    -------
    str
        Program text, newline terminated.
    """
    ops = build_operations(elements, settings)
    return GCodeGenerator(settings, dialect).generate(ops)
