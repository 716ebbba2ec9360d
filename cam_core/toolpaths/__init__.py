"""Element to toolpath IR: primitive generators, resolver, assembler."""

from cam_core.toolpaths.assembler import AssemblyError, assemble, assemble_operations
from cam_core.toolpaths.primitives import generate, generate_operation, generate_operations
from cam_core.toolpaths.program import build_operations, generate_program
from cam_core.toolpaths.resolver import (
    CuttingStatistics,
    cutting_statistics,
    needs_smaller_tool,
    operation_type,
    recommended_plunge_rate,
    resolve,
)

__all__ = [
    "AssemblyError",
    "CuttingStatistics",
    "assemble",
    "assemble_operations",
    "build_operations",
    "cutting_statistics",
    "generate",
    "generate_operation",
    "generate_operations",
    "generate_program",
    "needs_smaller_tool",
    "operation_type",
    "recommended_plunge_rate",
    "resolve",
]
