"""
CAM Core Package.

Converts parametric shape descriptions (elements) into toolpaths and
controller-specific G-code for CNC milling, with optimization, validation
and analysis passes over the emitted program.

Subpackages:
    elements: Element models (closed union of shape kinds)
    geometry: Geometry extraction, Z-level slicing, tessellation, offset
    job_ir: Intermediate representation for toolpath operations
    toolpaths: Primitive generators, parameter resolver, component assembler
    gcode: Dialect emitters, program generator, converter, optimizer,
        validator, analyzer
    configs: Machining settings and job-file loading
    utils: Logging and filesystem helpers
"""

__all__ = ["elements", "geometry", "job_ir", "toolpaths", "gcode", "configs", "utils"]
