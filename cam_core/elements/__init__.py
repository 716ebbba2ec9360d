"""
Element model module.

Parametric shapes from the CAD document as a closed union of immutable
pydantic models, plus the mapping → model parser.
"""

from cam_core.elements.model import (
    Arc,
    Box,
    Capsule,
    Circle,
    Component,
    Cone,
    Cylinder,
    Element,
    ElementError,
    ElementModel,
    Ellipse,
    Ellipsoid,
    Hemisphere,
    Line,
    Mesh,
    Polygon,
    Prism,
    Pyramid,
    Rectangle,
    Sphere,
    Text,
    Torus,
    Triangle,
    UnknownElement,
    parse_element,
    parse_elements,
)

__all__ = [
    "Arc",
    "Box",
    "Capsule",
    "Circle",
    "Component",
    "Cone",
    "Cylinder",
    "Element",
    "ElementError",
    "ElementModel",
    "Ellipse",
    "Ellipsoid",
    "Hemisphere",
    "Line",
    "Mesh",
    "Polygon",
    "Prism",
    "Pyramid",
    "Rectangle",
    "Sphere",
    "Text",
    "Torus",
    "Triangle",
    "UnknownElement",
    "parse_element",
    "parse_elements",
]
